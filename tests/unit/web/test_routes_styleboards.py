"""Tests for renoquote.web.routes.styleboards - admin boards and the customer picker."""

import asyncio
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from factories import make_estimate, make_styleboard
from renoquote.notifications.email import EmailResult
from renoquote.web.routes import styleboards


@pytest.fixture
def email_service():
    service = MagicMock()
    service.send.return_value = EmailResult(success=False, error="SMTP not configured")
    return service


@pytest.fixture
def client(make_client, email_service):
    return make_client(styleboards.router, get_email_service=lambda: email_service)


@pytest.fixture
def board(web_store):
    return asyncio.run(make_styleboard(web_store))


class TestAdmin:
    def test_create_and_list(self, client, web_store):
        estimate = asyncio.run(make_estimate(web_store))
        form = {"estimate_id": str(estimate["id"]), "customer_name": "김민수", "customer_phone": "010-1234-5678", "password": "4821"}

        created = client.post("/api/styleboard", json=form)
        duplicate = client.post("/api/styleboard", json=form)
        body = client.get("/api/styleboard").json()

        assert created.status_code == 200
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "이미 스타일보드가 생성되어 있습니다."
        assert body["demoMode"] is True
        assert [row["estimate"]["complex_name"] for row in body["data"]] == ["헬리오시티"]

    def test_create_missing_fields_is_400(self, client):
        response = client.post("/api/styleboard", json={"customer_name": "김민수"})

        assert response.status_code == 400
        assert "필수 정보" in response.json()["error"]

    def test_delete(self, client, board):
        assert client.delete(f"/api/styleboard/{board['id']}").json()["message"] == "스타일보드가 삭제되었습니다."
        assert client.get(f"/api/styleboard/{board['id']}").status_code == 404

    def test_send_link_reports_mail_outcome(self, client, board):
        body = client.post("/api/styleboard/send", json={"styleboardId": str(board["id"])}).json()

        assert body["success"] is True
        assert body["emailSent"] is False
        assert body["styleboardLink"].endswith(f"/styleboard/{board['id']}")
        assert client.get(f"/api/styleboard/{board['id']}").json()["data"]["link_sent"] is True

    def test_send_unknown_board_is_404(self, client):
        assert client.post("/api/styleboard/send", json={"styleboardId": str(uuid4())}).status_code == 404


class TestCustomer:
    def test_open_with_password(self, client, board):
        response = client.get(f"/api/styleboard/{board['id']}", params={"password": "4821"})

        assert response.status_code == 200
        assert "password" not in response.json()["data"]

    def test_wrong_password_is_401(self, client, board):
        response = client.get(f"/api/styleboard/{board['id']}", params={"password": "0000"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "비밀번호가 일치하지 않습니다."}

    def test_save_picks(self, client, board):
        response = client.patch(
            f"/api/styleboard/{board['id']}",
            json={"password": "4821", "selected_images": {"living": {"lighting": ["living/lighting/02.jpg"]}}, "save": True},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["selected_images"] == {"living": {"lighting": ["living/lighting/02.jpg"]}}
        assert data["saved_at"] is not None

    def test_six_picks_is_400(self, client, board):
        images = [f"living/lighting/{n}.jpg" for n in range(6)]

        response = client.patch(
            f"/api/styleboard/{board['id']}", json={"password": "4821", "selected_images": {"living": {"lighting": images}}}
        )

        assert response.status_code == 400
