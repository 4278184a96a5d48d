"""RenoQuote configuration management.

Loads configuration from environment variables with sensible defaults.
Currency amounts are whole KRW; catalog defaults follow the Korean
renovation market (generic grade "일반", count unit "개").
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class DBConfig:
    """Database connection configuration."""

    url: str
    pool_size: int = 10
    pool_max_overflow: int = 20
    pool_timeout: int = 30
    echo: bool = False  # SQL logging


@dataclass
class PricingConfig:
    """Defaults applied when promoting extracted items into the catalog."""

    default_product_grade: str = "일반"
    default_unit: str = "개"
    default_labor_ratio: float = 0.3  # composite items without an explicit ratio


@dataclass
class StorageConfig:
    """Object storage for signature images and uploads."""

    root: str = "./data/objects"
    public_base_url: str = "/files"


@dataclass
class EmailConfig:
    """SMTP settings for outbound notifications."""

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    admin_email: str | None = None
    # Base of links sent to customers (quote view, style board)
    link_base_url: str = "https://standardunit.kr"

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)


@dataclass
class AppConfig:
    """Root application configuration.

    ``db`` is None when DATABASE_URL is not set; the application then runs
    against the in-memory record store (demo/offline mode).
    """

    db: DBConfig | None = None
    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    cors_origins: str = "*"

    pricing: PricingConfig = field(default_factory=PricingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    email: EmailConfig = field(default_factory=EmailConfig)

    @property
    def store_configured(self) -> bool:
        return self.db is not None

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - DATABASE_URL: async SQLAlchemy URL; unset selects the in-memory store
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - JSON_LOGS: "true" for JSON log lines
        - SMTP_* / FROM_EMAIL / ADMIN_EMAIL: notification delivery
        - APP_BASE_URL: base of links in customer mail
        - OBJECT_STORAGE_ROOT / OBJECT_STORAGE_PUBLIC_URL: signature uploads
        """
        database_url = os.environ.get("DATABASE_URL")
        db = None
        if database_url:
            db = DBConfig(
                url=database_url,
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                pool_max_overflow=int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
                pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
                echo=os.getenv("DB_ECHO", "false").lower() == "true",
            )

        smtp_user = os.getenv("SMTP_USER", "")

        return cls(
            db=db,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format="json" if os.getenv("JSON_LOGS", "false").lower() == "true" else "text",
            cors_origins=os.getenv("CORS_ORIGINS", "*"),
            pricing=PricingConfig(
                default_product_grade=os.getenv("DEFAULT_PRODUCT_GRADE", "일반"),
                default_unit=os.getenv("DEFAULT_UNIT", "개"),
                default_labor_ratio=float(os.getenv("DEFAULT_LABOR_RATIO", "0.3")),
            ),
            storage=StorageConfig(
                root=os.getenv("OBJECT_STORAGE_ROOT", "./data/objects"),
                public_base_url=os.getenv("OBJECT_STORAGE_PUBLIC_URL", "/files"),
            ),
            email=EmailConfig(
                smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
                smtp_port=int(os.getenv("SMTP_PORT", "587")),
                smtp_user=smtp_user,
                smtp_password=os.getenv("SMTP_PASSWORD", ""),
                from_email=os.getenv("FROM_EMAIL", smtp_user),
                admin_email=os.getenv("ADMIN_EMAIL"),
                link_base_url=os.getenv("APP_BASE_URL", "https://standardunit.kr").rstrip("/"),
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
