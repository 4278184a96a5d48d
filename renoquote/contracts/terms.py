"""Default general terms attached to new contracts."""

DEFAULT_CONTRACT_CONTENT = """계약 일반조건
General Terms and Conditions

제1조 【공사시공 등】
① 을은 이 계약 일반조건과 설계도서(도면, 시방서, 공사내역서 등)에 의하여 시공한다.
② 을은 공사예정 공정표를 작성하여 계약체결 후 갑의 승인을 받아야 하며, 필요한 경우 산출내역서를 제출한다.
③ 공사에 사용할 재료의 품질 및 규격은 설계서와 일치되어야 한다.

제2조 【부적합한 공사】
갑은 을이 시공한 공사 중 설계서에 적합하지 아니한 부분이 있을 때에는 이에 대한 시정을 요청할 수 있으며, 을은 지체 없이 이에 응한다.

제3조 【설계변경으로 인한 계약금액의 조정】
갑의 요청 혹은 설계변경에 의하여 공사량의 증감이 발생한 경우에는 산출내역서상의 단가를 기준으로 계약금액을 조정한다.

제4조 【지체상금】
을은 준공 기한 내에 공사를 완성하지 못하였을 때에는 매 지체일수마다 당사자간 합의에 의해 정한 지체상금율에 계약금액을 곱하여 산출한 금액을 갑에게 지급하여야 한다. 다만, 당사자간 합의가 없는 경우 지체상금율은 1,000분의 2/일로 한다.

제5조 【계약의 해제 또는 해지】
단순변심에 의한 일방적인 계약해지의 경우 소비자분쟁해결기준에 의거하여 해결한다.

제6조 【공사의 완공】
을은 공사의 완공과 동시에 갑에게 통지하여 갑과 을 모두 검수하고, 서명 혹은 날인으로 공사완료확인서를 작성한다.

제7조 【대금 지급】
갑은 목적물인수일로부터 계약에서 정한 지급기일까지 을에게 대금을 지급하여야 한다.

제8조 【하자보수 및 하자담보】
을은 공사 완료 후 계약에서 별도로 정한 기한 내에 발생한 하자에 대해 보수할 책임이 있다. 다만 당사자간에 별도 기한에 대한 합의가 없는 경우에는 1년으로 정한다.

제9조 【분쟁의 해결】
본 계약에서 발생한 분쟁은 합의에 의하여 해결함을 원칙으로 하고, 당사자 사이에 해결되지 않는 분쟁은 대한상사중재원의 중재에 의해 최종 해결한다.

제10조 【특약사항】
상기 계약일반사항 이외에 갑과 을은 아래 내용을 특약사항으로 정하며, 특약사항이 본문과 상충되는 경우에는 특약사항이 우선하여 적용된다."""
