"""
External Reader Strategy

외부 readability proxy에 요청/렌더링/추출을 위임하는 전략입니다.

API: GET {base_url}/{원본 URL}
- 응답은 제목 줄 + 경량 마크업 본문
- 2xx라도 사람 확인 챌린지, "JavaScript를 켜세요" 배너가 포함되거나
  너무 짧으면 실패로 처리
- 성공 시 markup.reader_to_html()로 HTML 계약에 맞춰 변환
"""

from typing import Optional

from loguru import logger

from unwall.services.retrieval.markup import reader_to_html
from unwall.services.retrieval.schemas import AcquisitionOutcome, RetrievalMethod
from unwall.services.retrieval.strategies.base import BaseStrategy

# 2xx 응답 안의 소프트 실패 표식 (소문자 비교)
SOFT_FAILURE_MARKERS: tuple[str, ...] = (
    "verify you are human",
    "verifying you are human",
    "checking your browser",
    "just a moment...",
    "cf-challenge",
    "complete the captcha",
    "solve the captcha",
    "captcha to continue",
    "enable javascript",
    "javascript is disabled",
)


class ExternalReaderStrategy(BaseStrategy):
    """
    외부 리더 서비스 전략 (method: mercenary)
    """

    method = RetrievalMethod.MERCENARY

    DEFAULT_TIMEOUT: float = 25.0

    # 이보다 짧은 페이로드는 실패
    MIN_PAYLOAD_LENGTH: int = 100

    def __init__(
        self,
        base_url: str = "https://r.jina.ai",
        api_key: str = "",
        timeout: Optional[float] = None,
    ):
        """
        Args:
            base_url: 리더 서비스 주소
            api_key: 선택적 Bearer 토큰
            timeout: 요청 타임아웃 (초). 기본값 25초
        """
        super().__init__(timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def reader_url(self, url: str) -> str:
        """원본 URL을 그대로 경로에 붙인 리더 요청 URL"""
        return f"{self.base_url}/{url}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "text/plain", "X-Return-Format": "markdown"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def acquire(self, url: str) -> AcquisitionOutcome:
        reader_url = self.reader_url(url)
        logger.info(f"[mercenary] Requesting reader proxy: {reader_url}")

        outcome, _ = await self._get(reader_url, self._headers())
        if not outcome.succeeded:
            return outcome

        payload = outcome.raw_body or ""
        if len(payload.strip()) < self.MIN_PAYLOAD_LENGTH:
            logger.warning(f"[mercenary] Payload too short ({len(payload)} chars): {url}")
            return AcquisitionOutcome.failed("payload_too_short", status_code=outcome.status_code)

        marker = find_soft_failure(payload)
        if marker:
            logger.warning(f"[mercenary] Soft failure marker '{marker}': {url}")
            return AcquisitionOutcome.failed(
                f"soft_failure ({marker})", status_code=outcome.status_code
            )

        logger.info(f"[mercenary] Reader returned {len(payload):,} chars: {url}")
        return AcquisitionOutcome.ok(reader_to_html(payload), status_code=outcome.status_code)


def find_soft_failure(payload: str) -> Optional[str]:
    lowered = payload.lower()
    for marker in SOFT_FAILURE_MARKERS:
        if marker in lowered:
            return marker
    return None
