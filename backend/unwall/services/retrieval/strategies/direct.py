"""
Direct Fetch Strategy

신원 위장 헤더로 대상 URL을 직접 요청하는 가장 저렴한 전략입니다.

시도 순서:
1. 브라우저 프로필 (동적 Referer: 검색 결과 유입처럼 보이게)
2. 봇 차단(403/429/503) 시 Googlebot 프로필로 1회 재시도
3. 여전히 차단되면 소셜 미리보기 프로필을 차례로 시도,
   최소 길이를 넘는 첫 2xx 응답을 수락

Usage:
    strategy = DirectFetchStrategy()
    outcome = await strategy.acquire("https://example.com/article")
"""

from typing import Mapping, Optional

from loguru import logger

from unwall.services.retrieval.identities import (
    GOOGLEBOT,
    SOCIAL_PREVIEW_PROFILES,
    browser_headers,
)
from unwall.services.retrieval.schemas import AcquisitionOutcome, RetrievalMethod
from unwall.services.retrieval.strategies.base import (
    BOT_WALL_STATUSES,
    BaseStrategy,
    is_html_response,
)


class DirectFetchStrategy(BaseStrategy):
    """
    직접 요청 전략 (method: live)

    각 시도는 독립적으로 타임아웃이 적용됩니다.
    """

    method = RetrievalMethod.LIVE

    DEFAULT_TIMEOUT: float = 15.0

    # 소셜 미리보기 응답을 수락하기 위한 최소 본문 길이
    SANITY_LENGTH: int = 500

    def __init__(self, timeout: Optional[float] = None, social_cascade: bool = True):
        """
        Args:
            timeout: 시도 1회당 타임아웃 (초). 기본값 15초
            social_cascade: 소셜 미리보기 프로필까지 시도할지 여부
        """
        super().__init__(timeout=timeout)
        self.social_cascade = social_cascade

    @property
    def max_attempts(self) -> int:
        """최악의 경우 시도 횟수 (전체 타임아웃 예산 계산용)"""
        return 2 + (len(SOCIAL_PREVIEW_PROFILES) if self.social_cascade else 0)

    async def acquire(self, url: str) -> AcquisitionOutcome:
        outcome = await self._attempt(url, "browser", browser_headers(url))
        if not self._is_bot_wall(outcome):
            return outcome

        logger.warning(
            f"[live] Bot wall (HTTP {outcome.status_code}) with browser identity, "
            f"retrying as {GOOGLEBOT.name}: {url}"
        )
        outcome = await self._attempt(url, GOOGLEBOT.name, GOOGLEBOT.headers)
        if not self._is_bot_wall(outcome) or not self.social_cascade:
            return outcome

        for profile in SOCIAL_PREVIEW_PROFILES:
            logger.info(f"[live] Trying alternate identity {profile.name}: {url}")
            candidate = await self._attempt(url, profile.name, profile.headers)
            if candidate.succeeded and len(candidate.raw_body or "") > self.SANITY_LENGTH:
                return candidate

        logger.warning(f"[live] All identities blocked: {url}")
        return outcome

    async def _attempt(
        self, url: str, identity: str, headers: Mapping[str, str]
    ) -> AcquisitionOutcome:
        outcome, response = await self._get(url, headers)
        if not outcome.succeeded:
            logger.debug(f"[live] {identity} attempt failed ({outcome.reason}): {url}")
            return outcome

        if response is not None and not is_html_response(response):
            content_type = response.headers.get("content-type", "")
            logger.warning(f"[live] Non-HTML content ({content_type}): {url}")
            return AcquisitionOutcome.failed(
                "unsupported_content_type", status_code=outcome.status_code
            )

        logger.info(
            f"[live] {identity} fetched {len(outcome.raw_body or ''):,} chars "
            f"(HTTP {outcome.status_code}): {url}"
        )
        return outcome

    @staticmethod
    def _is_bot_wall(outcome: AcquisitionOutcome) -> bool:
        return not outcome.succeeded and outcome.status_code in BOT_WALL_STATUSES
