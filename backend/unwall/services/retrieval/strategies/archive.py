"""
Archive Strategy

공개 웹 아카이브(Wayback Machine)에서 가장 가까운 스냅샷을 가져오는 최후 전략입니다.
스냅샷은 오래되었을 수 있으므로 다른 전략이 모두 실패했을 때만 사용합니다.

흐름:
1. Availability API로 가장 가까운 스냅샷 조회 (없으면 즉시 실패)
2. 스냅샷 본문 요청
3. 결과의 출처를 스냅샷 URL로 보고 (출처를 바꿀 수 있는 유일한 전략)
"""

from typing import Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from unwall.services.retrieval.identities import BROWSER
from unwall.services.retrieval.schemas import AcquisitionOutcome, RetrievalMethod
from unwall.services.retrieval.strategies.base import BaseStrategy

# Availability API 조회 재시도 (네트워크 오류만)
LOOKUP_RETRY_ATTEMPTS = 2
LOOKUP_RETRY_MAX_WAIT = 2  # 최대 대기 시간 (초)


def _log_retry(retry_state) -> None:
    """재시도 전 로깅을 수행합니다."""
    exception = retry_state.outcome.exception()
    logger.warning(
        f"[archive] Snapshot lookup failed: {type(exception).__name__}, "
        f"retry {retry_state.attempt_number}..."
    )


class ArchiveStrategy(BaseStrategy):
    """
    아카이브 스냅샷 전략 (method: archive)
    """

    method = RetrievalMethod.ARCHIVE

    DEFAULT_TIMEOUT: float = 15.0

    def __init__(
        self,
        lookup_url: str = "https://archive.org/wayback/available",
        lookup_timeout: float = 10.0,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            lookup_url: Availability API 주소
            lookup_timeout: 스냅샷 조회 타임아웃 (초). 기본값 10초
            timeout: 스냅샷 본문 요청 타임아웃 (초). 기본값 15초
        """
        super().__init__(timeout=timeout)
        self.lookup_url = lookup_url
        self.lookup_timeout = lookup_timeout

    async def find_snapshot(self, url: str) -> Optional[str]:
        """
        가장 가까운 스냅샷 URL을 조회합니다.

        Returns:
            https 스냅샷 URL 또는 없으면 None
        """
        try:
            data = await self._query_availability(url)
        except httpx.TimeoutException:
            logger.warning(f"[archive] Snapshot lookup timed out: {url}")
            return None
        except httpx.HTTPStatusError as e:
            logger.warning(f"[archive] Snapshot lookup HTTP {e.response.status_code}: {url}")
            return None
        except httpx.RequestError as e:
            logger.warning(f"[archive] Snapshot lookup request error for {url}: {e}")
            return None
        except ValueError:
            logger.warning(f"[archive] Snapshot lookup returned invalid JSON: {url}")
            return None

        closest = (data.get("archived_snapshots") or {}).get("closest") or {}
        snapshot_url = closest.get("url")
        if not closest.get("available") or not snapshot_url:
            return None

        if snapshot_url.startswith("http://"):
            snapshot_url = "https://" + snapshot_url[len("http://"):]
        return snapshot_url

    @retry(
        stop=stop_after_attempt(LOOKUP_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.5, max=LOOKUP_RETRY_MAX_WAIT),
        retry=retry_if_exception_type(httpx.NetworkError),
        before_sleep=_log_retry,
        reraise=True,
    )
    async def _query_availability(self, url: str) -> dict:
        async with httpx.AsyncClient(timeout=self.lookup_timeout) as client:
            response = await client.get(self.lookup_url, params={"url": url})
            response.raise_for_status()
            return response.json()

    async def acquire(self, url: str) -> AcquisitionOutcome:
        logger.info(f"[archive] Querying snapshot lookup: {url}")
        snapshot_url = await self.find_snapshot(url)
        if not snapshot_url:
            logger.warning(f"[archive] No snapshot available: {url}")
            return AcquisitionOutcome.failed("no_snapshot")

        logger.info(f"[archive] Fetching snapshot: {snapshot_url}")
        outcome, _ = await self._get(snapshot_url, BROWSER.headers)
        if not outcome.succeeded:
            return outcome

        return AcquisitionOutcome.ok(
            outcome.raw_body or "",
            status_code=outcome.status_code,
            source_url=snapshot_url,
        )
