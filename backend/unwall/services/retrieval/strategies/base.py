"""
Base Strategy Module

획득 전략(acquisition strategy)의 기본 추상 클래스를 정의합니다.
각 전략은 원본 페이지 콘텐츠를 얻는 독립적인 방법 하나를 구현합니다.

주요 설계 결정:
- HTTP 클라이언트: httpx (async) - FastAPI 비동기 패턴과 호환
- 예상 가능한 실패는 예외 대신 AcquisitionOutcome.failed()로 반환
- 타임아웃은 HTTP 거부와 구분되는 실패 사유 (진단용)
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional

import httpx
from loguru import logger

from unwall.services.retrieval.schemas import AcquisitionOutcome, RetrievalMethod

# 봇 차단으로 간주하는 상태 코드
BOT_WALL_STATUSES: frozenset[int] = frozenset({403, 429, 503})

# HTML로 취급하는 Content-Type
HTML_CONTENT_TYPES: tuple[str, ...] = ("text/html", "application/xhtml+xml", "text/plain")


class BaseStrategy(ABC):
    """
    모든 획득 전략의 추상 기본 클래스

    새로운 전략을 만들 때 이 클래스를 상속받아 acquire()를 구현합니다.

    Usage:
        class DirectFetchStrategy(BaseStrategy):
            method = RetrievalMethod.LIVE

            async def acquire(self, url: str) -> AcquisitionOutcome:
                ...
    """

    # 클래스 변수: 전략 식별자 (하위 클래스에서 오버라이드)
    method: RetrievalMethod

    # 기본 HTTP 타임아웃 (초)
    DEFAULT_TIMEOUT: float = 15.0

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: 요청 1회당 타임아웃 (초)
        """
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    @property
    def name(self) -> str:
        return self.method.value

    @abstractmethod
    async def acquire(self, url: str) -> AcquisitionOutcome:
        """
        URL의 원본 콘텐츠를 획득합니다.

        Args:
            url: 대상 URL

        Returns:
            AcquisitionOutcome (실패 시 succeeded=False와 reason)
        """

    async def _get(
        self,
        url: str,
        headers: Mapping[str, str],
        timeout: Optional[float] = None,
    ) -> tuple[AcquisitionOutcome, Optional[httpx.Response]]:
        """
        지정한 헤더로 GET 요청을 보내고 결과를 분류합니다.

        리다이렉트를 따라가며, 2xx가 아니면 http_<status> 사유로 실패 처리합니다.

        Args:
            url: 요청 URL
            headers: 요청 헤더
            timeout: 타임아웃 (초). 기본값 self.timeout

        Returns:
            (AcquisitionOutcome, 응답 객체 또는 None)
        """
        timeout = timeout or self.timeout
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                headers=dict(headers),
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException:
            logger.warning(f"[{self.name}] Timeout after {timeout}s: {url}")
            return AcquisitionOutcome.failed("timeout"), None
        except httpx.RequestError as e:
            logger.warning(f"[{self.name}] Request error for {url}: {e}")
            return AcquisitionOutcome.failed(f"network_error ({type(e).__name__})"), None

        if not response.is_success:
            return (
                AcquisitionOutcome.failed(
                    f"http_{response.status_code}", status_code=response.status_code
                ),
                response,
            )

        return AcquisitionOutcome.ok(response.text, status_code=response.status_code), response


def is_html_response(response: httpx.Response) -> bool:
    """Content-Type이 없거나 HTML/텍스트이면 True"""
    content_type = response.headers.get("content-type", "").lower()
    if not content_type:
        return True
    return any(kind in content_type for kind in HTML_CONTENT_TYPES)
