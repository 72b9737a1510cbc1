"""
Acquisition Strategies

원본 페이지 콘텐츠를 얻는 네 가지 독립 전략 (비용 오름차순):
- DirectFetchStrategy (live): 신원 위장 직접 요청
- ExternalReaderStrategy (mercenary): 외부 readability proxy
- HeadlessRenderStrategy (headless): Playwright 렌더링
- ArchiveStrategy (archive): Wayback Machine 스냅샷
"""

from unwall.services.retrieval.strategies.archive import ArchiveStrategy
from unwall.services.retrieval.strategies.base import BaseStrategy
from unwall.services.retrieval.strategies.direct import DirectFetchStrategy
from unwall.services.retrieval.strategies.headless import (
    HeadlessRenderStrategy,
    browser_page,
)
from unwall.services.retrieval.strategies.reader import ExternalReaderStrategy

__all__ = [
    "BaseStrategy",
    "DirectFetchStrategy",
    "ExternalReaderStrategy",
    "HeadlessRenderStrategy",
    "ArchiveStrategy",
    "browser_page",
]
