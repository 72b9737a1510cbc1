"""
Strategy Orchestrator

획득 전략을 비용 오름차순으로 하나씩 실행하고, 각 결과를 Content Extractor와
Quality Gate에 통과시켜 처음으로 수락된 결과를 반환합니다.

escalation 정책은 제어 흐름이 아니라 데이터(전략 + 정책 목록)입니다.
각 시도의 결과는 다음 중 하나로 정리됩니다:
- Accepted(result): 수락, 즉시 반환
- Insufficient(error): 본문은 얻었지만 품질 미달, 다음 전략으로
- Failed(error): 획득 실패/타임아웃/내부 오류, 다음 전략으로

모든 전략이 소진되면 ExhaustedStrategiesError 하나만 발생합니다 (부분 결과 없음).

Usage:
    orchestrator = build_orchestrator()
    result = await orchestrator.retrieve("https://example.com/article")
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from loguru import logger
from pydantic import ValidationError

from unwall.core.config import Settings, settings as default_settings
from unwall.services.retrieval.errors import (
    AcquisitionFailure,
    ExhaustedStrategiesError,
    InvalidInputError,
    QualityRejectedError,
)
from unwall.services.retrieval.extractor import ContentExtractor
from unwall.services.retrieval.quality import QualityGate
from unwall.services.retrieval.schemas import (
    RetrievalMethod,
    RetrievalRequest,
    RetrievalResult,
)
from unwall.services.retrieval.strategies import (
    ArchiveStrategy,
    BaseStrategy,
    DirectFetchStrategy,
    ExternalReaderStrategy,
    HeadlessRenderStrategy,
)


# 전체 타임아웃 미설정 시 전략 예산 합에 더하는 여유 (추출/품질 검사)
EDGE_TIMEOUT_MARGIN: float = 5.0


@dataclass(frozen=True)
class StrategyPolicy:
    """전략별 배포 정책: 품질 하한과 전체 타임아웃 예산"""

    min_chars: int
    timeout: float
    min_paragraphs: Optional[int] = None


@dataclass(frozen=True)
class Accepted:
    result: RetrievalResult


@dataclass(frozen=True)
class Insufficient:
    error: QualityRejectedError


@dataclass(frozen=True)
class Failed:
    error: AcquisitionFailure


AttemptOutcome = Union[Accepted, Insufficient, Failed]


@dataclass(frozen=True)
class StrategyStep:
    strategy: BaseStrategy
    policy: StrategyPolicy

    @property
    def method(self) -> RetrievalMethod:
        return self.strategy.method


class RetrievalOrchestrator:
    """
    전략 escalation 오케스트레이터

    전략은 동시에 실행하지 않고 반드시 순서대로 실행합니다.
    요청 간 공유하는 가변 상태가 없으므로 인스턴스를 여러 요청에서 재사용해도 됩니다.

    Args:
        steps: (전략, 정책) 목록. 목록 순서가 곧 escalation 순서
        extractor: Content Extractor
        gate: Quality Gate
        total_timeout: 엣지 레이어 전체 상한 (초). 없으면 전략 예산 합 + 여유
    """

    def __init__(
        self,
        steps: Sequence[StrategyStep],
        extractor: Optional[ContentExtractor] = None,
        gate: Optional[QualityGate] = None,
        total_timeout: Optional[float] = None,
    ):
        self.steps = tuple(steps)
        self.extractor = extractor or ContentExtractor()
        self.gate = gate or QualityGate()
        self.total_timeout = total_timeout

    @property
    def order(self) -> list[RetrievalMethod]:
        return [step.method for step in self.steps]

    @property
    def total_budget(self) -> float:
        """모든 전략 타임아웃 예산의 합 (초)"""
        return sum(step.policy.timeout for step in self.steps)

    @property
    def deadline(self) -> float:
        """엣지 레이어가 사용할 전체 타임아웃 (초)"""
        if self.total_timeout is not None:
            return self.total_timeout
        return self.total_budget + EDGE_TIMEOUT_MARGIN

    async def retrieve(self, url: str) -> RetrievalResult:
        """
        URL의 본문을 회수합니다.

        Args:
            url: 절대 http(s) URL

        Returns:
            RetrievalResult (수락한 전략의 method 포함)

        Raises:
            InvalidInputError: URL 형식이 잘못된 경우
            ExhaustedStrategiesError: 모든 전략이 실패/거부된 경우
        """
        try:
            RetrievalRequest(url=url)
        except ValidationError as e:
            raise InvalidInputError(url=str(url), detail=str(e.errors()[0].get("msg"))) from e

        # 원본 문자열 유지 (HttpUrl 정규화로 끝에 '/'가 붙는 것을 피함)
        target = str(url).strip()
        logger.info(f"회수 시작: {target} (순서: {[m.value for m in self.order]})")

        attempts: list[tuple[str, str]] = []
        for step in self.steps:
            outcome = await self._run_step(step, target)

            if isinstance(outcome, Accepted):
                logger.info(f"✅ [{step.method.value}] 수락: {outcome.result.title}")
                return outcome.result

            reason = outcome.error.reason
            attempts.append((step.method.value, reason))
            logger.warning(f"❌ [{step.method.value}] {reason}, 다음 전략으로 escalation...")

        logger.error(f"모든 전략 실패: {target}")
        raise ExhaustedStrategiesError(url=target, attempts=attempts)

    async def _run_step(self, step: StrategyStep, url: str) -> AttemptOutcome:
        """전략 1개를 타임아웃 안에서 실행하고 결과를 분류합니다."""
        method = step.method.value
        logger.info(f"[{method}] 시도 (timeout {step.policy.timeout:.0f}s): {url}")

        try:
            acquisition = await asyncio.wait_for(
                step.strategy.acquire(url), timeout=step.policy.timeout
            )
        except asyncio.TimeoutError:
            return Failed(AcquisitionFailure(url, method, "timeout"))
        except Exception as e:
            logger.exception(f"[{method}] 전략 내부 오류: {e}")
            return Failed(AcquisitionFailure(url, method, f"internal_fault ({type(e).__name__})"))

        if not acquisition.succeeded or not acquisition.raw_body:
            return Failed(AcquisitionFailure(url, method, acquisition.reason or "empty_body"))

        source_url = acquisition.source_url or url
        try:
            content = self.extractor.extract(acquisition.raw_body, source_url)
        except Exception as e:
            logger.exception(f"[{method}] 추출 중 내부 오류: {e}")
            return Failed(AcquisitionFailure(url, method, f"extraction_fault ({type(e).__name__})"))

        verdict = self.gate.check(
            content,
            min_chars=step.policy.min_chars,
            min_paragraphs=step.policy.min_paragraphs,
        )
        if not verdict.accepted:
            return Insufficient(QualityRejectedError(url, method, verdict.reason or "rejected"))

        return Accepted(
            RetrievalResult(
                title=content.title,
                source_url=source_url,
                content_html=content.html,
                method=step.method,
            )
        )


# 헤드리스 렌더링 동시 실행 제한 (프로세스 전역)
_headless_semaphore: Optional[asyncio.Semaphore] = None


def _get_headless_semaphore(limit: int) -> asyncio.Semaphore:
    global _headless_semaphore
    if _headless_semaphore is None:
        _headless_semaphore = asyncio.Semaphore(limit)
    return _headless_semaphore


def build_steps(config: Settings) -> list[StrategyStep]:
    """
    설정에서 전략 순서와 전략별 정책을 만듭니다.

    Raises:
        ValueError: 알 수 없는 전략 이름이 있는 경우
    """
    direct = DirectFetchStrategy(
        timeout=config.DIRECT_FETCH_TIMEOUT,
        social_cascade=config.DIRECT_FETCH_SOCIAL_CASCADE,
    )
    headless = HeadlessRenderStrategy(
        timeout=config.HEADLESS_NAV_TIMEOUT,
        settle_ms=config.HEADLESS_SETTLE_MS,
        challenge_wait_ms=config.HEADLESS_CHALLENGE_WAIT_MS,
        scroll_wait_ms=config.HEADLESS_SCROLL_WAIT_MS,
        semaphore=_get_headless_semaphore(config.HEADLESS_MAX_CONCURRENCY),
    )

    available: dict[str, StrategyStep] = {
        RetrievalMethod.LIVE.value: StrategyStep(
            direct,
            StrategyPolicy(
                min_chars=config.QUALITY_MIN_CHARS_LIVE,
                min_paragraphs=config.QUALITY_MIN_PARAGRAPHS_LIVE,
                timeout=config.DIRECT_FETCH_TIMEOUT * direct.max_attempts + 1.0,
            ),
        ),
        RetrievalMethod.MERCENARY.value: StrategyStep(
            ExternalReaderStrategy(
                base_url=config.READER_BASE_URL,
                api_key=config.READER_API_KEY,
                timeout=config.READER_TIMEOUT,
            ),
            StrategyPolicy(
                min_chars=config.QUALITY_MIN_CHARS_MERCENARY,
                timeout=config.READER_TIMEOUT + 1.0,
            ),
        ),
        RetrievalMethod.HEADLESS.value: StrategyStep(
            headless,
            StrategyPolicy(
                min_chars=config.QUALITY_MIN_CHARS_HEADLESS,
                timeout=headless.budget,
            ),
        ),
        RetrievalMethod.ARCHIVE.value: StrategyStep(
            ArchiveStrategy(
                lookup_url=config.ARCHIVE_LOOKUP_URL,
                lookup_timeout=config.ARCHIVE_LOOKUP_TIMEOUT,
                timeout=config.ARCHIVE_FETCH_TIMEOUT,
            ),
            StrategyPolicy(
                min_chars=config.QUALITY_MIN_CHARS_ARCHIVE,
                timeout=config.ARCHIVE_LOOKUP_TIMEOUT + config.ARCHIVE_FETCH_TIMEOUT + 1.0,
            ),
        ),
    }

    steps = []
    for name in config.RETRIEVAL_STRATEGY_ORDER:
        key = name.strip().lower()
        if key not in available:
            raise ValueError(f"Unknown retrieval strategy: {name}")
        steps.append(available[key])
    return steps


def build_orchestrator(config: Optional[Settings] = None) -> RetrievalOrchestrator:
    """
    설정 기반 기본 오케스트레이터를 생성합니다.

    Raises:
        ValueError: 알 수 없는 전략 이름이 있거나,
            RETRIEVAL_TOTAL_TIMEOUT이 전략 예산 합보다 작은 경우
    """
    config = config or default_settings
    orchestrator = RetrievalOrchestrator(
        build_steps(config), total_timeout=config.RETRIEVAL_TOTAL_TIMEOUT
    )

    # 전체 상한이 마지막 전략의 예산을 잘라먹지 않도록 기동 시점에 검증
    budget = orchestrator.total_budget
    if config.RETRIEVAL_TOTAL_TIMEOUT is not None and config.RETRIEVAL_TOTAL_TIMEOUT < budget:
        raise ValueError(
            f"RETRIEVAL_TOTAL_TIMEOUT ({config.RETRIEVAL_TOTAL_TIMEOUT:.0f}s) is shorter than "
            f"the strategy budgets combined ({budget:.0f}s)"
        )
    return orchestrator


async def retrieve(url: str) -> RetrievalResult:
    """기본 설정으로 URL 하나를 회수하는 단축 함수"""
    return await build_orchestrator().retrieve(url)
