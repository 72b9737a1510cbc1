"""
Retrieval Package

단일 웹 페이지의 본문을 회수하는 모듈을 제공합니다.

공개 API:
- schemas: 데이터 모델 (RetrievalRequest, AcquisitionOutcome, RetrievalResult ...)
- identities: 요청 신원 프로필 (BROWSER, GOOGLEBOT, SOCIAL_PREVIEW_PROFILES)
- extractor: 본문 추출/정제 (ContentExtractor)
- quality: 품질 판정 (QualityGate)
- strategies: 획득 전략 (live, mercenary, headless, archive)
- orchestrator: 전략 escalation (RetrievalOrchestrator, build_orchestrator)
- errors: 에러 타입 및 메시지 시스템
"""

from unwall.services.retrieval.errors import (
    ERROR_HTTP_STATUS,
    ERROR_MESSAGES,
    AcquisitionFailure,
    ExhaustedStrategiesError,
    InvalidInputError,
    QualityRejectedError,
    RetrievalError,
    RetrievalErrorCode,
    RetrievalTimeoutError,
)
from unwall.services.retrieval.extractor import (
    DEFAULT_CANDIDATES,
    CandidateRule,
    ContentExtractor,
    ExtractionCandidateSet,
)
from unwall.services.retrieval.identities import (
    BROWSER,
    GOOGLEBOT,
    SOCIAL_PREVIEW_PROFILES,
    IdentityProfile,
)
from unwall.services.retrieval.orchestrator import (
    Accepted,
    Failed,
    Insufficient,
    RetrievalOrchestrator,
    StrategyPolicy,
    StrategyStep,
    build_orchestrator,
    retrieve,
)
from unwall.services.retrieval.quality import QualityGate, QualityVerdict
from unwall.services.retrieval.schemas import (
    AcquisitionOutcome,
    ExtractedContent,
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

__all__ = [
    # Schemas
    "RetrievalMethod",
    "RetrievalRequest",
    "AcquisitionOutcome",
    "ExtractedContent",
    "RetrievalResult",
    # Identities
    "IdentityProfile",
    "BROWSER",
    "GOOGLEBOT",
    "SOCIAL_PREVIEW_PROFILES",
    # Extraction / Quality
    "CandidateRule",
    "ExtractionCandidateSet",
    "DEFAULT_CANDIDATES",
    "ContentExtractor",
    "QualityGate",
    "QualityVerdict",
    # Strategies
    "BaseStrategy",
    "DirectFetchStrategy",
    "ExternalReaderStrategy",
    "HeadlessRenderStrategy",
    "ArchiveStrategy",
    # Orchestrator
    "RetrievalOrchestrator",
    "StrategyPolicy",
    "StrategyStep",
    "Accepted",
    "Insufficient",
    "Failed",
    "build_orchestrator",
    "retrieve",
    # Errors
    "RetrievalError",
    "RetrievalErrorCode",
    "InvalidInputError",
    "AcquisitionFailure",
    "QualityRejectedError",
    "ExhaustedStrategiesError",
    "RetrievalTimeoutError",
    "ERROR_MESSAGES",
    "ERROR_HTTP_STATUS",
]
