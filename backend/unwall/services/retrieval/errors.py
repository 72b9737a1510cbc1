"""
Retrieval Error Definitions

페이지 회수(retrieval) 관련 커스텀 에러 타입 및 사용자 친화적 메시지 시스템을 정의합니다.

사용자에게 노출되는 최종 결과는 두 가지뿐입니다:
- InvalidInputError: 잘못된 URL (즉시 종료)
- ExhaustedStrategiesError: 모든 전략 실패 (단일 집계 메시지)

AcquisitionFailure, QualityRejectedError는 전략 내부에서만 사용되며
오케스트레이터가 다음 전략으로 escalation하여 복구합니다.

에러 타입별 HTTP 상태 코드 (엣지 레이어 매핑용):
- 400: 잘못된 URL 형식
- 502: 모든 전략 소진
- 504: 전체 타임아웃
"""

from enum import Enum
from typing import Optional


class RetrievalErrorCode(str, Enum):
    """회수 에러 코드"""

    INVALID_URL_FORMAT = "INVALID_URL_FORMAT"
    ACQUISITION_FAILED = "ACQUISITION_FAILED"
    QUALITY_REJECTED = "QUALITY_REJECTED"
    EXHAUSTED_STRATEGIES = "EXHAUSTED_STRATEGIES"
    TIMEOUT = "TIMEOUT"


# 에러 코드별 사용자 친화적 메시지
ERROR_MESSAGES: dict[RetrievalErrorCode, str] = {
    RetrievalErrorCode.INVALID_URL_FORMAT: "A valid absolute http(s) URL is required.",
    RetrievalErrorCode.ACQUISITION_FAILED: "Could not acquire the page with this strategy.",
    RetrievalErrorCode.QUALITY_REJECTED: "The acquired page did not contain enough article content.",
    RetrievalErrorCode.EXHAUSTED_STRATEGIES: (
        "All retrieval strategies failed. The site may be blocking automated access."
    ),
    RetrievalErrorCode.TIMEOUT: "Retrieval timed out. Please try again later.",
}

# 에러 코드별 HTTP 상태 코드 매핑
ERROR_HTTP_STATUS: dict[RetrievalErrorCode, int] = {
    RetrievalErrorCode.INVALID_URL_FORMAT: 400,
    RetrievalErrorCode.ACQUISITION_FAILED: 502,
    RetrievalErrorCode.QUALITY_REJECTED: 422,
    RetrievalErrorCode.EXHAUSTED_STRATEGIES: 502,
    RetrievalErrorCode.TIMEOUT: 504,
}


class RetrievalError(Exception):
    """
    회수 에러 기본 클래스

    Attributes:
        code: 에러 코드 (RetrievalErrorCode)
        message: 사용자에게 표시할 메시지
        detail: 개발자용 상세 정보 (선택)
        http_status: HTTP 상태 코드
    """

    def __init__(
        self,
        code: RetrievalErrorCode,
        message: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown retrieval error.")
        self.detail = detail
        self.http_status = ERROR_HTTP_STATUS.get(code, 500)

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """API 응답용 딕셔너리 변환"""
        result = {
            "error_code": self.code.value,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class InvalidInputError(RetrievalError):
    """잘못된 URL 형식 에러"""

    def __init__(self, url: str, detail: Optional[str] = None):
        super().__init__(
            code=RetrievalErrorCode.INVALID_URL_FORMAT,
            detail=detail or f"Invalid URL: {url}",
        )
        self.url = url


class AcquisitionFailure(RetrievalError):
    """단일 전략의 획득 실패 (네트워크 오류, 비정상 상태 코드, 타임아웃)"""

    def __init__(self, url: str, method: str, reason: str):
        super().__init__(
            code=RetrievalErrorCode.ACQUISITION_FAILED,
            detail=f"[{method}] {reason}: {url}",
        )
        self.url = url
        self.method = method
        self.reason = reason


class QualityRejectedError(RetrievalError):
    """본문은 획득했지만 Quality Gate에서 불충분 판정"""

    def __init__(self, url: str, method: str, reason: str):
        super().__init__(
            code=RetrievalErrorCode.QUALITY_REJECTED,
            detail=f"[{method}] {reason}: {url}",
        )
        self.url = url
        self.method = method
        self.reason = reason


class ExhaustedStrategiesError(RetrievalError):
    """
    모든 전략 소진 에러

    attempts에는 (method, reason) 목록이 시도 순서대로 담깁니다.
    """

    def __init__(self, url: str, attempts: list[tuple[str, str]]):
        summary = "; ".join(f"{method}: {reason}" for method, reason in attempts)
        super().__init__(
            code=RetrievalErrorCode.EXHAUSTED_STRATEGIES,
            detail=f"{url} ({summary})" if summary else url,
        )
        self.url = url
        self.attempts = attempts


class RetrievalTimeoutError(RetrievalError):
    """전체 회수 타임아웃 에러"""

    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(
            code=RetrievalErrorCode.TIMEOUT,
            detail=f"Timed out after {timeout_seconds}s: {url}",
        )
        self.url = url
        self.timeout_seconds = timeout_seconds
