"""
Retrieval Data Schemas

페이지 회수 관련 Pydantic 데이터 모델을 정의합니다.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class RetrievalMethod(str, Enum):
    """결과를 수락한 전략 식별자"""

    LIVE = "live"
    MERCENARY = "mercenary"
    HEADLESS = "headless"
    ARCHIVE = "archive"


class RetrievalRequest(BaseModel):
    """회수 요청 스키마 (요청마다 생성, 불변)"""

    model_config = ConfigDict(frozen=True)

    url: HttpUrl = Field(..., description="회수할 절대 URL")


class AcquisitionOutcome(BaseModel):
    """
    전략 1회 시도의 결과

    Extractor가 소비한 후 버려지는 일시적인 값입니다.
    source_url은 archive 전략만 설정합니다 (스냅샷 URL).
    """

    raw_body: Optional[str] = Field(None, description="획득한 원본 본문")
    status_code: Optional[int] = Field(None, description="HTTP 상태 코드")
    succeeded: bool = Field(False, description="본문 획득 여부")
    reason: Optional[str] = Field(None, description="실패 사유 (진단용)")
    source_url: Optional[str] = Field(None, description="보고할 출처 URL (archive 전용)")

    @classmethod
    def ok(
        cls,
        raw_body: str,
        status_code: Optional[int] = 200,
        source_url: Optional[str] = None,
    ) -> "AcquisitionOutcome":
        return cls(
            raw_body=raw_body,
            status_code=status_code,
            succeeded=True,
            source_url=source_url,
        )

    @classmethod
    def failed(cls, reason: str, status_code: Optional[int] = None) -> "AcquisitionOutcome":
        return cls(succeeded=False, reason=reason, status_code=status_code)


class ExtractedContent(BaseModel):
    """Content Extractor 출력"""

    title: str = Field(..., description="추출된 제목")
    html: str = Field(..., description="정제된 본문 HTML 조각")
    text: str = Field("", description="마크업을 제거한 본문 텍스트")
    paragraph_count: int = Field(0, description="비어있지 않은 문단 블록 수")


class RetrievalResult(BaseModel):
    """최종 회수 결과 스키마 - API 응답용 (불변)"""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="아티클 제목")
    source_url: str = Field(..., description="출처 URL (archive는 스냅샷 URL)")
    content_html: str = Field(..., description="정제된 본문 HTML")
    method: RetrievalMethod = Field(..., description="결과를 수락한 전략")
