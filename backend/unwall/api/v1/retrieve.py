"""
Retrieve API Endpoints

URL을 받아 전략 escalation으로 본문을 회수한 뒤 정제된 결과를 반환하는 엔드포인트입니다.

Endpoints:
- POST /api/v1/fetch: URL 본문 회수

에러 코드:
- INVALID_URL_FORMAT (400): 잘못된 URL 형식
- EXHAUSTED_STRATEGIES (502): 모든 전략 실패
- TIMEOUT (504): 전체 회수 타임아웃
"""

import asyncio
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from unwall.core.config import settings
from unwall.services.retrieval import (
    RetrievalError,
    RetrievalOrchestrator,
    RetrievalResult,
    RetrievalTimeoutError,
    build_orchestrator,
)

router = APIRouter(tags=["retrieve"])


# ============================================================================
# Request Schemas
# ============================================================================


class FetchRequest(BaseModel):
    """회수 요청 스키마 (URL 문법 검증은 오케스트레이터가 수행)"""

    url: str = Field(..., description="회수할 절대 URL")


class RetrievalErrorResponse(BaseModel):
    """회수 에러 응답 스키마"""

    error_code: str = Field(..., description="에러 코드")
    message: str = Field(..., description="사용자 친화적 에러 메시지")
    detail: str | None = Field(None, description="개발자용 상세 정보")


# ============================================================================
# Helper Functions
# ============================================================================


@lru_cache
def get_orchestrator() -> RetrievalOrchestrator:
    """설정 기반 오케스트레이터 (프로세스당 1개, 상태 없음)"""
    return build_orchestrator(settings)


def raise_retrieval_error(error: RetrievalError) -> None:
    """RetrievalError를 HTTPException으로 변환하여 raise"""
    raise HTTPException(
        status_code=error.http_status,
        detail=error.to_dict(),
    )


# ============================================================================
# API Endpoints
# ============================================================================


@router.post(
    "/fetch",
    response_model=RetrievalResult,
    summary="URL 본문 회수",
    responses={
        400: {"model": RetrievalErrorResponse, "description": "잘못된 URL 형식"},
        502: {"model": RetrievalErrorResponse, "description": "모든 전략 실패"},
        504: {"model": RetrievalErrorResponse, "description": "타임아웃"},
    },
)
async def fetch_url(
    request: FetchRequest,
    orchestrator: RetrievalOrchestrator = Depends(get_orchestrator),
) -> RetrievalResult:
    """
    URL을 받아 본문을 회수합니다.

    ## 처리 흐름
    1. live: 신원 위장 직접 요청
    2. mercenary: 외부 readability proxy
    3. headless: 헤드리스 브라우저 렌더링
    4. archive: Wayback Machine 스냅샷

    처음으로 Quality Gate를 통과한 결과를 반환합니다.
    (순서와 임계값은 설정으로 변경 가능)

    Args:
        request: 회수 요청 (url 필드)

    Returns:
        RetrievalResult: 제목, 출처 URL, 정제된 HTML, 수락한 전략

    Raises:
        HTTPException: 잘못된 URL, 전략 소진, 타임아웃
    """
    url = request.url.strip()
    logger.info(f"회수 요청 수신: {url}")

    deadline = orchestrator.deadline
    try:
        return await asyncio.wait_for(orchestrator.retrieve(url), timeout=deadline)
    except asyncio.TimeoutError:
        logger.error(f"회수 타임아웃 ({deadline:.0f}s): {url}")
        raise_retrieval_error(RetrievalTimeoutError(url=url, timeout_seconds=deadline))
    except RetrievalError as e:
        logger.warning(f"회수 실패 ({e.code.value}): {e.detail}")
        raise_retrieval_error(e)
