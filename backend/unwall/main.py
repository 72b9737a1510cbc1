from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from loguru import logger

from unwall.core.config import settings
from unwall.api.v1 import retrieve


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # 잘못된 전략 이름은 요청 시점이 아니라 기동 시점에 실패
    orchestrator = retrieve.get_orchestrator()
    logger.info(f"회수 전략 순서: {[m.value for m in orchestrator.order]}")
    yield


def get_application() -> FastAPI:
    _app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="""
## Unwall API

봇 차단, 페이월, 클라이언트 렌더링을 우회하여 웹 페이지의 본문을 회수하는 API입니다.

### 회수 전략 (비용 오름차순)

- **live**: 브라우저/크롤러 신원으로 직접 요청
- **mercenary**: 외부 readability proxy
- **headless**: 헤드리스 Chromium 렌더링
- **archive**: Wayback Machine 스냅샷 (최후 수단)
        """,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "retrieve",
                "description": "URL 본문 회수 API",
            },
        ],
    )

    # trailing slash 제거 (정규화)
    cors_origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]

    if cors_origins:
        _app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info(f"CORS 미들웨어 활성화됨 (origins: {cors_origins})")
    else:
        logger.warning("CORS origins가 설정되지 않음 - CORS 미들웨어 비활성화")

    # API v1 라우터 등록
    _app.include_router(retrieve.router, prefix=settings.API_V1_STR)

    return _app


app = get_application()


# Health Check
@app.get("/")
async def root():
    return {
        "message": "Welcome to Unwall API",
        "version": settings.VERSION,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "ok", "strategies": settings.RETRIEVAL_STRATEGY_ORDER}

# 디버깅 용: python unwall/main.py로 실행 시
if __name__ == "__main__":
    uvicorn.run("unwall.main:app", host="0.0.0.0", port=8000, reload=True)
