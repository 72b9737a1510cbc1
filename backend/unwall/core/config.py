import json
from typing import Annotated, Optional

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Unwall"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    # CORS 설정: 콤마로 구분된 문자열이나 리스트 모두 처리 가능하도록 검증
    BACKEND_CORS_ORIGINS: Annotated[list[AnyHttpUrl], NoDecode] = []

    # ===== 전략 순서 (비용 오름차순) =====
    # live → mercenary → headless → archive
    # 배포 환경에 따라 순서를 바꿀 수 있음 (예: archive를 headless 앞으로)
    RETRIEVAL_STRATEGY_ORDER: Annotated[list[str], NoDecode] = ["live", "mercenary", "headless", "archive"]

    # ===== Quality Gate 임계값 =====
    # 뒤쪽 전략일수록 낮은 하한 (부분 콘텐츠라도 없는 것보다 낫다)
    QUALITY_MIN_CHARS_LIVE: int = 500
    QUALITY_MIN_CHARS_MERCENARY: int = 200
    QUALITY_MIN_CHARS_HEADLESS: int = 200
    QUALITY_MIN_CHARS_ARCHIVE: int = 100
    # 문단 수 검사는 live 경로에만 적용 (로딩 셸이 가장 자주 오는 경로)
    QUALITY_MIN_PARAGRAPHS_LIVE: int = 3

    # ===== Direct Fetch 설정 =====
    DIRECT_FETCH_TIMEOUT: float = 15.0  # 시도 1회당 타임아웃 (초)
    DIRECT_FETCH_SOCIAL_CASCADE: bool = True  # 소셜 미리보기 UA 추가 시도 여부

    # ===== External Reader (readability proxy) 설정 =====
    READER_BASE_URL: str = "https://r.jina.ai"
    READER_API_KEY: str = ""
    READER_TIMEOUT: float = 25.0

    # ===== Headless Render (Playwright) 설정 =====
    HEADLESS_NAV_TIMEOUT: float = 30.0
    HEADLESS_SETTLE_MS: int = 2000
    HEADLESS_CHALLENGE_WAIT_MS: int = 15000
    HEADLESS_SCROLL_WAIT_MS: int = 1000
    HEADLESS_MAX_CONCURRENCY: int = 2  # 동시에 실행 가능한 브라우저 수

    # ===== Archive (Wayback Machine) 설정 =====
    ARCHIVE_LOOKUP_URL: str = "https://archive.org/wayback/available"
    ARCHIVE_LOOKUP_TIMEOUT: float = 10.0
    ARCHIVE_FETCH_TIMEOUT: float = 15.0

    # 전체 요청 상한 (엣지 레이어에서 사용)
    # 비워두면 전략 예산 합 + 여유, 지정하면 전략 예산 합 이상이어야 함
    RETRIEVAL_TOTAL_TIMEOUT: Optional[float] = None

    @field_validator("BACKEND_CORS_ORIGINS", "RETRIEVAL_STRATEGY_ORDER", mode="before")
    @classmethod
    def assemble_list(cls, v: str | list[str]) -> list[str] | str:
        if isinstance(v, str):
            # JSON 배열 형태인 경우 파싱
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # 콤마로 구분된 문자열인 경우
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return v
        raise ValueError(v)

    # .env 파일 위치 지정
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True
    )


settings = Settings()
