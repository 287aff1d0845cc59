"""
config/settings.py

- .env에 정의한 환경변수를 읽어 애플리케이션 전역 설정으로 제공합니다.
- pydantic v2 / pydantic-settings v2 사용.
- 백엔드 REST 서버 주소, 타임아웃, 보고서(PDF/Excel) 출력 관련 값을 한곳에서 관리합니다.
"""

from typing import List, Optional, Literal
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # =========================
    # 앱/런타임
    # =========================
    ENV: Literal["dev", "stage", "prod"] = "dev"
    APP_TITLE: str = "School Report API"
    APP_DESCRIPTION: str = "성적 산출 · 월별 출결 집계 · 보고서 출력 API"
    APP_VERSION: str = "1.0.0"

    # =========================
    # CORS
    # =========================
    # 콤마(,)로 구분된 문자열 → List[str] 로 파싱
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            # "a,b , c" → ["a","b","c"]
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    # =========================
    # Backend REST API (학교관리 백엔드)
    # =========================
    BACKEND_API_BASE_URL: str = "http://localhost:8080/api"
    BACKEND_TIMEOUT: float = 15.0

    @field_validator("BACKEND_API_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # =========================
    # 보고서 출력 (PDF / WeasyPrint / Excel)
    # =========================
    TEMPLATE_DIR: str = "templates"
    WEASYPRINT_FONT_DIR: Optional[str] = None
    REPORT_FONT_FAMILY: str = "Kantumruy Pro, DejaVu Sans, sans-serif"
    REPORT_PAGE_SIZE: Literal["A4", "A3", "Letter"] = "A4"
    REPORT_ROWS_PER_PAGE: int = 25

    # =========================
    # Logging / Misc
    # =========================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # =========================
    # BaseSettings Config
    # =========================
    model_config = SettingsConfigDict(
        env_file=".env",               # .env에서 값 로드
        env_file_encoding="utf-8",
        case_sensitive=False,          # 환경변수 대소문자 비구분
        extra="ignore",                # 정의되지 않은 키는 무시
    )


# ✅ settings 객체를 통해 어디서든 접근 가능
settings = Settings()
