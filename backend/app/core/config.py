# 환경변수 로딩 (.env)
from typing import List, Optional

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 생성/영양 추정/전사: OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_TRANSCRIBE_MODEL: str = "whisper-1"

    # OCR: Google Cloud Vision (서비스 계정 키 경로)
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None

    # 업로드 제한
    MAX_UPLOAD_BYTES: int = 60 * 1024 * 1024
    MAX_UPLOAD_FILES: int = 6

    # 요청 한도 (클라이언트 IP 기준)
    RATE_LIMIT: str = "10/15minutes"

    # 커버 프레임 추출
    FFMPEG_PATH: str = "ffmpeg"
    FFPROBE_PATH: str = "ffprobe"
    COVER_FRAME_WIDTH: int = 1280

    # 원격 URL / 웹페이지 폴백
    HTTP_TIMEOUT: float = 30.0
    WEBPAGE_TEXT_LIMIT: int = 15000

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
