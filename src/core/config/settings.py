from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class AppSettings(BaseSettings):
    APP_NAME: str = "ContribPulse"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 8080


    MONGO_URL: str = "mongodb://mongo:27017"
    MONGO_DB_NAME: str = "contrib_pulse"

    # ===== GitHub =====
    # 없으면 task 단위로 drop (missing credential)
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_PER_PAGE: int = 100
    GITHUB_REQUEST_TIMEOUT: int = 15

    # ===== Analysis =====
    TOP_CONTRIBUTORS_LIMIT: int = 10
    RESULT_WRITE_TIMEOUT_SECONDS: float = 30.0

    # Worker Configuration
    TASK_MAX_ATTEMPTS: int = 1
    WORKER_ID: int = 1
    WORKER_POLL_INTERVAL: int = 2

    # docker-compose env_file 환경변수 사용 중
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def get_github_token(self) -> Optional[str]:
        token = (self.GITHUB_TOKEN or "").strip()
        return token or None


settings = AppSettings()
