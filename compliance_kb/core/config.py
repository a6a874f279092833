from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Compliance Knowledge Base"
    API_V1_STR: str = "/api/v1"
    SQLALCHEMY_DATABASE_URL: str = "sqlite:///./compliance_kb.db"
    LOG_LEVEL: str = "INFO"

    # Max writes committed in one transaction (batch indexing and clears)
    MAX_WRITES_PER_TRANSACTION: int = 500
    DEFAULT_MAX_RESULTS: int = 20
    CONTENT_PREVIEW_LENGTH: int = 200
    # Searches slower than this are logged as warnings
    SLOW_SEARCH_MS: float = 250.0

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
