from typing import List
from pydantic import PostgresDsn, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "ESG Compliance API"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str = "ESG"
    POSTGRES_PORT: int = 5432

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    # DeepSeek (OpenAI-compatible endpoint)
    DEEPSEEK_API_KEY: str
    DEEPSEEK_BASE_URL: str = "https://api.deepseek.com"
    DEEPSEEK_MODEL: str = "deepseek-chat"

    # Text analysis calls
    DEEPSEEK_TIMEOUT: float = 30.0  # seconds
    DEEPSEEK_MAX_RETRIES: int = 2
    ANALYSIS_TEMPERATURE: float = 0.3
    ANALYSIS_MAX_TOKENS: int = 2000

    # Compliance calls carry the full source text, so they get a longer budget
    COMPLIANCE_TIMEOUT: float = 120.0  # seconds
    COMPLIANCE_MAX_RETRIES: int = 1
    COMPLIANCE_TEMPERATURE: float = 0.2
    COMPLIANCE_MAX_TOKENS: int = 3000

    # Uploads
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    @field_validator("DEEPSEEK_API_KEY", "POSTGRES_PASSWORD")
    @classmethod
    def _require_credential(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be set to a non-empty value")
        return value

    @field_validator("DEEPSEEK_TIMEOUT", "COMPLIANCE_TIMEOUT")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @field_validator("DEEPSEEK_MAX_RETRIES", "COMPLIANCE_MAX_RETRIES")
    @classmethod
    def _bounded_retries(cls, value: int) -> int:
        if not 0 <= value <= 5:
            raise ValueError("retries must be between 0 and 5")
        return value

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")

settings = Settings()
