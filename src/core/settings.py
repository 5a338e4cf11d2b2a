from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    DATABASE_URL: str | None = None
    LOG_LEVEL: str = "INFO"

    # Token signing
    JWT_ACCESS_SECRET: str = "change-me-access-secret"
    JWT_REFRESH_SECRET: str = "change-me-refresh-secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 14
    OTP_TOKEN_EXPIRE_MINUTES: int = 15

    # Hashing
    BCRYPT_ROUNDS: int = 12

    # Phone verification
    OTP_LENGTH: int = 6
    OTP_EXPIRE_MINUTES: int = 5
    OTP_MAX_PER_MINUTE: int = 3
    OTP_MAX_PER_DAY: int = 10
    OTP_MAX_ATTEMPTS: int = 5
    OTP_DEBUG: bool = False  # Echo generated codes back to the client
    PASSWORD_RESET_EXPIRE_MINUTES: int = 30

    # MSG91 SMS gateway
    MSG91_API_KEY: str | None = None
    MSG91_SENDER_ID: str = "PLRAPP"
    MSG91_ROUTE: str = "4"
    MSG91_COUNTRY_CODE: str = "91"
    MSG91_BASE_URL: str = "https://api.msg91.com/api/v2"
    DEFAULT_COUNTRY_PREFIX: str = "+91"

    # Supabase storage
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    DOCUMENTS_BUCKET: str = "group-docs"
    MAX_UPLOAD_BYTES: int = 300 * 1024

    # Application URLs
    APP_BASE_URL: str = "http://localhost:8000"
    FRONTEND_URL: str | None = None
    CORS_ORIGINS: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
