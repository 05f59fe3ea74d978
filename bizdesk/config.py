from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # JWT Authentication (shared with the auth provider)
    SECRET_KEY: str

    # Application
    APP_NAME: str = "Bizdesk API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = ""
    CORS_ALLOW_CREDENTIALS: bool = True

    # Access control
    BREAK_GLASS_EMAILS: str = ""  # Empty disables break-glass access

    # Cascade deletion: "transaction" (all-or-nothing) or "stepwise" (marker + resumable)
    CASCADE_MODE: str = "transaction"
    RESUME_DELETIONS_ON_STARTUP: bool = True

    # Outbound email
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str = ""
    EMAIL_FROM_NAME: str = "Bizdesk"
    FRONTEND_URL: str = "http://localhost:5173"

    # Invitations
    INVITATION_TTL_DAYS: int = 7

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS from comma-separated string"""
        if not self.CORS_ORIGINS:
            return []
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def break_glass_emails_list(self) -> list[str]:
        """Parse BREAK_GLASS_EMAILS (lower-cased) from comma-separated string"""
        if not self.BREAK_GLASS_EMAILS:
            return []
        return [
            email.strip().lower() for email in self.BREAK_GLASS_EMAILS.split(",") if email.strip()
        ]


# Global settings instance
settings = Settings()
