from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./jobboard.db"

    # Sessions / auth
    secret_key: str = "dev-secret-change-in-production"
    session_max_age_days: int = 30
    session_https_only: bool = False
    bcrypt_rounds: int = 12
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    # OIDC login (disabled unless issuer and client id are set)
    oidc_issuer_url: Optional[str] = None
    oidc_client_id: Optional[str] = None
    oidc_client_secret: Optional[str] = None
    oidc_redirect_uri: Optional[str] = None

    # Email
    email_mode: str = "dev"  # dev | prod
    sendgrid_api_key: Optional[str] = None
    email_from: str = "jobs@example.com"

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_currency: str = "usd"

    # NOWPayments
    nowpayments_api_key: Optional[str] = None
    nowpayments_ipn_secret: Optional[str] = None
    nowpayments_api_url: str = "https://api.nowpayments.io/v1"

    # Object storage
    storage_backend: str = "local"  # local | gcs
    upload_dir: str = "./data/objects"
    max_upload_mb: int = 5
    gcs_bucket: Optional[str] = None
    gcs_project_id: Optional[str] = None
    gcs_service_account_b64: Optional[str] = None
    private_object_dir: str = "private"

    # Jobs
    default_visibility_days: int = 30

    # App
    debug: bool = False
    allowed_origins: str = ""
    frontend_url: str = "http://localhost:5173"
    app_url: str = "http://localhost:8000"

    def get_frontend_url(self) -> str:
        return self.frontend_url.rstrip("/")

    def get_allowed_origins(self) -> List[str]:
        """Comma separated ALLOWED_ORIGINS plus the frontend itself."""
        origins = [self.get_frontend_url()]
        if self.allowed_origins:
            origins.extend(o.strip() for o in self.allowed_origins.split(",") if o.strip())
        return origins

    def oidc_enabled(self) -> bool:
        return bool(self.oidc_issuer_url and self.oidc_client_id)


settings = Settings()
