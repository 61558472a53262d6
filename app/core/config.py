from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

ROOT = Path(__file__).resolve().parents[2]
load_dotenv(ROOT / ".env", override=False)     # FIREBASE_*, WORLDLABS_* etc.


class Settings(BaseSettings):
    environment: str = Field("development", validation_alias="ENVIRONMENT")

    # ───────────────── Firebase (auth / Firestore / Storage) ─────────
    # Either the whole service-account JSON, or the three split fields.
    firebase_service_account: str | None = Field(
        None, validation_alias="FIREBASE_SERVICE_ACCOUNT"
    )
    firebase_project_id: str | None = Field(
        None,
        validation_alias=AliasChoices(
            "FIREBASE_PROJECT_ID",
            "GCP_PROJECT_ID",
            "GOOGLE_CLOUD_PROJECT",
        ),
    )
    firebase_client_email: str | None = Field(None, validation_alias="FIREBASE_CLIENT_EMAIL")
    firebase_private_key: str | None = Field(None, validation_alias="FIREBASE_PRIVATE_KEY")
    storage_bucket: str = Field(
        "",
        validation_alias=AliasChoices("FIREBASE_STORAGE_BUCKET", "GCS_BUCKET"),
    )

    # ───────────────── World Labs (Marble) ──────────────────────────
    worldlabs_base_url: str = Field(
        "https://api.worldlabs.ai/marble/v1", validation_alias="WORLDLABS_BASE_URL"
    )
    worldlabs_api_key: str = Field("", validation_alias="WORLDLABS_API_KEY")
    worldlabs_timeout_s: float = Field(30.0, validation_alias="WORLDLABS_TIMEOUT_S")
    asset_download_timeout_s: float = Field(120.0, validation_alias="ASSET_DOWNLOAD_TIMEOUT_S")

    # ───────────────── HTTP surface ─────────────────────────────────
    frontend_url: str = Field(
        "http://localhost:3000",
        validation_alias=AliasChoices("FRONTEND_URL", "UI_ORIGIN"),
    )
    session_cookie_days: int = Field(5, validation_alias="SESSION_COOKIE_DAYS")
    max_upload_mb: int = Field(20, validation_alias="MAX_UPLOAD_MB")

    # slowapi format, e.g. "120/minute"
    rate_limit: str = Field("120/minute", validation_alias="RATE_LIMIT")
    generate_rate_limit: str = Field("10/minute", validation_alias="GENERATE_RATE_LIMIT")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()
