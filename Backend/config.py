from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator
from jose import jwt, JWTError


def key_role(key: str):
    """Role claim of a Supabase API key, or None for keys that are not JWTs."""
    if key.startswith("sb_publishable_"):
        return "anon"
    if key.startswith("sb_secret_"):
        return "service_role"
    try:
        return jwt.get_unverified_claims(key).get("role")
    except JWTError:
        return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Supabase API
    supabase_url: str = Field(..., validation_alias="SUPABASE_URL")
    # The API authorizes every request itself and talks to the datastore with the
    # service role, which bypasses row-level security. The anon key cannot read roles
    # or write documents.
    supabase_service_role_key: str = Field(..., validation_alias="SUPABASE_SERVICE_ROLE_KEY")
    # When set, access tokens are verified locally instead of through the auth API.
    supabase_jwt_secret: str = Field(default="", validation_alias="SUPABASE_JWT_SECRET")
    storage_bucket: str = Field(default="documents", validation_alias="STORAGE_BUCKET")

    # Identity
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    identity_mode: Literal["provider", "fixture"] = Field(default="provider", validation_alias="IDENTITY_MODE")

    # AI
    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", validation_alias="GEMINI_MODEL")
    summary_input_limit: int = Field(default=120_000, validation_alias="SUMMARY_INPUT_LIMIT")
    summary_timeout_seconds: float = Field(default=30.0, validation_alias="SUMMARY_TIMEOUT_SECONDS")

    # Uploads
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @model_validator(mode="after")
    def check_service_role_key(self):
        role = key_role(self.supabase_service_role_key)
        if role is not None and role != "service_role":
            raise ValueError(f"SUPABASE_SERVICE_ROLE_KEY carries role '{role}', expected 'service_role'")
        return self

    @model_validator(mode="after")
    def check_identity_mode(self):
        # Header-based identities allow anyone to claim the admin role.
        if self.identity_mode == "fixture" and self.is_production:
            raise ValueError("IDENTITY_MODE=fixture is not allowed when ENVIRONMENT=production")
        return self


# Letting it fail here validates presence of required env vars before the app starts.
try:
    settings = Settings()
except Exception as e:
    print(f"Configuration Error: {e}")
    raise
