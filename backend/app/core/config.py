from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional, Literal
import os


class Settings(BaseSettings):
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_empty=True, extra="ignore"
    )

    # Basic settings
    API_V1_STR: str = "/api"
    PROJECT_NAME: str = "MediBook"
    PROJECT_DESCRIPTION: str = "Patient/doctor booking backend"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_HOSTS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @property
    def get_allowed_hosts(self) -> List[str]:
        """Get allowed hosts from environment or use defaults"""
        env_hosts = os.getenv("ALLOWED_HOSTS")
        if env_hosts:
            return [host.strip() for host in env_hosts.split(",")]
        return self.ALLOWED_HOSTS

    # Frontend URL for redirects (email links, OAuth callbacks)
    FRONTEND_URL: str = "http://localhost:3000"

    # Supabase
    SUPABASE_URL: str = "http://127.0.0.1:54321"
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Storage
    DOCUMENTS_BUCKET: str = "documents"
    STORAGE_CACHE_CONTROL: str = "3600"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Tables
    PROFILES_TABLE: str = "profiles"
    QUALIFICATIONS_TABLE: str = "qualifications"
    LANGUAGES_TABLE: str = "languages"

    # Auth cookies
    COOKIE_SECURE: bool = False if ENVIRONMENT == "development" else True
    COOKIE_ACCESS_NAME: str = "access_token"
    COOKIE_REFRESH_NAME: str = "refresh_token"
    COOKIE_LOGGED_IN_NAME: str = "logged_in"
    ACCESS_TOKEN_MAX_AGE_SECONDS: int = 60 * 60
    REFRESH_TOKEN_MAX_AGE_DAYS: int = 30
    COOKIE_HTTP_ONLY: bool = True
    COOKIE_SAMESITE: str = "lax"
    COOKIE_DOMAIN: Optional[str] = None
    COOKIE_PATH: str = "/"

    # Geocoding (Nominatim requires a User-Agent with contact info)
    NOMINATIM_BASE_URL: str = "https://nominatim.openstreetmap.org"
    NOMINATIM_USER_AGENT: str = "MediBook/1.0 (support@medibook.app)"
    GEOCODING_TIMEOUT_SECONDS: float = 8.0
    DEFAULT_LOCATION_LAT: float = 36.8065  # Tunis
    DEFAULT_LOCATION_LNG: float = 10.1815
    ADDRESS_SYNC_SETTLE_SECONDS: float = 0.5

    # Email confirmation monitoring
    EMAIL_CONFIRMATION_POLL_SECONDS: float = 5.0
    EMAIL_CONFIRMATION_WINDOW_SECONDS: float = 180.0
    EMAIL_CONFIRMATION_FINAL_CHECK_LEAD_SECONDS: float = 2.0

    # Doctor onboarding submission (used by the form client)
    DOCTOR_PROFILE_ENDPOINT: str = "http://localhost:8000/api/doctor-profile"
    SUBMISSION_TIMEOUT_SECONDS: float = 60.0


settings = Settings()
