from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Loft Access Engine"
    ENV: str = "development"
    LOG_LEVEL: str = Field("INFO", description="Level for the loft_access logger")

    # -------------------------------------------------
    # CORS (callers are internal dashboards / services)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Permission configuration
    # -------------------------------------------------
    # JSON file with {"permissions": {...}, "features": {...}}.
    # When unset the built-in matrix from core.permissions is used.
    PERMISSION_MATRIX_FILE: Optional[str] = Field(
        None,
        description="Path to a JSON permission matrix, loaded once at startup",
    )

    # Unknown filter types / missing params return the data unfiltered by
    # default. STRICT_FILTERING=true returns an empty list instead.
    STRICT_FILTERING: bool = Field(False, description="Fail closed in with_role_based_filtering")

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# remove duplicate / trailing-slash origins
settings.BACKEND_CORS_ORIGINS = sorted({o.rstrip("/") for o in settings.BACKEND_CORS_ORIGINS})
