# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.archive import Mount
from .services.catalog import DEFAULT_CACHE_CONTROL


class Settings(BaseSettings):
    """
    Central configuration.

    - Loads .env automatically (non-fatal if missing).
    - MOUNTS is a comma separated list of ``local_path:url_prefix`` pairs.
    - Tolerates the legacy FTS_BASE key for the search index endpoint.
    """

    # Flask
    FLASK_HOST: str = "0.0.0.0"
    FLASK_PORT: int = 5000
    FLASK_DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ENABLE: bool = True
    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Archive discovery
    MOUNTS: str = ""
    INSPECT_TOOL: str = "dpkg-deb"
    INSPECT_TIMEOUT: float = Field(default=30.0, gt=0)
    INSPECT_WORKERS: int = Field(default=1, ge=1)

    # Page rendering & serving
    RENDER_POLICY: Literal["eager", "lazy"] = "eager"
    CACHE_CONTROL: Optional[str] = None
    SITE_LANGUAGE: str = "en"

    # Full-text search index
    SEARCH_BASE: Optional[str] = Field(default=None, validation_alias=AliasChoices("SEARCH_BASE", "FTS_BASE"))
    SEARCH_COLLECTION: Optional[str] = None
    SEARCH_TIMEOUT: int = 30

    # Settings behavior
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Validators & helpers ----------------------------------------------

    @field_validator("RENDER_POLICY", mode="before")
    @classmethod
    def _lower_policy(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("CACHE_CONTROL", "SEARCH_BASE", mode="after")
    @classmethod
    def _blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    def mount_points(self) -> List[Mount]:
        """
        Parse MOUNTS into Mount values, sorted by local path.

        "/srv/debs:/apt, /srv/udebs:/installer" -> two mounts.
        """
        mounts: List[Mount] = []
        for raw in self.MOUNTS.split(","):
            item = raw.strip()
            if not item:
                continue
            if ":" not in item:
                raise ValueError(f"mount must look like local_path:url_prefix, got {item!r}")
            path, prefix = item.rsplit(":", 1)
            mounts.append(Mount(path=path.strip(), url_prefix=prefix.strip()))
        return sorted(mounts, key=lambda m: str(m.path))

    def cache_control(self) -> str:
        return self.CACHE_CONTROL or DEFAULT_CACHE_CONTROL


settings = Settings()
