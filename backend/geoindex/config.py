"""
GeoIndex — Configuration via pydantic-settings.

Environment variables (``GEOINDEX_*``) override defaults.  ``max_cells`` is
the guard that keeps a single bbox / polygon request from enumerating an
unbounded number of geohash cells.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    env_path: ClassVar[str] = str(Path(__file__).resolve().parents[2] / ".env")
    model_config = SettingsConfigDict(
        env_file=env_path,
        env_file_encoding="utf-8",
        env_prefix="GEOINDEX_",
        # Ignore unrelated environment variables so loading the env_file
        # does not cause validation errors for unknown keys.
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────
    app_name: str = "GeoIndex"
    debug: bool = False

    # ── Geohash grid ───────────────────────────────────────────────
    # Precision used when a request does not specify one.
    default_precision: int = 6
    # Highest precision accepted over HTTP (12 chars ≈ 37mm × 19mm).
    max_precision: int = 12
    # Refuse bbox / polygon requests estimated to produce more cells.
    max_cells: int = 250_000

    # ── Polygon scans ──────────────────────────────────────────────
    # Worker threads for polygon enumeration (run_in_executor pool).
    scan_workers: int = 4

    # ── Reprojection ───────────────────────────────────────────────
    # "builtin": bundled EPSG table; "pyproj": the full PROJ database.
    crs_table: Literal["builtin", "pyproj"] = "builtin"

    # ── CORS ───────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse the comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @field_validator("default_precision", "max_precision", "scan_workers")
    @classmethod
    def positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
