"""Runtime configuration for the daily report.

Values come from ``PGM_REPORT_*`` environment variables (or a ``.env`` file)
and, optionally, from an ``app.ini`` file. Values given in the ini file take
precedence over the environment.
"""

from __future__ import annotations

import configparser
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from pgm_report.diff import DEFAULT_IN_CLAUSE_BATCH_SIZE


class ConfigurationError(ValueError):
    """Raised when the configuration is missing or malformed."""


class Settings(BaseSettings):
    """Database URLs, output location and logging options."""

    model_config = SettingsConfigDict(
        env_prefix="PGM_REPORT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    igal_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL of the IGAL database (distribution log, store master).",
    )
    nbits_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL of the NBITS database (retrieval log).",
    )
    output_dir: Path = Field(default=Path("reports"), description="Directory for the XLSX report.")
    in_clause_batch_size: int = Field(default=DEFAULT_IN_CLAUSE_BATCH_SIZE, ge=1)
    log_level: str = Field(default="INFO")
    echo_sql: bool = False

    @field_validator("output_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser()

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> str:
        return str(value).strip().upper()

    def database_url(self, name: str) -> str:
        """Return the configured URL for ``igal`` or ``nbits``."""
        url = getattr(self, f"{name}_url", None)
        if not url:
            raise ConfigurationError(
                f"{name.upper()} database URL is not configured "
                f"(set PGM_REPORT_{name.upper()}_URL or [datasource.{name}] url)"
            )
        return url


def _merge_credentials(url: str, username: str | None, password: str | None) -> str:
    if not username and not password:
        return url
    try:
        parsed = make_url(url)
    except ArgumentError as exc:
        raise ConfigurationError(f"Invalid database URL: {url}") from exc
    if username:
        parsed = parsed.set(username=username)
    if password:
        parsed = parsed.set(password=password)
    return parsed.render_as_string(hide_password=False)


def read_ini(ini_path: Path | str) -> Dict[str, Any]:
    """Read ``app.ini`` and return the settings it defines.

    Recognised sections: ``[datasource.igal]`` and ``[datasource.nbits]``
    (``url``, ``username``, ``password``) and ``[report]`` (``output_dir``,
    ``in_clause_batch_size``, ``log_level``).
    """

    ini_path = Path(ini_path)
    if not ini_path.exists():
        raise ConfigurationError(f"Configuration file not found: {ini_path}")

    parser = configparser.ConfigParser(interpolation=None)
    try:
        with ini_path.open("r", encoding="utf-8") as handle:
            parser.read_file(handle)
    except configparser.Error as exc:
        raise ConfigurationError(f"Cannot parse {ini_path}: {exc}") from exc

    values: Dict[str, Any] = {}
    for name in ("igal", "nbits"):
        section = f"datasource.{name}"
        if not parser.has_section(section):
            continue
        url = parser.get(section, "url", fallback=None)
        if url:
            values[f"{name}_url"] = _merge_credentials(
                url,
                parser.get(section, "username", fallback=None),
                parser.get(section, "password", fallback=None),
            )

    if parser.has_section("report"):
        for key in ("output_dir", "in_clause_batch_size", "log_level"):
            value = parser.get("report", key, fallback=None)
            if value:
                values[key] = value
    return values


def load_settings(ini_path: Path | str | None = None, **overrides: Any) -> Settings:
    """Build :class:`Settings` from the environment, an ini file and overrides."""

    values: Dict[str, Any] = read_ini(ini_path) if ini_path else {}
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


__all__ = ["ConfigurationError", "Settings", "load_settings", "read_ini"]
