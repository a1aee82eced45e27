"""rsvp_sheet.config

Deployment configuration loaded from a YAML file.

Usage:
    from pathlib import Path
    from rsvp_sheet.config import load_config

    config = load_config(Path("config/rsvp.yml"))

Secrets are never read from the file: the smtp and store sections name the
environment variables that hold them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from rsvp_sheet.notify import NotificationConfig
from rsvp_sheet.schema import SchemaError, SheetSchema, resolve_schema
from rsvp_sheet.transport import SmtpSettings

DEFAULT_SHEET_NAME = "RSVP Responses"
VALID_BACKENDS = ("memory", "csv", "postgres")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(ValueError):
    """Raised when the YAML configuration is missing keys or has bad values."""


# ---------------------------------------------------------------------------
# AppConfig
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StoreConfig:
    backend: str = "csv"
    path: Path | None = None
    dsn_env: str = "RSVP_DB_DSN"

    def dsn(self) -> str:
        dsn = os.environ.get(self.dsn_env)
        if not dsn:
            raise ConfigError(f"postgres store requires ${self.dsn_env} to be set")
        return dsn


@dataclass(frozen=True)
class AppConfig:
    sheet_name: str
    schema: SheetSchema
    notification: NotificationConfig
    smtp: SmtpSettings = field(default_factory=SmtpSettings)
    store: StoreConfig = field(default_factory=StoreConfig)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load_config(path: Path) -> AppConfig:
    """Load and validate an AppConfig from a YAML file.

    Raises:
        ConfigError: If a required key is missing or a value is invalid.
        FileNotFoundError: If the file does not exist.
    """
    raw = Path(path).read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return parse_config(data, base_dir=Path(path).parent)


def parse_config(data: dict[str, Any], base_dir: Path | None = None) -> AppConfig:
    try:
        schema = resolve_schema(data.get("schema", "classic"))
    except SchemaError as exc:
        raise ConfigError(str(exc)) from exc

    return AppConfig(
        sheet_name=str(data.get("sheet_name") or DEFAULT_SHEET_NAME),
        schema=schema,
        notification=_parse_notification(_section(data, "notification"), schema),
        smtp=_parse_smtp(_section(data, "smtp", required=False)),
        store=_parse_store(_section(data, "store", required=False), base_dir),
    )


def _section(data: dict[str, Any], name: str, required: bool = True) -> dict[str, Any]:
    value = data.get(name)
    if value is None:
        if required:
            raise ConfigError(f"missing required section: {name}")
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"section {name} must be a mapping")
    return value


def _parse_notification(data: dict[str, Any], schema: SheetSchema) -> NotificationConfig:
    recipients = data.get("recipients")
    if isinstance(recipients, str):
        recipients = [recipients]
    if not recipients or not all(isinstance(r, str) and r.strip() for r in recipients):
        raise ConfigError("notification.recipients must be a non-empty list of addresses")

    tz = None
    if data.get("timezone"):
        try:
            tz = ZoneInfo(str(data["timezone"]))
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"unknown notification.timezone {data['timezone']!r}") from exc

    return NotificationConfig(
        recipients=tuple(r.strip() for r in recipients),
        sender_name=str(data.get("sender_name") or "Wedding RSVP System"),
        sheet_url=data.get("sheet_url") or None,
        include_game_completed=schema.has("game_completed"),
        timezone=tz,
    )


def _parse_smtp(data: dict[str, Any]) -> SmtpSettings:
    defaults = SmtpSettings()
    try:
        port = int(data.get("port", defaults.port))
        timeout = float(data.get("timeout_seconds", defaults.timeout_seconds))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid smtp setting: {exc}") from exc
    return SmtpSettings(
        host=str(data.get("host", defaults.host)),
        port=port,
        username_env=str(data.get("username_env", defaults.username_env)),
        password_env=str(data.get("password_env", defaults.password_env)),
        from_address=data.get("from_address") or None,
        use_tls=bool(data.get("use_tls", defaults.use_tls)),
        timeout_seconds=timeout,
    )


def _parse_store(data: dict[str, Any], base_dir: Path | None) -> StoreConfig:
    backend = str(data.get("backend", "csv"))
    if backend not in VALID_BACKENDS:
        raise ConfigError(f"store.backend must be one of {VALID_BACKENDS}, got {backend!r}")
    path = None
    if backend == "csv":
        raw_path = data.get("path")
        if not raw_path:
            raise ConfigError("store.path is required for the csv backend")
        path = Path(raw_path)
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
    return StoreConfig(
        backend=backend,
        path=path,
        dsn_env=str(data.get("dsn_env", "RSVP_DB_DSN")),
    )
