"""rsvp_sheet.cli

Command-line entrypoint for the RSVP sheet.

Usage:
    rsvp-sheet submit --config config/rsvp.yml \\
        -f name=Ana -f attending=Yes -f guestCount=2 -f userId=u42

    rsvp-sheet submit --config config/rsvp.yml --json-path form.json --dry-run
    rsvp-sheet init-sheet --config config/rsvp.yml
    rsvp-sheet list --config config/rsvp.yml
    rsvp-sheet status

--dry-run keeps the store writes but records notifications instead of
sending them; the recorded messages are echoed to stderr.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from rsvp_sheet.config import AppConfig, ConfigError, load_config
from rsvp_sheet.notify import NotificationComposer
from rsvp_sheet.processor import HEALTH_MESSAGE, open_store, process_form
from rsvp_sheet.store import PersistenceError
from rsvp_sheet.transport import EmailTransport, RecordingTransport, SmtpTransport
from rsvp_sheet.upsert import UpsertEngine, ensure_header


def _load(config_path: str) -> AppConfig:
    try:
        return load_config(Path(config_path))
    except ConfigError as exc:
        raise click.BadParameter(str(exc), param_hint="--config") from exc


def _parse_fields(fields: tuple[str, ...]) -> dict[str, str]:
    form: dict[str, str] = {}
    for item in fields:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--field")
        form[key] = value
    return form


def _read_json_form(path: str) -> dict[str, str]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise click.BadParameter(str(exc), param_hint="--json-path") from exc
    if not isinstance(data, dict):
        raise click.BadParameter("JSON form must be an object", param_hint="--json-path")
    return {str(k): "" if v is None else str(v) for k, v in data.items()}


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    show_default=True,
)
def main(log_level: str) -> None:
    """RSVP sheet: upsert guest responses and notify organizers."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@click.option("--config", "config_path", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("-f", "--field", "fields", multiple=True, help="Form field as key=value (repeatable)")
@click.option("--json-path", default=None, type=click.Path(exists=True, dir_okay=False), help="JSON object of form fields")
@click.option("--dry-run", is_flag=True, default=False, help="Record notifications instead of sending")
def submit(config_path: str, fields: tuple[str, ...], json_path: str | None, dry_run: bool) -> None:
    """Upsert one RSVP and notify organizers."""
    config = _load(config_path)
    form = _read_json_form(json_path) if json_path else {}
    form.update(_parse_fields(fields))

    transport: EmailTransport
    if dry_run:
        transport = RecordingTransport()
    else:
        transport = SmtpTransport(config.smtp)

    try:
        store = open_store(config)
    except (ConfigError, PersistenceError) as exc:
        result = {"result": "error", "message": str(exc)}
    else:
        try:
            result = process_form(
                form,
                store,
                UpsertEngine(config.schema),
                NotificationComposer(config.notification, transport),
            )
        finally:
            store.close()

    if isinstance(transport, RecordingTransport):
        for msg in transport.sent:
            click.echo(f"[dry-run] to={msg.to} subject={msg.subject!r}", err=True)
    click.echo(json.dumps(result))
    if result["result"] != "success":
        sys.exit(1)


@main.command("init-sheet")
@click.option("--config", "config_path", required=True, type=click.Path(exists=True, dir_okay=False))
def init_sheet(config_path: str) -> None:
    """Create the sheet and its header row if missing."""
    config = _load(config_path)
    try:
        store = open_store(config)
        try:
            created = ensure_header(store, config.schema)
        finally:
            store.close()
    except (ConfigError, PersistenceError) as exc:
        click.echo(f"FATAL: {exc}", err=True)
        sys.exit(1)
    state = "created" if created else "already present"
    click.echo(f"Sheet {config.sheet_name!r}: header {state}")


@main.command("list")
@click.option("--config", "config_path", required=True, type=click.Path(exists=True, dir_okay=False))
def list_rows(config_path: str) -> None:
    """Print stored RSVP rows as JSON objects keyed by header label."""
    config = _load(config_path)
    try:
        store = open_store(config)
        try:
            values = store.get_values() if store.exists() else []
        finally:
            store.close()
    except (ConfigError, PersistenceError) as exc:
        click.echo(f"FATAL: {exc}", err=True)
        sys.exit(1)
    header = config.schema.header
    records = [dict(zip(header, row)) for row in values[1:]]
    click.echo(json.dumps(records, indent=2))


@main.command()
def status() -> None:
    """Print the health message."""
    click.echo(HEALTH_MESSAGE)


if __name__ == "__main__":
    main()
