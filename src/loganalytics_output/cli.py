from __future__ import annotations

import asyncio
import json
import sys
from typing import Dict, List, Optional

import typer
from loguru import logger

from .config import OutputSettings, load_settings
from .errors import ConfigurationError
from .output import LogAnalyticsOutput
from .utils import iter_ndjson

app = typer.Typer(help="Log Analytics output CLI")

# ---------------------------
# Common options
# ---------------------------


def customer_id_opt() -> Optional[str]:
    return typer.Option(None, "--customer-id", help="Workspace ID (or LA_CUSTOMER_ID)")


def shared_key_opt() -> Optional[str]:
    return typer.Option(None, "--shared-key", help="Shared key (or LA_SHARED_KEY)")


def log_type_opt() -> Optional[str]:
    return typer.Option(
        None, "--log-type", help="Log type, %{field} references allowed (or LA_LOG_TYPE)"
    )


def key_name_opt() -> Optional[List[str]]:
    return typer.Option(None, "--key-name", help="Allow-listed key; repeat for several")


def key_type_opt() -> Optional[List[str]]:
    return typer.Option(None, "--key-type", help="KEY=string|boolean|double; repeatable")


def _parse_key_types(pairs: Optional[List[str]]) -> Optional[Dict[str, str]]:
    if not pairs:
        return None
    out: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=TYPE, got '{pair}'", param_hint="--key-type")
        out[key.strip()] = value.strip()
    return out


def _settings_from_options(**options) -> OutputSettings:
    overrides = {k: v for k, v in options.items() if v is not None}
    try:
        return load_settings(**overrides)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def make_output(settings: OutputSettings) -> LogAnalyticsOutput:
    return LogAnalyticsOutput(settings)


# ---------------------------
# Commands
# ---------------------------


@app.command("check-config")
def check_config(
    customer_id: Optional[str] = customer_id_opt(),
    shared_key: Optional[str] = shared_key_opt(),
    log_type: Optional[str] = log_type_opt(),
    key_name: Optional[List[str]] = key_name_opt(),
    key_type: Optional[List[str]] = key_type_opt(),
):
    """Validate configuration and print it with secrets redacted."""
    settings = _settings_from_options(
        customer_id=customer_id,
        shared_key=shared_key,
        log_type=log_type,
        key_names=key_name or None,
        key_types=_parse_key_types(key_type),
    )
    typer.echo(json.dumps(settings.safe_dump(), indent=2))


@app.command("ship")
def ship(
    path: str = typer.Argument(..., help="NDJSON file path or '-' for stdin (.gz ok)"),
    customer_id: Optional[str] = customer_id_opt(),
    shared_key: Optional[str] = shared_key_opt(),
    log_type: Optional[str] = log_type_opt(),
    key_name: Optional[List[str]] = key_name_opt(),
    key_type: Optional[List[str]] = key_type_opt(),
    mode: Optional[str] = typer.Option(None, "--mode", help="windowed|batch"),
    group_size: int = typer.Option(500, "--group-size", min=1, help="Records per group (batch mode)"),
    max_batch_items: Optional[int] = typer.Option(None, "--max-batch-items"),
    flush_items: Optional[int] = typer.Option(None, "--flush-items"),
    flush_interval: Optional[float] = typer.Option(None, "--flush-interval"),
    log_level: str = typer.Option("INFO", "--log-level"),
):
    """Ship NDJSON records through the output.

    The built-in client sends unsigned requests, which the Data Collector API
    rejects. Use it against a test endpoint, or embed LogAnalyticsOutput with
    an httpx.Auth signer to reach a real workspace.
    """
    _configure_logging(log_level)
    settings = _settings_from_options(
        customer_id=customer_id,
        shared_key=shared_key,
        log_type=log_type,
        key_names=key_name or None,
        key_types=_parse_key_types(key_type),
        mode=mode,
        max_batch_items=max_batch_items,
        flush_items=flush_items,
        flush_interval_sec=flush_interval,
    )
    n = asyncio.run(_ship(settings, path, group_size))
    typer.echo(
        json.dumps({"read": n, "mode": settings.mode, "log_type": settings.log_type}, indent=2)
    )


async def _ship(settings: OutputSettings, path: str, group_size: int) -> int:
    n = 0
    async with make_output(settings) as out:
        if settings.mode == "batch":
            group = []
            for obj in iter_ndjson(path):
                group.append(obj)
                n += 1
                if len(group) >= group_size:
                    await out.receive_group(group)
                    group = []
            if group:
                await out.receive_group(group)
        else:
            for obj in iter_ndjson(path):
                await out.receive(obj)
                n += 1
    # Final flush happens on exit
    logger.info(f"Shipped {n} records as log type {settings.log_type}")
    return n


if __name__ == "__main__":
    app()
