"""engine.logging

- structlog setup for the app and the headless runner
- run export / import helpers

A run export is JSON-serializable so it can be downloaded and loaded later.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List, Optional

import structlog

from core.state import GameState, game_state_from_dict, to_dict

RUN_EXPORT_VERSION = 1


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structlog once per process (safe to call again on Streamlit reruns)."""
    log_level = getattr(logging, str(level).upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_format:
        renderer: List[Any] = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def make_run_export(*, seed: int, config: Dict[str, Any], state: GameState, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "version": RUN_EXPORT_VERSION,
        "seed": int(seed),
        "meta": dict(meta or {}),
        "config": dict(config),
        "game_state": to_dict(state),
    }


def dumps_run_export(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True)


def load_run_export(raw: str) -> Dict[str, Any]:
    """Parse an export and rebuild its GameState (returned under "game_state")."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Run export root must be an object")
    if int(data.get("version", 0)) != RUN_EXPORT_VERSION:
        raise ValueError(f"Unsupported run export version: {data.get('version')!r}")
    if not data.get("game_state"):
        raise ValueError("Run export has no game_state")
    out = dict(data)
    out["game_state"] = game_state_from_dict(data["game_state"])
    return out
