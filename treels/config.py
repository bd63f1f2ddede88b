"""Read-only JSON config defaults.

Values from ``config.json`` under the platform config directory seed CLI
defaults. All access is defensive: malformed or missing config falls back
to built-in defaults, and invalid individual values are dropped.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from platformdirs import user_config_dir

from .git_status import GitStatus

APP_NAME = "treels"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

_BOOL_KEYS = ("show_all", "git", "calculate_sizes", "color")

logger = structlog.get_logger(__name__)


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = path or CONFIG_PATH
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("config_unreadable", path=str(config_path), reason=str(exc))
        return {}
    if not isinstance(data, dict):
        logger.warning("config_not_an_object", path=str(config_path))
        return {}
    return data


def _load_bool(data: dict[str, object], key: str) -> bool | None:
    value = data.get(key)
    return value if isinstance(value, bool) else None


def _load_int(data: dict[str, object], key: str, minimum: int = 0) -> int | None:
    value = data.get(key)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= minimum else None


def _load_precedence(data: dict[str, object]) -> tuple[GitStatus, ...] | None:
    """Parse ``status_precedence`` as a list of status names, strongest first.

    Unknown names invalidate the whole value; statuses left out keep their
    default relative order after the listed ones.
    """
    value = data.get("status_precedence")
    if not isinstance(value, list) or not value:
        return None
    statuses: list[GitStatus] = []
    for item in value:
        if not isinstance(item, str):
            return None
        try:
            status = GitStatus(item.strip().lower())
        except ValueError:
            return None
        if status not in statuses:
            statuses.append(status)
    return tuple(statuses)


def load_defaults(path: Path | None = None) -> dict[str, object]:
    """Return validated option defaults keyed by config name."""
    data = load_config(path)
    defaults: dict[str, object] = {}
    for key in _BOOL_KEYS:
        flag = _load_bool(data, key)
        if flag is not None:
            defaults[key] = flag
    depth = _load_int(data, "depth")
    if depth is not None:
        defaults["depth"] = depth
    workers = _load_int(data, "workers", minimum=1)
    if workers is not None:
        defaults["workers"] = workers
    precedence = _load_precedence(data)
    if precedence is not None:
        defaults["status_precedence"] = precedence
    dropped = sorted(set(data) - set(defaults))
    if dropped:
        logger.debug("config_values_ignored", keys=dropped)
    return defaults


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "load_config",
    "load_defaults",
]
