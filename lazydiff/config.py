"""Persistent JSON config helpers.

Resolves which external tool formats the diff pane and which palette the UI
uses. Access to the default config file is defensive: malformed or missing
config falls back to built-in defaults. An explicitly requested file must
exist and parse.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .errors import ConfigError
from .external_tool import (
    DEFAULT_COLOR_ARG,
    DefaultDiff,
    DiffCommand,
    ExternalDiffCommand,
    PagerCommand,
)

logger = logging.getLogger(__name__)

APP_NAME = "lazydiff"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
LEGACY_DEFAULT_COMMAND = "diff"


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON config object.

    With no ``path``, returns an empty dict when ``CONFIG_PATH`` is missing,
    unreadable, malformed, or not a JSON object. An explicit ``path`` raises
    ``ConfigError`` in those cases instead.
    """
    if path is None:
        try:
            data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
        except Exception:
            logger.debug("no usable config at %s", CONFIG_PATH)
            return {}
        return data if isinstance(data, dict) else {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except ValueError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _string_value(mapping: object, key: str, default: str = "") -> str:
    if not isinstance(mapping, dict):
        return default
    value = mapping.get(key)
    return value if isinstance(value, str) else default


@dataclass(frozen=True)
class PagingConfig:
    """``git.paging`` section plus the legacy top-level ``diff_command``."""

    pager: str = ""
    external_diff_command: str = ""
    color_arg: str = DEFAULT_COLOR_ARG
    legacy_command: str = ""
    legacy_args: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: dict[str, object]) -> PagingConfig:
        git = config.get("git")
        paging = git.get("paging") if isinstance(git, dict) else None

        legacy = config.get("diff_command")
        raw_args = legacy.get("args") if isinstance(legacy, dict) else None
        legacy_args = tuple(arg for arg in raw_args if isinstance(arg, str)) if isinstance(raw_args, list) else ()

        return cls(
            pager=_string_value(paging, "pager"),
            external_diff_command=_string_value(paging, "externalDiffCommand"),
            color_arg=_string_value(paging, "colorArg", DEFAULT_COLOR_ARG) or DEFAULT_COLOR_ARG,
            legacy_command=_string_value(legacy, "command"),
            legacy_args=legacy_args,
        )

    def resolve_command(self) -> DiffCommand:
        """Pick the effective diff command.

        An external diff command wins over a pager. With neither set, a legacy
        ``diff_command`` other than plain ``diff`` runs as a pager.
        """
        if self.external_diff_command.strip():
            return ExternalDiffCommand(self.external_diff_command, self.color_arg)
        if self.pager.strip():
            return PagerCommand(self.pager)
        if self.legacy_command and self.legacy_command != LEGACY_DEFAULT_COMMAND:
            return PagerCommand(" ".join((self.legacy_command, *self.legacy_args)))
        return DefaultDiff()


def describe_command(command: DiffCommand) -> str:
    """Short label naming the tool that formats the diff pane."""
    if isinstance(command, PagerCommand):
        words = command.command.split()
        return f"{words[0] if words else 'pager'} (pager)"
    if isinstance(command, ExternalDiffCommand):
        words = command.command.split()
        return f"{words[0] if words else 'external'} (external)"
    return "git diff"


def load_theme_name(config: dict[str, object]) -> str | None:
    """Return the configured theme name.

    Accepts either ``"theme": "light"`` or ``"theme": {"name": "light"}``.
    """
    value = config.get("theme")
    if isinstance(value, str) and value:
        return value
    name = _string_value(value, "name")
    return name or None
