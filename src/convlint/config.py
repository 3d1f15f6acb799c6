"""
Lint Configuration

Immutable settings injected into each checker. Loaded from a YAML file when
one is found, otherwise the defaults below apply.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


CONFIG_ENV_VAR = "CONVLINT_CONFIG"

# Checked in order after the explicit path and the environment variable
CONFIG_SEARCH_PATHS = [
    Path(".convlint.yaml"),
    Path.home() / ".convlint" / "config.yaml",
]

FIX_SCOPES = ("line", "token")

LOGRUS_PACKAGE = "github.com/sirupsen/logrus"
KINGPIN_PACKAGE = "gopkg.in/alecthomas/kingpin.v2"

DEFAULT_LOG_NAMES = (
    "Debug", "Error", "Fatal", "Panic", "Print", "Info", "Trace", "Warn", "Warning",
)


class ConfigError(ValueError):
    """Raised for an unreadable or invalid configuration file."""


@dataclass(frozen=True)
class AliasCheckConfig:
    """
    Strictness of the import alias checker.

    anchored: version and alias words must match a whole path word
        (``^v[0-9]+$`` / ``^word(s)?$``) and quoted paths are unquoted with
        escape handling. When False, words match anywhere inside a path word
        and quote characters are simply trimmed.
    fix_scope: "line" rewrites the whole import spec, "token" only the alias.
    """
    anchored: bool = True
    fix_scope: str = "line"

    def __post_init__(self):
        if self.fix_scope not in FIX_SCOPES:
            raise ConfigError(f"fix_scope must be one of {FIX_SCOPES}, got {self.fix_scope!r}")

    @classmethod
    def loose(cls) -> "AliasCheckConfig":
        return cls(anchored=False, fix_scope="token")


@dataclass(frozen=True)
class MessageFormatConfig:
    log_packages: frozenset = frozenset({LOGRUS_PACKAGE})
    log_names: tuple = DEFAULT_LOG_NAMES
    log_suffixes: tuple = ("", "f", "ln")
    flag_packages: frozenset = frozenset({KINGPIN_PACKAGE})
    flag_names: tuple = ("Flag", "Command")
    exceptions: frozenset = frozenset({"xDS", "gRPC"})


@dataclass(frozen=True)
class LintConfig:
    importalias: AliasCheckConfig = field(default_factory=AliasCheckConfig)
    messagefmt: MessageFormatConfig = field(default_factory=MessageFormatConfig)
    source: Optional[Path] = None


def _strings(value: Any, key: str) -> tuple:
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ConfigError(f"{key} must be a list of strings")
    items = tuple(value)
    for item in items:
        if not isinstance(item, str):
            raise ConfigError(f"{key} must be a list of strings, got {item!r}")
    return items


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return section


def config_from_dict(data: Dict[str, Any], source: Optional[Path] = None) -> LintConfig:
    """Build a LintConfig from parsed YAML, falling back to defaults per key."""
    if not isinstance(data, dict):
        raise ConfigError("configuration root must be a mapping")

    alias_data = _section(data, "importalias")
    alias = AliasCheckConfig()
    if "anchored" in alias_data:
        if not isinstance(alias_data["anchored"], bool):
            raise ConfigError("importalias.anchored must be a boolean")
        alias = replace(alias, anchored=alias_data["anchored"])
    if "fix_scope" in alias_data:
        alias = replace(alias, fix_scope=alias_data["fix_scope"])

    msg_data = _section(data, "messagefmt")
    msg = MessageFormatConfig()
    if "exceptions" in msg_data:
        msg = replace(msg, exceptions=frozenset(_strings(msg_data["exceptions"], "messagefmt.exceptions")))

    log_data = _section(msg_data, "logging")
    if "packages" in log_data:
        msg = replace(msg, log_packages=frozenset(_strings(log_data["packages"], "messagefmt.logging.packages")))
    if "names" in log_data:
        msg = replace(msg, log_names=_strings(log_data["names"], "messagefmt.logging.names"))
    if "suffixes" in log_data:
        suffixes = _strings(log_data["suffixes"], "messagefmt.logging.suffixes")
        # The bare name is always accepted
        msg = replace(msg, log_suffixes=("",) + tuple(s for s in suffixes if s))

    flag_data = _section(msg_data, "flags")
    if "packages" in flag_data:
        msg = replace(msg, flag_packages=frozenset(_strings(flag_data["packages"], "messagefmt.flags.packages")))
    if "names" in flag_data:
        msg = replace(msg, flag_names=_strings(flag_data["names"], "messagefmt.flags.names"))

    return LintConfig(importalias=alias, messagefmt=msg, source=source)


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"failed to load config from {path}: {e}") from e


def load_config(config_path: Optional[Path] = None) -> LintConfig:
    """
    Load configuration.

    An explicit *config_path* (or ``$CONVLINT_CONFIG``) must exist and be
    valid. Files on the implicit search path are skipped with a warning if
    they fail to load.
    """
    explicit = config_path
    if explicit is None and os.environ.get(CONFIG_ENV_VAR):
        explicit = Path(os.environ[CONFIG_ENV_VAR])

    if explicit is not None:
        explicit = Path(explicit)
        if not explicit.exists():
            raise ConfigError(f"config file not found: {explicit}")
        config = config_from_dict(_read_yaml(explicit), source=explicit)
        logger.info("Loaded lint config from %s", explicit)
        return config

    for candidate in CONFIG_SEARCH_PATHS:
        if not candidate.exists():
            continue
        try:
            config = config_from_dict(_read_yaml(candidate), source=candidate)
        except ConfigError as e:
            logger.warning("Ignoring config %s: %s", candidate, e)
            continue
        logger.info("Loaded lint config from %s", candidate)
        return config

    return LintConfig()
