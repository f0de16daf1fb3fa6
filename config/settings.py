"""
Settings — Startup Configuration Loading

THIS MODULE DEFINES NO COMMANDS.

Tag rules and role ids live in a TOML file (default `bot-config.toml`,
override with TAGBOT_CONFIG). Secrets and runtime switches come from the
environment, with `.env` loaded first:

- DISCORD_TOKEN: bot token, overrides `token` in the TOML file
- TAGBOT_LOG_LEVEL: root log level (default INFO)
- TAGBOT_LOG_FILE: audit log file (default tag-bot.log, empty disables it)

Configuration is read once. Anything missing or malformed raises
ConfigError; the bot must not start on partial configuration.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional

from dotenv import load_dotenv

from rules.table import TagRule, TagRuleTable
from safety.logging import DEFAULT_LOG_FILE

DEFAULT_CONFIG_PATH = "bot-config.toml"


class ConfigError(Exception):
    """Startup configuration is missing or malformed."""


@dataclass(frozen=True)
class RolePermissions:
    console: int
    tag: int


@dataclass(frozen=True)
class BotConfig:
    token: str
    roles: RolePermissions
    rules: TagRuleTable
    log_level: str = "INFO"
    log_file: Optional[str] = DEFAULT_LOG_FILE
    source: str = DEFAULT_CONFIG_PATH


def _read_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path.resolve()}") from exc
    except OSError as exc:
        raise ConfigError(f"Error reading config file {path.resolve()}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Error parsing configuration file! {exc}") from exc


def _require_id(section: Mapping[str, Any], key: str, where: str) -> int:
    value = section.get(key)
    # bool is an int subclass; `true` is not an id.
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{where}.{key} must be a positive integer id, got {value!r}")
    return value


def _parse_roles(raw: Any) -> RolePermissions:
    if not isinstance(raw, Mapping):
        raise ConfigError("Missing [roles] table")
    return RolePermissions(
        console=_require_id(raw, "console", "roles"),
        tag=_require_id(raw, "tag", "roles"),
    )


def _parse_rule(raw: Any, index: int) -> TagRule:
    where = f"tags[{index}]"
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{where} must be a table")
    emoji_name = raw.get("emoji_name")
    if not isinstance(emoji_name, str) or not emoji_name.strip():
        raise ConfigError(f"{where}.emoji_name must be a non-empty string")
    counter = raw.get("message_counter")
    if isinstance(counter, bool) or not isinstance(counter, int) or counter < 0:
        raise ConfigError(f"{where}.message_counter must be a non-negative integer, got {counter!r}")
    return TagRule(
        emoji_name=emoji_name.strip(),
        destination_channel_id=_require_id(raw, "channel_target", where),
        initial_countdown=counter,
    )


def _parse_rules(raw: Any) -> List[TagRule]:
    if not isinstance(raw, list) or not raw:
        raise ConfigError("At least one [[tags]] entry is required")
    return [_parse_rule(entry, index) for index, entry in enumerate(raw)]


def _resolve_token(raw: Mapping[str, Any]) -> str:
    token = os.getenv("DISCORD_TOKEN") or raw.get("token")
    if not isinstance(token, str) or not token.strip():
        raise ConfigError("Missing bot token: set DISCORD_TOKEN or `token` in the config file")
    return token.strip()


def load_config(path: Optional[str | Path] = None, *, load_env: bool = True) -> BotConfig:
    if load_env:
        load_dotenv()

    config_path = Path(path or os.getenv("TAGBOT_CONFIG") or DEFAULT_CONFIG_PATH)
    raw = _read_toml(config_path)

    log_file = os.getenv("TAGBOT_LOG_FILE", DEFAULT_LOG_FILE)
    return BotConfig(
        token=_resolve_token(raw),
        roles=_parse_roles(raw.get("roles")),
        rules=TagRuleTable(_parse_rules(raw.get("tags"))),
        log_level=os.getenv("TAGBOT_LOG_LEVEL", "INFO").upper(),
        log_file=log_file or None,
        source=str(config_path),
    )
