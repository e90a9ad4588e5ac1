"""User configuration (``~/.agent-skills.json``)."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_skills.agents import PRIMARY_AGENT, agent_names, parse_agent
from agent_skills.errors import SkillStoreError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".agent-skills.json"
CONFIG_ENV_VAR = "AGENT_SKILLS_CONFIG"

# CLI spelling -> model field
_KEY_ALIASES = {
    "default-agent": "default_agent",
    "defaultAgent": "default_agent",
    "default_agent": "default_agent",
    "agents": "agents",
    "auto-update": "auto_update",
    "autoUpdate": "auto_update",
    "auto_update": "auto_update",
}

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


class Configuration(BaseModel):
    """Persisted user preferences."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    default_agent: str = Field(default=PRIMARY_AGENT.value, alias="defaultAgent")
    agents: Optional[List[str]] = None
    auto_update: bool = Field(default=False, alias="autoUpdate")


def default_config_path() -> Path:
    """Config file location, honouring ``AGENT_SKILLS_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILENAME


class ConfigError(SkillStoreError):
    """Raised for an unknown key or an invalid value on ``set``."""


def canonical_key(key: str) -> str:
    """Map a user-facing key spelling to the model field name.

    Raises:
        ConfigError: If the key is unknown.
    """
    field = _KEY_ALIASES.get(key.lstrip("-"))
    if field is None:
        raise ConfigError(f"Unknown config key: {key}")
    return field


class ConfigStore:
    """Lazily loaded, wholesale-persisted configuration.

    A missing or corrupt file yields defaults; corruption is logged, never
    raised.

    Args:
        path: Config file path (default: ``~/.agent-skills.json``).
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else default_config_path()
        self._config: Optional[Configuration] = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Configuration:
        """Return the configuration, reading the file on first use."""
        if self._config is None:
            self._config = self._read()
        return self._config

    def _read(self) -> Configuration:
        if not self._path.exists():
            return Configuration()

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("top level is not an object")
            return Configuration.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Could not load config file %s: %s", self._path, e)
            return Configuration()

    def save(self, config: Configuration) -> None:
        """Write the whole configuration atomically.

        Raises:
            OSError: If the file cannot be written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(by_alias=True, exclude_none=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=self._path.name + ".", suffix=".tmp", dir=str(self._path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        self._config = config
        logger.info("Saved config to %s", self._path)

    def get(self, key: str) -> Any:
        """Get a value by any accepted key spelling."""
        return getattr(self.load(), canonical_key(key))

    def set(self, key: str, value: Any) -> Configuration:
        """Validate, apply, and persist a single value.

        Args:
            key: ``default-agent``, ``agents`` or ``auto-update`` (camelCase
                spellings are accepted too).
            value: New value; strings are parsed (comma lists, booleans).

        Returns:
            The updated Configuration.

        Raises:
            ConfigError: If the key is unknown or the value is invalid.
        """
        field = canonical_key(key)
        config = self.load()

        if field == "default_agent":
            agent = parse_agent(str(value))
            if agent is None:
                raise ConfigError(
                    f"Invalid agent: {value}. Valid agents: {', '.join(agent_names())}"
                )
            updated = config.model_copy(update={"default_agent": agent.value})
        elif field == "agents":
            tokens = value if isinstance(value, list) else str(value).split(",")
            parsed = []
            for token in (t.strip() for t in tokens):
                if not token:
                    continue
                agent = parse_agent(token)
                if agent is None:
                    raise ConfigError(
                        f"Invalid agent: {token}. Valid agents: {', '.join(agent_names())}"
                    )
                if agent.value not in parsed:
                    parsed.append(agent.value)
            updated = config.model_copy(update={"agents": parsed or None})
        else:
            updated = config.model_copy(update={"auto_update": _parse_bool(value)})

        self.save(updated)
        return updated


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean value: {value}")
