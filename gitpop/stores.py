"""
gitpop stores: persisted popup state and configuration values.

Two stores are handed to a popup at construction:

- state store: remembers switch/option values between popups.
    get((popup, flag), default) -> value
    set((popup, flag), value)
- config store: authoritative value of config variables.
    get(name) -> ConfigEntry | None
    set(name, value)      ("unset" or "" removes the entry)

Implementations
- MemoryState / MemoryConfig: process-local dicts, used as defaults and in tests.
- FileState: MemoryState persisted as JSON, rewritten on every set().
- gitpop.git.GitConfig: config store backed by `git config`.

Writes are synchronous and last-write-wins; a popup is driven by a single
user, one key at a time.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import NamedTuple

logger = logging.getLogger(__name__)


class ConfigEntry(NamedTuple):
    """Value read from a configuration store."""
    value: str


def _split(key):
    if not isinstance(key, tuple) or len(key) != 2 or not all(isinstance(part, str) for part in key):
        raise TypeError(f"state key must be a (popup, flag) tuple of strings, not {key!r}")
    return key


class MemoryState:
    """In-memory state store keyed by (popup, flag)."""

    def __init__(self, data=None):
        self.data = {}
        for popup, values in (data or {}).items():
            self.data[popup] = dict(values)

    def get(self, key, default=None):
        popup, flag = _split(key)
        return self.data.get(popup, {}).get(flag, default)

    def set(self, key, value):
        popup, flag = _split(key)
        if not isinstance(value, bool | str):
            raise TypeError(f"state value must be a boolean or a string, not {type(value).__name__}")
        logger.debug(f"State {popup}.{flag} = {value!r}")
        self.data.setdefault(popup, {})[flag] = value


class FileState(MemoryState):
    """
    State store persisted as JSON: {"popup": {"flag": value}}.

    A missing file starts empty. The file is rewritten atomically (temporary
    file + rename) on every set().
    """

    def __init__(self, path):
        self.path = Path(path)
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"state file {str(self.path)!r} must hold a JSON object")
        super().__init__(data)

    def set(self, key, value):
        super().set(key, value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temporary = tempfile.mkstemp(dir=self.path.parent, prefix=".gitpop-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2, sort_keys=True)
            os.replace(temporary, self.path)
        except BaseException:
            os.unlink(temporary)
            raise


class MemoryConfig:
    """In-memory configuration store keyed by variable name."""

    def __init__(self, values=None):
        self.values = dict(values or {})

    def get(self, name):
        try:
            return ConfigEntry(self.values[name])
        except KeyError:
            return None

    def set(self, name, value):
        if not isinstance(value, str):
            raise TypeError(f"config value must be a string, not {type(value).__name__}")
        logger.debug(f"Config {name} = {value!r}")
        if value in ("", "unset"):
            self.values.pop(name, None)
        else:
            self.values[name] = value


__all__ = (
    "ConfigEntry",
    "MemoryState",
    "FileState",
    "MemoryConfig",
)
