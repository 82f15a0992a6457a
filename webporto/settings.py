"""Site settings stored as key/value pairs."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace

from webporto.store import RecordNotFound


@dataclass
class Setting:
    key: str
    value: str = ""


class SettingRepository:
    """Settings keyed by ``key``; saving a key again overwrites its value."""

    def __init__(self) -> None:
        self._rows: dict[str, Setting] = {}
        self._lock = threading.Lock()

    def get_by_key(self, key: str) -> Setting:
        with self._lock:
            try:
                return replace(self._rows[key])
            except KeyError:
                raise RecordNotFound(f"setting {key!r} not found") from None

    def get_by_keys(self, keys: Iterable[str]) -> list[Setting]:
        wanted = set(keys)
        with self._lock:
            return [replace(s) for k, s in self._rows.items() if k in wanted]

    def get_all(self) -> list[Setting]:
        with self._lock:
            return [replace(s) for s in self._rows.values()]

    def save(self, setting: Setting) -> Setting:
        with self._lock:
            self._rows[setting.key] = replace(setting)
        return setting

    def save_many(self, settings: Iterable[Setting]) -> None:
        """Save all settings together."""
        batch = [replace(s) for s in settings]
        with self._lock:
            self._rows.update((s.key, s) for s in batch)


class SettingService:
    """Settings read and written as plain dictionaries."""

    def __init__(self, repository: SettingRepository) -> None:
        self._repo = repository

    def get_setting(self, key: str) -> str:
        return self._repo.get_by_key(key).value

    def get_settings(self, keys: Iterable[str]) -> dict[str, str]:
        return {s.key: s.value for s in self._repo.get_by_keys(keys)}

    def get_all_settings(self) -> dict[str, str]:
        return {s.key: s.value for s in self._repo.get_all()}

    def save_settings(self, updates: Mapping[str, str]) -> None:
        self._repo.save_many(Setting(key=k, value=v) for k, v in updates.items())