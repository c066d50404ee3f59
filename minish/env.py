"""Shell environment: an ordered list of variables, some marked temporary."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

EXIT_STATUS_KEY = "__EXIT_STATUS__"


@dataclass
class EnvEntry:
    """One variable. ``value`` is None for a name exported without a value."""

    key: str
    value: str | None = None
    temporary: bool = False

    def render(self) -> str:
        """Return ``KEY=VALUE``, or just ``KEY`` when there is no value."""
        if self.value is None:
            return self.key
        return f"{self.key}={self.value}"


class Environment:
    """Ordered collection of environment variables."""

    def __init__(self, entries: Iterable[EnvEntry] = ()) -> None:
        self._entries: list[EnvEntry] = list(entries)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | Iterable[str]) -> Environment:
        """Build from a mapping or from ``KEY=VALUE`` strings."""
        if isinstance(environ, Mapping):
            pairs: Iterable[tuple[str, str]] = environ.items()
        else:
            pairs = (
                (key, value)
                for key, sep, value in (item.partition("=") for item in environ)
                if sep
            )
        return cls(EnvEntry(key, value) for key, value in pairs)

    def _find(self, key: str) -> EnvEntry | None:
        return next((entry for entry in self._entries if entry.key == key), None)

    def get(self, key: str) -> str | None:
        """Value of ``key``; ``""`` if set without a value, None if absent."""
        entry = self._find(key)
        if entry is None:
            return None
        return entry.value if entry.value is not None else ""

    def lookup(self, name: str) -> str:
        """Value used for ``$name`` expansion; ``?`` gives the last exit status."""
        if name == "?":
            return self.exit_status_text()
        entry = self._find(name)
        if entry is None or entry.value is None:
            return ""
        return entry.value

    def set(self, key: str, value: str | None) -> None:
        """Update ``key`` in place, or add it as a temporary entry at the front."""
        entry = self._find(key)
        if entry is not None:
            entry.value = value
            return
        self._entries.insert(0, EnvEntry(key, value, temporary=True))

    def remove(self, key: str) -> None:
        """Remove the first entry named ``key``, if any."""
        for index, entry in enumerate(self._entries):
            if entry.key == key:
                del self._entries[index]
                return

    def append(self, key: str, value: str | None) -> None:
        """Add a temporary entry at the end."""
        self._entries.append(EnvEntry(key, value, temporary=True))

    def save_exit_status(self, status: int) -> None:
        """Record the last exit status; a new record goes after the first entry."""
        text = str(status)
        entry = self._find(EXIT_STATUS_KEY)
        if entry is not None:
            entry.value = text
            return
        self._entries.insert(1, EnvEntry(EXIT_STATUS_KEY, text, temporary=True))

    def exit_status_text(self) -> str:
        """The recorded exit status as text, ``"0"`` when none is recorded."""
        entry = self._find(EXIT_STATUS_KEY)
        if entry is None or entry.value is None:
            return "0"
        return entry.value

    def cleanup(self) -> None:
        """Drop entries that have no value or are marked temporary."""
        self._entries = [
            entry
            for entry in self._entries
            if entry.value is not None and not entry.temporary
        ]

    def to_list(self) -> list[str]:
        """Render every entry as ``KEY=VALUE`` (or ``KEY``), in order."""
        return [entry.render() for entry in self._entries]

    def keys(self) -> list[str]:
        return [entry.key for entry in self._entries]

    def __iter__(self) -> Iterator[EnvEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return any(entry.key == key for entry in self._entries)