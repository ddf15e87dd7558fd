# src/task_pinger/tasks/user_directory.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from ..errors import ConfigError, UnknownUserError

logger = logging.getLogger(__name__)


def _norm(value: str) -> str:
    return value.strip().lower()


class UserDirectory:
    """
    Bidirectional map between chat handles and Notion user ids.

    Built once at startup and read-only afterwards, so it is shared between
    threads without locking. Lookups are case- and whitespace-insensitive and
    return "" on a miss; callers decide whether a miss is fatal.
    """

    def __init__(self, handle_to_id: Mapping[str, str] | None = None) -> None:
        to_external: dict[str, str] = {}
        to_handle: dict[str, str] = {}

        for handle, user_id in (handle_to_id or {}).items():
            h, uid = _norm(handle), _norm(user_id)
            if not h or not uid:
                raise ConfigError(f"invalid user mapping {handle!r} -> {user_id!r}")
            to_external[h] = uid
            to_handle[uid] = h

        self._to_external = MappingProxyType(to_external)
        self._to_handle = MappingProxyType(to_handle)

    @classmethod
    def parse(cls, raw: str) -> "UserDirectory":
        """
        Build a directory from "handle=id" pairs separated by commas or whitespace:

            "@alice:example.org=9e8f4963-..., @bob:example.org=0724b18e-..."
        """
        pairs: dict[str, str] = {}
        for item in raw.replace(",", " ").split():
            handle, sep, user_id = item.partition("=")
            if not sep:
                raise ConfigError(f"invalid user mapping entry {item!r}, expected handle=id")
            pairs[handle] = user_id
        return cls(pairs)

    def __len__(self) -> int:
        return len(self._to_external)

    def to_external(self, handle: str) -> str:
        return self._to_external.get(_norm(handle), "")

    def to_handle(self, user_id: str) -> str:
        return self._to_handle.get(_norm(user_id), "")

    def resolve_all(self, handles: Iterable[str]) -> list[str]:
        """Resolve every handle to a user id; the first unknown handle raises UnknownUserError."""
        resolved: list[str] = []
        for handle in handles:
            user_id = self.to_external(handle)
            if not user_id:
                raise UnknownUserError(handle)
            resolved.append(user_id)
        return resolved
