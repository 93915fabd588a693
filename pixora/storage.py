# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""A small persistent key-value store for settings and recent results.

Values are JSON, one file per key, in a directory per namespace.  The
store has a size ceiling per entry and a quota for the namespace.
Running out of room is not an error for the caller: the store clears
its namespace and tries once more with a smaller payload, and if that
fails too it stops persisting for the rest of the session.
"""

from __future__ import annotations

import errno
import json
import logging
from pathlib import Path
import re
from typing import Any

import arrow

from pixora.config import get_config
from pixora.pixora_exceptions import InvalidInputError, StorageQuotaError


log = logging.getLogger("storage")

_key_pattern = re.compile(r"^(?!\.+$)[A-Za-z0-9_.-]+$")


class KeyValueStore:
    """JSON values saved under string keys.

    Args:
        directory: where namespaces live.
        namespace: subdirectory for this store's entries.

    Keyword Args:
        max_entry_bytes: larger entries are refused.
        quota_bytes: total size allowed for the namespace.

    Any of these left as None is taken from the ``[storage]``
    configuration section.
    """

    def __init__(
        self,
        directory: str | Path,
        namespace: str | None = None,
        *,
        max_entry_bytes: int | None = None,
        quota_bytes: int | None = None,
    ):
        cfg = get_config()["storage"]
        self.namespace = namespace or cfg["namespace"]
        if not _key_pattern.match(self.namespace):
            raise InvalidInputError(f'Invalid storage namespace "{self.namespace}"')
        self.directory = Path(directory) / self.namespace
        self.max_entry_bytes = (
            cfg["max_entry_bytes"] if max_entry_bytes is None else max_entry_bytes
        )
        self.quota_bytes = cfg["quota_bytes"] if quota_bytes is None else quota_bytes
        self._enabled = True

    @property
    def enabled(self) -> bool:
        """False once persistence has been given up for this session."""
        return self._enabled

    def _path(self, key: str) -> Path:
        if not key or not _key_pattern.match(key):
            raise InvalidInputError(f'Invalid storage key "{key}"')
        return self.directory / f"{key}.json"

    @staticmethod
    def _encode(key: str, value: Any) -> bytes:
        record = {"key": key, "saved": arrow.utcnow().isoformat(), "value": value}
        try:
            return json.dumps(record).encode("utf-8")
        except (TypeError, ValueError) as err:
            raise InvalidInputError(f'Value for "{key}" is not JSON: {err}') from err

    def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(f.stem for f in self.directory.glob("*.json"))

    def usage(self, exclude: str | None = None) -> int:
        """Bytes used by the namespace, optionally not counting one key."""
        if not self.directory.is_dir():
            return 0
        return sum(
            f.stat().st_size for f in self.directory.glob("*.json") if f.stem != exclude
        )

    def _write(self, key: str, blob: bytes) -> None:
        if self.usage(exclude=key) + len(blob) > self.quota_bytes:
            raise StorageQuotaError()
        self.directory.mkdir(parents=True, exist_ok=True)
        try:
            self._path(key).write_bytes(blob)
        except OSError as err:
            if err.errno == errno.ENOSPC:
                raise StorageQuotaError(f"No room to save: {err}") from err
            raise

    def save(self, key: str, value: Any, *, minimal: Any = None) -> bool:
        """Persist a value.

        Args:
            key: letters, digits, dot, dash and underscore.
            value: anything JSON can represent.

        Keyword Args:
            minimal: a smaller stand-in for value to retry with if the
                quota is exceeded.  If omitted, value itself is retried.

        Returns:
            True if saved.  False if the entry is too big, or there is
            no room even after clearing the namespace, or persistence
            was already given up.

        Raises:
            InvalidInputError: bad key, or a value JSON cannot encode.
        """
        if not self._enabled:
            return False
        self._path(key)
        blob = self._encode(key, value)
        if len(blob) > self.max_entry_bytes:
            log.warning(
                'Not saving "%s": %d bytes is over the %d byte limit',
                key,
                len(blob),
                self.max_entry_bytes,
            )
            return False
        try:
            self._write(key, blob)
            return True
        except StorageQuotaError as err:
            log.warning('Saving "%s" failed (%s): clearing "%s"', key, err, self.namespace)
        self.clear()
        retry = self._encode(key, value if minimal is None else minimal)
        if len(retry) <= self.max_entry_bytes:
            try:
                self._write(key, retry)
                log.info('Saved minimal value for "%s" after clearing', key)
                return True
            except StorageQuotaError as err:
                log.warning('Retry of "%s" failed too: %s', key, err)
        log.warning('Disabling storage in "%s" for this session', self.namespace)
        self._enabled = False
        return False

    def load(self, key: str, default: Any = None) -> Any:
        """The saved value for key, or default if there is none."""
        if not self._enabled:
            return default
        f = self._path(key)
        if not f.exists():
            return default
        try:
            record = json.loads(f.read_text(encoding="utf-8"))
            return record["value"]
        except (ValueError, KeyError, TypeError) as err:
            log.warning('Ignoring unreadable entry "%s": %s', key, err)
            return default

    def saved_at(self, key: str) -> arrow.Arrow | None:
        """When a key was last saved, or None."""
        f = self._path(key)
        if not f.exists():
            return None
        try:
            return arrow.get(json.loads(f.read_text(encoding="utf-8"))["saved"])
        except (ValueError, KeyError, TypeError):
            return None

    def remove(self, key: str) -> bool:
        """Forget a key, returning whether it was there."""
        f = self._path(key)
        if not f.exists():
            return False
        f.unlink()
        return True

    def clear(self) -> int:
        """Remove every entry in the namespace, returning how many."""
        if not self.directory.is_dir():
            return 0
        # not through _path: files we did not write need not be valid keys
        files = list(self.directory.glob("*.json"))
        for f in files:
            f.unlink()
        if files:
            log.info('Cleared %d entries from "%s"', len(files), self.namespace)
        return len(files)
