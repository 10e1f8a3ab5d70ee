"""
JSON-file backed store of Spotify credentials keyed by Telegram user id.

The whole mapping lives in memory and every mutation rewrites the backing file
before returning, so a record is durable once ``set``/``delete`` complete.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from nowplaying.core.errors import PersistenceError
from nowplaying.models.credential import CredentialRecord
from nowplaying.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


def _write_atomic(path: Path, contents: str) -> None:
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(contents)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class CredentialStore:
    """Single owner of the user id -> token pair mapping."""

    def __init__(
        self, path: str | Path, *, cipher: TokenCipherService | None = None
    ) -> None:
        self._path = Path(path)
        self._cipher = cipher
        self._records: Dict[str, CredentialRecord] = {}
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._records)

    async def load(self) -> None:
        """
        Populate the store from disk.

        A missing file means nobody has authorized yet. Any other read or parse
        failure is logged and leaves the store empty.
        """
        async with self._lock:
            self._records = {}
            try:
                raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
            except FileNotFoundError:
                logger.info("No credential file at %s; starting empty", self._path)
                return
            except OSError:
                logger.exception("Error loading credentials from %s", self._path)
                return

            try:
                payload = json.loads(raw)
            except ValueError:
                logger.exception("Credential file %s is not valid JSON", self._path)
                return
            if not isinstance(payload, dict):
                logger.error("Credential file %s does not hold an object", self._path)
                return

            for user_id, entry in payload.items():
                try:
                    self._records[str(user_id)] = self._decode(entry)
                except (KeyError, TypeError, ValueError):
                    logger.warning(
                        "Skipping unreadable credential record",
                        extra={"user_id": user_id},
                    )
            logger.info("Loaded %d credential records", len(self._records))

    def get(self, user_id: str) -> Optional[CredentialRecord]:
        return self._records.get(user_id)

    def has(self, user_id: str) -> bool:
        return user_id in self._records

    def items(self) -> List[Tuple[str, CredentialRecord]]:
        """Snapshot of all records; safe to iterate while the store mutates."""
        return list(self._records.items())

    async def set(
        self,
        user_id: str,
        record: CredentialRecord,
        *,
        expected: CredentialRecord | None = None,
    ) -> bool:
        """
        Upsert ``record`` and persist the whole store.

        When ``expected`` is given the write only happens if the current record
        still equals it, so a refresh computed from an old record cannot
        overwrite a newer authorization. Returns whether the write happened.
        """
        async with self._lock:
            if expected is not None and self._records.get(user_id) != expected:
                return False
            previous = self._records.get(user_id)
            self._records[user_id] = record
            try:
                await self._persist()
            except PersistenceError:
                self._restore(user_id, previous)
                raise
            return True

    async def delete(
        self, user_id: str, *, expected: CredentialRecord | None = None
    ) -> bool:
        """Remove a record and persist; ``expected`` behaves as in :meth:`set`."""
        async with self._lock:
            current = self._records.get(user_id)
            if current is None:
                return False
            if expected is not None and current != expected:
                return False
            del self._records[user_id]
            try:
                await self._persist()
            except PersistenceError:
                self._restore(user_id, current)
                raise
            return True

    def _restore(self, user_id: str, previous: CredentialRecord | None) -> None:
        # Memory must keep matching the file after a failed write.
        if previous is None:
            self._records.pop(user_id, None)
        else:
            self._records[user_id] = previous

    def _encode(self, record: CredentialRecord) -> Dict[str, str]:
        if self._cipher is not None:
            return self._cipher.seal(record)
        return record.model_dump(by_alias=True)

    def _decode(self, entry: Any) -> CredentialRecord:
        if not isinstance(entry, dict):
            raise TypeError("Credential entry must be an object")
        if self._cipher is not None:
            return self._cipher.unseal(entry)
        return CredentialRecord.model_validate(entry)

    async def _persist(self) -> None:
        serialized = json.dumps(
            {user_id: self._encode(record) for user_id, record in self._records.items()},
            indent=2,
        )
        try:
            await asyncio.to_thread(_write_atomic, self._path, serialized)
        except OSError as exc:
            logger.exception("Error saving credentials to %s", self._path)
            raise PersistenceError(f"Could not write {self._path}") from exc
        logger.debug("Credentials saved (%d records)", len(self._records))


__all__ = ["CredentialStore"]
