"""Capacity-bounded OTP store with lazy expiry and atomic JSON persistence."""

from __future__ import annotations

import enum
import hmac
import json
import logging
import os
import tempfile
import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

from whatsapp_otp.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def _to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _from_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=UTC)


@dataclass(frozen=True)
class OtpRecord:
    """One outstanding OTP.  Never mutated; replaced or removed instead."""

    identity: str
    code: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def to_json(self) -> dict:
        return {
            "identity": self.identity,
            "code": self.code,
            "issuedAt": _to_millis(self.issued_at),
            "expiresAt": _to_millis(self.expires_at),
        }

    @classmethod
    def from_json(cls, data: dict) -> OtpRecord:
        """Parse one stored entry; ``issuedAt`` is optional and defaults to ``expiresAt``."""
        expires_at = _from_millis(int(data["expiresAt"]))
        issued = data.get("issuedAt")
        return cls(
            identity=str(data["identity"]),
            code=str(data["code"]),
            issued_at=_from_millis(int(issued)) if issued is not None else expires_at,
            expires_at=expires_at,
        )


class VerifyOutcome(enum.Enum):
    VERIFIED = "verified"
    INVALID = "invalid"
    EXPIRED = "expired"


class OtpStore:
    """Single-process OTP store.

    Records live in an insertion-ordered index keyed by identity, which
    gives one record per identity and oldest-first eviction for free.
    Every public operation runs under one lock as a whole
    read-modify-persist unit.  When *path* is set the index is loaded
    from it once and rewritten atomically after each mutation; a failed
    write raises :class:`StorageError` and rolls the index back.
    """

    def __init__(
        self,
        path: Path | str | None = None,
        capacity: int = DEFAULT_CAPACITY,
        clock: Clock = utcnow,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._path = Path(path) if path is not None else None
        self._capacity = capacity
        self._clock = clock
        self._lock = threading.Lock()
        self._records: OrderedDict[str, OtpRecord] = OrderedDict()
        if self._path is not None:
            self._load(self._path)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # ── Operations ───────────────────────────────────────

    def issue(self, identity: str, code: str, ttl_minutes: int) -> OtpRecord:
        """Store *code* for *identity*, replacing any earlier record.

        The replaced record is invalidated even if it has not expired.
        If the store is then over capacity, the oldest-inserted record
        is evicted.
        """
        if ttl_minutes <= 0:
            raise ValidationError("ttl_minutes must be positive")
        with self._lock:
            snapshot = self._records.copy()
            now = self._clock()
            record = OtpRecord(
                identity=identity,
                code=code,
                issued_at=now,
                expires_at=now + timedelta(minutes=ttl_minutes),
            )
            if self._records.pop(identity, None) is not None:
                logger.info("Superseded previous OTP for %s", identity)
            self._records[identity] = record
            self._evict_over_capacity()
            self._commit(snapshot)
        logger.info("OTP issued for %s, expires at %s", identity, record.expires_at.isoformat())
        logger.debug("OTP for %s: %s", identity, code)
        return record

    def check(self, identity: str, candidate: str) -> VerifyOutcome:
        """Verify and consume *candidate*, reporting why it failed if it did.

        All expired records are purged first.  A wrong code leaves the
        identity's record in place for further attempts.
        """
        with self._lock:
            snapshot = self._records.copy()
            expired = self._purge_expired()
            record = self._records.get(identity)
            if record is not None and hmac.compare_digest(
                record.code.encode("utf-8"), candidate.encode("utf-8")
            ):
                del self._records[identity]
                outcome = VerifyOutcome.VERIFIED
            elif identity in expired:
                outcome = VerifyOutcome.EXPIRED
            else:
                outcome = VerifyOutcome.INVALID
            if expired or outcome is VerifyOutcome.VERIFIED:
                self._commit(snapshot)
        logger.info("OTP verification for %s: %s", identity, outcome.value)
        return outcome

    def verify(self, identity: str, candidate: str) -> bool:
        """Return ``True`` and consume the record if *candidate* matches."""
        return self.check(identity, candidate) is VerifyOutcome.VERIFIED

    def list_active(self) -> list[OtpRecord]:
        """Purge expired records and return a snapshot of the rest, oldest first."""
        with self._lock:
            snapshot = self._records.copy()
            if self._purge_expired():
                self._commit(snapshot)
            return list(self._records.values())

    # ── Internals (caller holds the lock) ────────────────

    def _purge_expired(self) -> set[str]:
        now = self._clock()
        expired = {ident for ident, rec in self._records.items() if rec.is_expired(now)}
        for ident in expired:
            del self._records[ident]
        if expired:
            logger.info("Purged %d expired OTP(s)", len(expired))
        return expired

    def _commit(self, snapshot: OrderedDict[str, OtpRecord]) -> None:
        try:
            self._persist()
        except StorageError:
            self._records = snapshot
            raise

    def _evict_over_capacity(self) -> bool:
        evicted_any = False
        while len(self._records) > self._capacity:
            evicted, _ = self._records.popitem(last=False)
            logger.info("Store at capacity (%d), evicted OTP for %s", self._capacity, evicted)
            evicted_any = True
        return evicted_any

    def _load(self, path: Path) -> None:
        if not path.exists():
            logger.info("OTP storage %s not found, starting empty", path)
            return
        try:
            with open(path, encoding="utf-8") as fh:
                raw = json.load(fh)
            if not isinstance(raw, list):
                raise ValueError("top-level JSON value must be a list")
            records = [OtpRecord.from_json(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise StorageError(f"Cannot load OTP storage from {path}: {exc}") from exc
        for record in records:
            self._records.pop(record.identity, None)
            self._records[record.identity] = record
        logger.info("Loaded %d OTP record(s) from %s", len(self._records), path)
        # The file may predate a lower capacity setting.
        if self._evict_over_capacity():
            self._persist()

    def _persist(self) -> None:
        if self._path is None:
            return
        payload = [record.to_json() for record in self._records.values()]
        directory = self._path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("Failed to write OTP storage %s: %s", self._path, exc)
            raise StorageError(f"Cannot write OTP storage to {self._path}: {exc}") from exc
