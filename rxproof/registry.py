"""
Presence registry: an append-only set of digests.

Each key has two states, Absent and Present, and Present is terminal. There is
no update, delete or listing operation, so nothing about which files were
recorded can be learned except by asking about an exact digest.

Access policy is public: anyone may record and anyone may check. A successful
record proves a document existed at that time, not who legitimately issued it.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Mapping, Optional, Set

from rxproof.digest import is_digest, to_hex
from rxproof.errors import SubmissionRejected

log = logging.getLogger(__name__)

ACCESS_POLICY: Mapping[str, FrozenSet[str]] = {
    "anyone": frozenset({"record", "is_recorded"}),
}


@dataclass(frozen=True)
class Notification:
    """Audit record emitted when a digest first becomes present."""

    digest: bytes
    recorded_by: str
    recorded_at: int  # unix seconds

    def to_dict(self) -> dict:
        return {
            "digest": to_hex(self.digest),
            "recorded_by": self.recorded_by,
            "recorded_at": self.recorded_at,
        }


class PresenceRegistry(ABC):
    """Registry call interface shared by every ledger backend."""

    @abstractmethod
    def record(self, digest: bytes) -> Optional[Notification]:
        """
        Mark a digest present.

        Returns the notification emitted by this call, or None if the digest was
        already present (the call is then a no-op). Raises SubmissionRejected if
        the write did not commit; no partial state is left behind.
        """

    @abstractmethod
    def is_recorded(self, digest: bytes) -> bool:
        """True iff some caller recorded exactly this digest. Malformed digests answer False."""


class InMemoryLedger:
    """
    Shared state for the in-memory backend.

    The lock plays the part of the ledger's global transaction ordering: every
    record call applies atomically, and the first writer of a digest wins.
    """

    def __init__(self) -> None:
        self._present: Set[bytes] = set()
        self._log: List[Notification] = []
        self._lock = threading.Lock()

    def commit(self, digest: bytes, caller: str, timestamp: int) -> Optional[Notification]:
        with self._lock:
            if digest in self._present:
                return None
            note = Notification(digest=digest, recorded_by=caller, recorded_at=timestamp)
            self._present.add(digest)
            self._log.append(note)
            return note

    def contains(self, digest: bytes) -> bool:
        with self._lock:
            return digest in self._present

    def notifications(self) -> List[Notification]:
        """Snapshot of the audit log, as an external indexer would see it."""
        with self._lock:
            return list(self._log)


class InMemoryRegistry(PresenceRegistry):
    """One caller's view of an InMemoryLedger."""

    def __init__(
        self,
        ledger: Optional[InMemoryLedger] = None,
        caller: str = "anonymous",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ledger = ledger if ledger is not None else InMemoryLedger()
        self.caller = caller
        self._clock = clock

    def record(self, digest: bytes) -> Optional[Notification]:
        if not is_digest(digest):
            raise SubmissionRejected("Digest must be 32 bytes")
        note = self.ledger.commit(bytes(digest), self.caller, int(self._clock()))
        if note is None:
            log.debug("Digest %s already present, record is a no-op", to_hex(digest)[:12])
        else:
            log.info("Recorded digest %s for %s", to_hex(digest)[:12], self.caller)
        return note

    def is_recorded(self, digest: bytes) -> bool:
        if not is_digest(digest):
            return False
        return self.ledger.contains(bytes(digest))
