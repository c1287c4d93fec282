"""Thin client: apply the upload policy, hash locally, call the registry with the digest only."""

import logging
from dataclasses import dataclass
from typing import Optional

from rxproof.config import Settings
from rxproof.digest import compute_digest, digest_file, to_hex, validate_upload
from rxproof.errors import FileTooLarge
from rxproof.registry import InMemoryRegistry, Notification, PresenceRegistry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordOutcome:
    digest: bytes
    notification: Optional[Notification]

    @property
    def newly_recorded(self) -> bool:
        return self.notification is not None


def build_registry(settings: Settings) -> PresenceRegistry:
    """Registry backend selected by RXPROOF_BACKEND."""
    if settings.backend == "algorand":
        from rxproof.algorand import AlgorandRegistry

        log.info("Using Algorand registry app %s on %s", settings.app_id, settings.network)
        return AlgorandRegistry.from_settings(settings)
    log.info("Using in-memory registry (nothing is persisted)")
    return InMemoryRegistry()


class PrescriptionVerifier:
    """Fingerprint prescription files and record or verify them. The file itself never leaves the client."""

    def __init__(self, registry: PresenceRegistry, settings: Optional[Settings] = None) -> None:
        self.registry = registry
        self.settings = settings or Settings()

    def fingerprint(self, data: bytes, content_type: Optional[str] = None) -> bytes:
        """Digest of uploaded bytes. With a content type, the upload allow-list is enforced first."""
        if content_type is not None:
            validate_upload(
                content_type,
                len(data),
                self.settings.max_upload_bytes,
                self.settings.allowed_content_types,
            )
        elif len(data) > self.settings.max_upload_bytes:
            raise FileTooLarge(len(data), self.settings.max_upload_bytes)
        return compute_digest(data)

    def fingerprint_file(self, path) -> bytes:
        return digest_file(path, self.settings.max_upload_bytes)

    def record(self, digest: bytes) -> RecordOutcome:
        note = self.registry.record(digest)
        return RecordOutcome(digest=digest, notification=note)

    def record_bytes(self, data: bytes, content_type: Optional[str] = None) -> RecordOutcome:
        return self.record(self.fingerprint(data, content_type))

    def record_file(self, path) -> RecordOutcome:
        digest = self.fingerprint_file(path)
        log.debug("Recording %s from %s", to_hex(digest)[:12], path)
        return self.record(digest)

    def verify(self, digest: bytes) -> bool:
        return self.registry.is_recorded(digest)

    def verify_bytes(self, data: bytes, content_type: Optional[str] = None) -> bool:
        return self.verify(self.fingerprint(data, content_type))

    def verify_file(self, path) -> bool:
        return self.verify(self.fingerprint_file(path))
