"""Exceptions raised by the digest producer and the presence registry."""


class RxProofError(Exception):
    """Base class for every RxProof failure."""


class InvalidInput(RxProofError):
    """The file could not be read or was refused by the upload policy. Never reaches the registry."""


class FileTooLarge(InvalidInput):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"File is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit


class UnsupportedFileType(InvalidInput):
    def __init__(self, content_type: str) -> None:
        super().__init__(f"Unsupported file type: {content_type or 'unknown'}")
        self.content_type = content_type


class SubmissionRejected(RxProofError):
    """A record call did not commit. No state changed; retrying with the same digest is safe."""


class LedgerUnavailable(RxProofError):
    """A read could not reach the ledger (unknown digests are not an error, they answer False)."""
