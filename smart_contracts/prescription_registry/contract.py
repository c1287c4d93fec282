# =============================================================================
#  PrescriptionRegistry — Algorand Smart Contract
#  -----------------------------------------------------------------------------
#  Standard  : ARC-4  (record(byte[])void, is_recorded(byte[])bool)
#  Events    : ARC-28 DigestRecorded(byte[],address,uint64)
#  Language  : Algorand Python  →  compiled to AVM bytecode via PuyaPy
# =============================================================================
#
#  PURPOSE
#  -------
#  Append-only presence set of SHA-256 digests of prescription files. The file
#  itself never touches the chain; only its 32-byte fingerprint does.
#
#  STORAGE MODEL
#  -------------
#    BoxMap<Bytes, arc4.Bool>   (key_prefix "rx")
#    │
#    ├── Key   : 32-byte SHA-256 digest of the file, computed off-chain
#    └── Value : arc4.Bool(True); a missing box is the "not recorded" state
#
#  Each box occupies: 2500 + 400 × (2 + 32 + 1) = 16 500 microALGO in MBR,
#  funded by the recording wallet in the same atomic group.
#
#  ACCESS
#  ------
#  Public. Any account may record any digest and anyone may query. A record
#  proves that a document existed by a given round, not who issued it.
#
# =============================================================================

from algopy import ARC4Contract, BoxMap, Bytes, Global, Txn, arc4

DIGEST_LENGTH = 32


class DigestRecorded(arc4.Struct):
    digest: arc4.DynamicBytes
    recorded_by: arc4.Address
    recorded_at: arc4.UInt64


class PrescriptionRegistry(ARC4Contract):
    """
    On-chain presence registry for prescription digests.

    There is no update, delete or listing method. Boxes can only be created.
    """

    def __init__(self) -> None:
        self.recorded = BoxMap(Bytes, arc4.Bool, key_prefix=b"rx")

    @arc4.abimethod
    def record(self, digest: Bytes) -> None:
        """
        Mark a digest as present.

        Parameters
        ----------
        digest : Bytes
            32-byte SHA-256 of the file.

        Behaviour
        ---------
        - Absent digest: creates the box and emits DigestRecorded.
        - Present digest: no-op, no event. The call still succeeds, so a
          retried or concurrent submission is harmless.
        """
        assert digest.length == DIGEST_LENGTH, "Digest must be 32 bytes"

        if digest not in self.recorded:
            self.recorded[digest] = arc4.Bool(True)
            arc4.emit(
                DigestRecorded(
                    digest=arc4.DynamicBytes(digest),
                    recorded_by=arc4.Address(Txn.sender),
                    recorded_at=arc4.UInt64(Global.latest_timestamp),
                )
            )

    @arc4.abimethod(readonly=True)
    def is_recorded(self, digest: Bytes) -> bool:
        """True iff the digest was recorded. Never fails, malformed input is simply absent."""
        return digest in self.recorded
