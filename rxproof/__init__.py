"""RxProof: fingerprint prescription files and prove their existence on a ledger."""

__version__ = "0.1.0"
