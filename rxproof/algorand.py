"""
Presence registry backed by the PrescriptionRegistry application on Algorand.

Reads go straight to algod's box endpoint (no transaction, no fee). Writes are
an atomic group: an optional payment funding the box minimum balance, then the
ARC-4 ``record(byte[])void`` call.
"""

import base64
import logging
from typing import Iterable, Optional

import requests
from algosdk import abi, account, encoding, logic, mnemonic, transaction
from algosdk.atomic_transaction_composer import (
    AccountTransactionSigner,
    AtomicTransactionComposer,
    TransactionWithSigner,
)
from algosdk.error import AlgodHTTPError, ConfirmationTimeoutError, TransactionRejectedError
from algosdk.v2client import algod

from rxproof.config import Settings
from rxproof.digest import DIGEST_SIZE, is_digest, to_hex
from rxproof.errors import LedgerUnavailable, SubmissionRejected
from rxproof.registry import Notification, PresenceRegistry

log = logging.getLogger(__name__)

# ── Application ABI ───────────────────────────────────────────────────────────
BOX_PREFIX = b"rx"
RECORD_METHOD = abi.Method.from_signature("record(byte[])void")
EVENT_SIGNATURE = "DigestRecorded(byte[],address,uint64)"
EVENT_SELECTOR = encoding.checksum(EVENT_SIGNATURE.encode())[:4]
EVENT_TYPE = abi.ABIType.from_string("(byte[],address,uint64)")

# Box MBR: 2500 + 400 × (name length + value length) microAlgo, value is one arc4.Bool byte
BOX_MBR = 2500 + 400 * (len(BOX_PREFIX) + DIGEST_SIZE + 1)


def box_name(digest: bytes) -> bytes:
    return BOX_PREFIX + bytes(digest)


def parse_notification(logs: Iterable[str]) -> Optional[Notification]:
    """Find the DigestRecorded event among base64 transaction logs."""
    for entry in logs:
        raw = base64.b64decode(entry)
        if raw[:4] != EVENT_SELECTOR:
            continue
        digest, recorded_by, recorded_at = EVENT_TYPE.decode(raw[4:])
        return Notification(digest=bytes(digest), recorded_by=recorded_by, recorded_at=int(recorded_at))
    return None


class AlgorandRegistry(PresenceRegistry):
    """
    Registry client for one deployed application.

    Without a private key the registry is read-only and every record call is
    rejected before anything is submitted.
    """

    def __init__(
        self,
        app_id: int,
        algod_url: str,
        algod_token: str = "",
        private_key: Optional[str] = None,
        timeout: int = 10,
        wait_rounds: int = 4,
    ) -> None:
        self.app_id = app_id
        self.algod_url = algod_url.rstrip("/")
        self.algod_token = algod_token
        self.algod_client = algod.AlgodClient(algod_token, self.algod_url)
        self.timeout = timeout
        self.wait_rounds = wait_rounds
        self._private_key = private_key
        self.sender = account.address_from_private_key(private_key) if private_key else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AlgorandRegistry":
        private_key = mnemonic.to_private_key(settings.signer_mnemonic) if settings.signer_mnemonic else None
        return cls(
            app_id=settings.app_id,
            algod_url=settings.algod_url,
            algod_token=settings.algod_token,
            private_key=private_key,
            timeout=settings.http_timeout,
            wait_rounds=settings.wait_rounds,
        )

    @property
    def app_address(self) -> str:
        return logic.get_application_address(self.app_id)

    def is_recorded(self, digest: bytes) -> bool:
        if not is_digest(digest):
            return False
        name_b64 = base64.b64encode(box_name(digest)).decode()
        headers = {"X-Algo-API-Token": self.algod_token} if self.algod_token else {}
        try:
            resp = requests.get(
                f"{self.algod_url}/v2/applications/{self.app_id}/box",
                params={"name": f"b64:{name_b64}"},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise LedgerUnavailable(f"Could not reach algod at {self.algod_url}: {e}") from e
        if resp.status_code == 404:
            return False
        if resp.status_code != 200:
            raise LedgerUnavailable(f"algod answered {resp.status_code} for box lookup in app {self.app_id}")
        return True

    def _compose(self, digest: bytes, sp, fund_box: bool) -> AtomicTransactionComposer:
        signer = AccountTransactionSigner(self._private_key)
        atc = AtomicTransactionComposer()
        if fund_box:
            payment = transaction.PaymentTxn(self.sender, sp, self.app_address, BOX_MBR)
            atc.add_transaction(TransactionWithSigner(payment, signer))
        atc.add_method_call(
            app_id=self.app_id,
            method=RECORD_METHOD,
            sender=self.sender,
            sp=sp,
            signer=signer,
            method_args=[digest],
            boxes=[(self.app_id, box_name(digest))],
        )
        return atc

    def record(self, digest: bytes) -> Optional[Notification]:
        if not is_digest(digest):
            raise SubmissionRejected("Digest must be 32 bytes")
        if self._private_key is None:
            raise SubmissionRejected("No signing credential configured, registry is read-only")
        digest = bytes(digest)

        try:
            # Present is terminal, so skipping the box payment on a stale True is safe
            already = self.is_recorded(digest)
        except LedgerUnavailable as e:
            raise SubmissionRejected(str(e)) from e

        try:
            sp = self.algod_client.suggested_params()
            response = self._compose(digest, sp, fund_box=not already).execute(
                self.algod_client, self.wait_rounds
            )
        except (AlgodHTTPError, ConfirmationTimeoutError, TransactionRejectedError, OSError) as e:
            log.warning("Record of %s did not commit: %s", to_hex(digest)[:12], e)
            raise SubmissionRejected(f"Record call did not commit: {e}") from e

        result = response.abi_results[0]
        note = parse_notification((result.tx_info or {}).get("logs", []))
        if note is None:
            log.info("Digest %s already present in app %s (tx %s)", to_hex(digest)[:12], self.app_id, result.tx_id)
        else:
            log.info("Recorded digest %s in app %s (tx %s)", to_hex(digest)[:12], self.app_id, result.tx_id)
        return note
