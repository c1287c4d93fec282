"""
Deploy PrescriptionRegistry.

Usage:
    algokit compile py smart_contracts/prescription_registry/contract.py --out-dir artifacts
    RXPROOF_NETWORK=localnet python -m smart_contracts.prescription_registry.deploy_config
    DEPLOYER_MNEMONIC="word1 word2 ..." python -m smart_contracts.prescription_registry.deploy_config

The printed App ID goes into RXPROOF_APP_ID for the API.
"""

import base64
import json
import logging
import os
import sys
from pathlib import Path

from algosdk import account, logic, mnemonic
from algosdk.transaction import (
    ApplicationCreateTxn,
    OnComplete,
    PaymentTxn,
    StateSchema,
    wait_for_confirmation,
)
from algosdk.v2client import algod

from rxproof.config import ALGOD_URL

logger = logging.getLogger(__name__)

ARTIFACTS_DIR = Path(__file__).parent / "artifacts"
ARC56_PATH = ARTIFACTS_DIR / "PrescriptionRegistry.arc56.json"
# Base minimum balance of the application account, boxes are funded per record
APP_MIN_BALANCE = 100_000


def deploy_localnet() -> int:
    """Deploy (or reuse) the app on AlgoKit LocalNet, funded by the LocalNet dispenser."""
    from algokit_utils import AlgoAmount, AlgorandClient, OperationPerformed, PaymentParams

    algorand = AlgorandClient.default_localnet()
    deployer = algorand.account.localnet_dispenser()

    app_factory = algorand.client.get_app_factory(
        app_spec=ARC56_PATH.read_text(),
        default_sender=deployer.address,
        default_signer=deployer.signer,
    )
    # Immutable registry: a changed program is deployed next to the old one, never over it
    app_client, result = app_factory.deploy(
        on_schema_break="append",
        on_update="append",
    )
    # A reused app is already funded
    if result.operation_performed in (OperationPerformed.Create, OperationPerformed.Replace):
        algorand.send.payment(
            PaymentParams(
                sender=deployer.address,
                receiver=app_client.app_address,
                amount=AlgoAmount.from_micro_algo(APP_MIN_BALANCE),
            )
        )
    logger.info("PrescriptionRegistry deployed to LocalNet, App ID: %s", app_client.app_id)
    return app_client.app_id


def _compile_programs(client: algod.AlgodClient) -> tuple:
    arc56 = json.loads(ARC56_PATH.read_text())

    def compile_teal(src_b64: str) -> bytes:
        src = base64.b64decode(src_b64).decode()
        return base64.b64decode(client.compile(src)["result"])

    approval_bytes = compile_teal(arc56["source"]["approval"])
    clear_b64 = arc56["source"].get("clear", "")
    clear_bytes = compile_teal(clear_b64) if clear_b64 else b"\x01"
    return approval_bytes, clear_bytes


def deploy_testnet(raw_mnemonic: str, algod_url: str = ALGOD_URL, algod_token: str = "") -> int:
    """Create the app with a plain algosdk ApplicationCreateTxn and fund its account."""
    private_key = mnemonic.to_private_key(raw_mnemonic)
    sender = account.address_from_private_key(private_key)
    logger.info("Deployer: %s", sender)

    client = algod.AlgodClient(algod_token, algod_url)
    approval_bytes, clear_bytes = _compile_programs(client)

    # State schema: BoxMap only, no global or local state
    txn = ApplicationCreateTxn(
        sender=sender,
        sp=client.suggested_params(),
        on_complete=OnComplete.NoOpOC,
        approval_program=approval_bytes,
        clear_program=clear_bytes,
        global_schema=StateSchema(num_uints=0, num_byte_slices=0),
        local_schema=StateSchema(num_uints=0, num_byte_slices=0),
    )
    tx_id = client.send_transaction(txn.sign(private_key))
    logger.info("Create transaction submitted: %s", tx_id)
    app_id = wait_for_confirmation(client, tx_id, wait_rounds=8)["application-index"]

    fund = PaymentTxn(sender, client.suggested_params(), logic.get_application_address(app_id), APP_MIN_BALANCE)
    fund_id = client.send_transaction(fund.sign(private_key))
    wait_for_confirmation(client, fund_id, wait_rounds=8)

    logger.info("PrescriptionRegistry deployed to TestNet, App ID: %s", app_id)
    logger.info("Explorer: https://testnet.explorer.perawallet.app/application/%s/", app_id)
    return app_id


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    if not ARC56_PATH.exists():
        logger.error("Missing %s, compile the contract first", ARC56_PATH)
        sys.exit(1)

    if os.getenv("RXPROOF_NETWORK", "testnet").strip().lower() == "localnet":
        app_id = deploy_localnet()
    else:
        raw_mnemonic = os.environ.get("DEPLOYER_MNEMONIC", "").strip()
        if not raw_mnemonic:
            logger.error("Set DEPLOYER_MNEMONIC to your 25-word mnemonic.")
            sys.exit(1)
        app_id = deploy_testnet(
            raw_mnemonic,
            os.getenv("RXPROOF_ALGOD_URL", ALGOD_URL),
            os.getenv("RXPROOF_ALGOD_TOKEN", ""),
        )
    print(f"RXPROOF_APP_ID={app_id}")


if __name__ == "__main__":
    main()
