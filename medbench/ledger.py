# File: ledger.py

import json
import logging
from dataclasses import dataclass

from web3 import Web3

from medbench.errors import ConfigError, LedgerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Receipt:
    gas_used: int
    status: int
    tx_hash: str = ''


def connect_to_blockchain(node_url):
    """
    Connects to the blockchain node.
    Returns the Web3 instance with the first node account as the sender.
    """
    logger.info(f"--- Connecting to Blockchain at {node_url} ---")
    w3 = Web3(Web3.HTTPProvider(node_url))

    if not w3.is_connected():
        raise LedgerError(
            f"Failed to connect to the blockchain at {node_url}. "
            "Please ensure your local blockchain (Hardhat/Ganache/Anvil) is running."
        )

    w3.eth.default_account = w3.eth.accounts[0]
    logger.info(f"Connected successfully. Using account: {w3.eth.default_account}")
    return w3


def load_deployment(artifacts_file, contract_name):
    """Reads the ABI and address of `contract_name` from the deploy artifacts."""
    logger.info(f"--- Loading {contract_name} from {artifacts_file} ---")
    try:
        with open(artifacts_file, 'r') as f:
            deployment_info = json.load(f)
    except FileNotFoundError:
        raise ConfigError(
            f"{artifacts_file} not found. Please run 'medbench-deploy' first."
        )

    try:
        entry = deployment_info[contract_name]
        return entry['abi'], entry['address']
    except KeyError:
        raise ConfigError(
            f"{artifacts_file} is malformed. Missing 'abi' or 'address' for {contract_name}."
        )


class LedgerClient:
    """Submits contract method calls and waits for their receipts."""

    def __init__(self, w3, contract):
        self.w3 = w3
        self.contract = contract

    @classmethod
    def from_deployment(cls, w3, abi, address):
        contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        return cls(w3, contract)

    def submit(self, method_name, args):
        try:
            return self.contract.functions[method_name](*args).transact()
        except Exception as e:
            raise LedgerError(f"{method_name} submission failed: {e}", method=method_name) from e

    def wait(self, tx_hash):
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)
        except Exception as e:
            raise LedgerError(f"Waiting for transaction {_hex(tx_hash)} failed: {e}") from e

        if receipt['status'] == 0:
            raise LedgerError(f"Transaction {_hex(tx_hash)} reverted.")
        return Receipt(gas_used=int(receipt['gasUsed']), status=receipt['status'], tx_hash=_hex(tx_hash))


def _hex(tx_hash):
    return tx_hash.hex() if hasattr(tx_hash, 'hex') else str(tx_hash)
