# File: deploy.py

import json
import logging
import os
import sys

from solcx import compile_source, get_installed_solc_versions, install_solc, set_solc_version

from medbench.config import configure_logging, load_deploy_config
from medbench.errors import ConfigError, LedgerError
from medbench.ledger import connect_to_blockchain

logger = logging.getLogger(__name__)


def install_and_set_solc(version):
    """Makes `version` the active solc, downloading it first when missing."""
    logger.info(f"--- Checking for solc version {version} ---")
    installed = [str(v) for v in get_installed_solc_versions()]
    if version not in installed:
        logger.info(f"solc {version} is not installed. Installing...")
        install_solc(version)
    set_solc_version(version)
    logger.info(f"solc {version} is correctly set.")


def compile_contract(source_file, contract_name, solidity_version):
    """Compiles `source_file` and returns the (abi, bytecode) of `contract_name`."""
    logger.info(f"--- Compiling {source_file} ---")
    try:
        with open(source_file, 'r') as f:
            source_code = f.read()
    except FileNotFoundError:
        raise ConfigError(f"Contract source '{source_file}' not found.")

    compiled_sol = compile_source(
        source_code,
        output_values=['abi', 'bin'],
        solc_version=solidity_version,
    )

    # The output key from compile_source is <stdin>:<ContractName>
    contract_id = f'<stdin>:{contract_name}'
    if contract_id not in compiled_sol:
        raise ConfigError(
            f"Compilation of {source_file} produced no {contract_name}. "
            f"Available keys: {list(compiled_sol.keys())}"
        )

    logger.info(f"{contract_name} compiled successfully.")
    return compiled_sol[contract_id]['abi'], compiled_sol[contract_id]['bin']


def deploy_contract(w3, contract_name, abi, bytecode):
    """
    Sends the constructor transaction for `contract_name` and waits for it.
    Returns the new contract's address; a failed send or a reverted
    deployment raises LedgerError.
    """
    logger.info(f"--- Deploying {contract_name} ---")
    Contract = w3.eth.contract(abi=abi, bytecode=bytecode)

    try:
        tx_hash = Contract.constructor().transact()
    except Exception as e:
        raise LedgerError(
            f"Deployment transaction for {contract_name} failed: {e}. "
            "Check account funds or node configuration."
        ) from e
    logger.info(f"Deployment transaction sent. Hash: {tx_hash.hex()}")

    logger.info("Waiting for transaction receipt...")
    tx_receipt = w3.eth.wait_for_transaction_receipt(tx_hash)
    if tx_receipt['status'] == 0:
        raise LedgerError(f"Deployment of {contract_name} reverted.")

    contract_address = tx_receipt['contractAddress']
    logger.info(f"{contract_name} deployed to: {contract_address}")
    return contract_address


def save_deployment_artifacts(deployments, filename):
    """Writes `{contract_name: {abi, address}}` for the benchmark runners to load."""
    logger.info(f"--- Saving Artifacts to {filename} ---")
    with open(filename, 'w') as f:
        json.dump(deployments, f, indent=4)
    logger.info("Artifacts saved.")


def deploy_all(config, w3=None):
    """Compiles and deploys every contract in `config`. Returns the artifacts dict."""
    install_and_set_solc(config.solidity_version)
    if w3 is None:
        w3 = connect_to_blockchain(config.node_url)
    logger.info(f"🚀 Deploying contracts with account: {w3.eth.default_account}")

    deployments = {}
    for contract_name in config.contract_names:
        source_file = os.path.join(config.contracts_dir, f'{contract_name}.sol')
        abi, bytecode = compile_contract(source_file, contract_name, config.solidity_version)
        address = deploy_contract(w3, contract_name, abi, bytecode)
        deployments[contract_name] = {'abi': abi, 'address': address}

    save_deployment_artifacts(deployments, config.artifacts_file)
    return deployments


def main():
    configure_logging()
    try:
        deploy_all(load_deploy_config())
    except Exception as e:
        logger.exception(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
