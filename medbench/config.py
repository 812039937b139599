# File: config.py

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

from medbench.errors import ConfigError

# --- 1. Defaults ---

# The local blockchain node endpoint (Hardhat / Ganache / Anvil)
LOCAL_NODE_URL = 'http://127.0.0.1:8545'
# Written by the deploy script, read by the benchmark runners
ARTIFACTS_FILE = 'deployment_info.json'
# Solidity version both contracts are compiled with
SOLIDITY_VERSION = '0.8.20'
# Directory holding the .sol sources shipped with the package
CONTRACTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'contracts')
CONTRACT_NAMES = ('BasicMedicalContract', 'LightweightMedicalContract')

PATIENTS_FILE = os.path.join('data', 'patient.csv')
DOCTORS_FILE = os.path.join('data', 'doctor.csv')
# How many rows of each kind a run processes
ROW_LIMIT = 10000

PINATA_PIN_URL = 'https://api.pinata.cloud/pinning/pinFileToIPFS'
PINATA_TIMEOUT = 120

# One preset per contract variant: (contract name, pinning enabled, report file)
PRESETS = {
    'lightweight': ('LightweightMedicalContract', False, 'performanceLightweight.json'),
    'basic': ('BasicMedicalContract', True, 'performanceBasic.json'),
}
# Contracts whose add methods accept a trailing IPFS CID argument
CID_CONTRACTS = ('BasicMedicalContract',)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


@dataclass
class RunConfig:
    """Everything one benchmark run needs, fixed before the run starts."""
    contract_name: str
    output_file: str
    pinning_enabled: bool = False
    node_url: str = LOCAL_NODE_URL
    artifacts_file: str = ARTIFACTS_FILE
    # Overrides the address recorded in the artifacts file when set
    contract_address: Optional[str] = None
    patients_file: str = PATIENTS_FILE
    doctors_file: str = DOCTORS_FILE
    row_limit: int = ROW_LIMIT
    pinata_api_key: Optional[str] = field(default=None, repr=False)
    pinata_secret_api_key: Optional[str] = field(default=None, repr=False)
    pinata_url: str = PINATA_PIN_URL
    pinata_timeout: int = PINATA_TIMEOUT


@dataclass
class DeployConfig:
    node_url: str = LOCAL_NODE_URL
    solidity_version: str = SOLIDITY_VERSION
    contracts_dir: str = CONTRACTS_DIR
    contract_names: Tuple[str, ...] = CONTRACT_NAMES
    artifacts_file: str = ARTIFACTS_FILE


def configure_logging(level=logging.INFO):
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _env_int(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def load_run_config(preset):
    """
    Builds the RunConfig for one of the PRESETS.
    Values from the environment (or a .env file) win over the preset defaults.
    """
    if preset not in PRESETS:
        raise ConfigError(f"Unknown preset {preset!r}. Expected one of: {sorted(PRESETS)}")
    load_dotenv()
    contract_name, pinning_enabled, output_file = PRESETS[preset]

    row_limit = _env_int('MEDBENCH_ROW_LIMIT', ROW_LIMIT)
    if row_limit < 0:
        raise ConfigError(f"MEDBENCH_ROW_LIMIT must not be negative, got {row_limit}")

    pinning_enabled = _env_bool('MEDBENCH_PINNING', pinning_enabled)
    if pinning_enabled and contract_name not in CID_CONTRACTS:
        raise ConfigError(
            f"{contract_name} takes no IPFS CID; MEDBENCH_PINNING cannot be enabled for the {preset!r} preset."
        )

    return RunConfig(
        contract_name=contract_name,
        output_file=os.getenv('MEDBENCH_OUTPUT_FILE', output_file),
        pinning_enabled=pinning_enabled,
        node_url=os.getenv('MEDBENCH_NODE_URL', LOCAL_NODE_URL),
        artifacts_file=os.getenv('MEDBENCH_ARTIFACTS_FILE', ARTIFACTS_FILE),
        contract_address=os.getenv('MEDBENCH_CONTRACT_ADDRESS') or None,
        patients_file=os.getenv('MEDBENCH_PATIENTS_FILE', PATIENTS_FILE),
        doctors_file=os.getenv('MEDBENCH_DOCTORS_FILE', DOCTORS_FILE),
        row_limit=row_limit,
        pinata_api_key=os.getenv('PINATA_API_KEY'),
        pinata_secret_api_key=os.getenv('PINATA_SECRET_API_KEY'),
        pinata_url=os.getenv('PINATA_PIN_URL', PINATA_PIN_URL),
        pinata_timeout=_env_int('PINATA_TIMEOUT', PINATA_TIMEOUT),
    )


def load_deploy_config():
    load_dotenv()
    return DeployConfig(
        node_url=os.getenv('MEDBENCH_NODE_URL', LOCAL_NODE_URL),
        solidity_version=os.getenv('MEDBENCH_SOLIDITY_VERSION', SOLIDITY_VERSION),
        contracts_dir=os.getenv('MEDBENCH_CONTRACTS_DIR', CONTRACTS_DIR),
        artifacts_file=os.getenv('MEDBENCH_ARTIFACTS_FILE', ARTIFACTS_FILE),
    )
