# File: pinning.py

import logging

import requests

from medbench.config import PINATA_PIN_URL, PINATA_TIMEOUT
from medbench.errors import ConfigError, PinningError

logger = logging.getLogger(__name__)


class PinataPinner:
    """Pins raw bytes to IPFS through Pinata and returns the CID."""

    def __init__(self, api_key, secret_api_key, url=PINATA_PIN_URL, timeout=PINATA_TIMEOUT):
        if not api_key or not secret_api_key:
            raise ConfigError(
                "Pinning is enabled but PINATA_API_KEY / PINATA_SECRET_API_KEY are not set."
            )
        self.url = url
        self.timeout = timeout
        self.headers = {
            'pinata_api_key': api_key,
            'pinata_secret_api_key': secret_api_key,
        }

    def pin(self, payload, name='record.json'):
        files_payload = {'file': (name, payload, 'application/json')}
        try:
            response = requests.post(
                self.url, files=files_payload, headers=self.headers, timeout=self.timeout
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.RequestException as e:
            message = f"Pinata upload failed: {e}"
            if e.response is not None:
                message += f" | Status: {e.response.status_code}"
                if e.response.status_code == 401:
                    message = "Pinata authentication failed. Check API keys."
            raise PinningError(message) from e
        except ValueError as e:
            raise PinningError(f"Pinata returned a non-JSON response: {e}") from e

        if not isinstance(result, dict):
            raise PinningError(f"Pinata returned an unexpected response: {result!r}")
        cid = result.get('IpfsHash')
        if not cid:
            raise PinningError("Pinata upload failed: 'IpfsHash' not found.")
        logger.debug(f"Pinned {name} to IPFS. CID: {cid}")
        return cid


def build_pinner(config):
    """PinataPinner for the run, or None when pinning is disabled."""
    if not config.pinning_enabled:
        return None
    return PinataPinner(
        config.pinata_api_key,
        config.pinata_secret_api_key,
        url=config.pinata_url,
        timeout=config.pinata_timeout,
    )
