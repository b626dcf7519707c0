"""
Configuration helpers for the blockchain MCP server.

This module centralizes API key loading, base URLs, default timeouts and the
custom RPC override table. No secrets are stored in the repository; the API key
is read from environment or a local file if present.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Default connection settings
DEFAULT_API_BASE_URL = "https://api.tatum.io"
DEFAULT_BLOCKCHAINS_URL = "https://blockchains.tatum.io/blockchains.json"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_ATTEMPTS = 3

# API key handling
API_KEY_ENV_VAR = "TATUM_API_KEY"
API_KEY_FILE_ENV_VAR = "TATUM_API_KEY_FILE"
DEFAULT_API_KEY_FILE = "apikey.txt"
CUSTOM_RPC_ENV_VAR = "TATUM_CUSTOM_RPC_URLS"


def _load_timeout() -> float:
    raw_timeout = os.getenv("TATUM_HTTP_TIMEOUT")
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return DEFAULT_TIMEOUT
    return DEFAULT_TIMEOUT


def _load_retry_attempts() -> int:
    raw = os.getenv("TATUM_RETRY_ATTEMPTS")
    if raw:
        try:
            return max(0, int(raw))
        except ValueError:
            return DEFAULT_RETRY_ATTEMPTS
    return DEFAULT_RETRY_ATTEMPTS


def load_api_key() -> Optional[str]:
    """
    Load the vendor API key from environment or a local file.

    Returns:
        The API key string if available, otherwise None. The key is never logged
        or returned to callers.
    """
    env_key = os.getenv(API_KEY_ENV_VAR)
    if env_key:
        return env_key.strip()

    key_path = os.getenv(API_KEY_FILE_ENV_VAR, DEFAULT_API_KEY_FILE)
    if key_path:
        path = Path(key_path)
        if path.is_file():
            return path.read_text(encoding="utf-8").strip() or None

    return None


def parse_custom_rpc_urls(raw: Optional[str]) -> Dict[str, str]:
    """
    Parse the override table: ``chain,url`` entries separated by ``;``.

    Entries are split on the first comma so URLs may carry their own commas in
    query strings. Malformed entries are skipped; a repeated chain keeps the
    last URL.
    """
    overrides: Dict[str, str] = {}
    if not raw:
        return overrides
    for entry in raw.split(";"):
        entry = entry.strip()
        if not entry:
            continue
        chain, sep, url = entry.partition(",")
        chain = chain.strip()
        url = url.strip()
        if not sep or not chain or not url:
            logger.warning("Ignoring malformed custom RPC entry: %r", entry)
            continue
        overrides[chain] = url
    return overrides


@dataclass(frozen=True, slots=True)
class BlockchainMcpConfig:
    """Runtime configuration, loaded once and passed to each component."""

    api_key: Optional[str] = None
    api_base_url: str = DEFAULT_API_BASE_URL
    blockchains_url: str = DEFAULT_BLOCKCHAINS_URL
    timeout: float = DEFAULT_TIMEOUT
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    custom_rpc_urls: Dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"
    log_format: str = "json"  # json or plain

    def with_api_key(self, api_key: Optional[str]) -> "BlockchainMcpConfig":
        return replace(self, api_key=api_key)


def load_config() -> BlockchainMcpConfig:
    """Build a configuration value from the current environment."""
    return BlockchainMcpConfig(
        api_key=load_api_key(),
        api_base_url=os.getenv("TATUM_API_BASE_URL", DEFAULT_API_BASE_URL),
        blockchains_url=os.getenv("TATUM_BLOCKCHAINS_URL", DEFAULT_BLOCKCHAINS_URL),
        timeout=_load_timeout(),
        retry_attempts=_load_retry_attempts(),
        custom_rpc_urls=parse_custom_rpc_urls(os.getenv(CUSTOM_RPC_ENV_VAR)),
        log_level=os.getenv("BLOCKCHAIN_MCP_LOG_LEVEL", "INFO"),
        log_format=os.getenv("BLOCKCHAIN_MCP_LOG_FORMAT", "json"),
    )


default_config = load_config()
