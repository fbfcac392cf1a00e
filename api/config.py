import os
from dataclasses import dataclass
from typing import Dict, Optional

from api.log import get_logger

logger = get_logger("relay.config")

MAINNET = "mainnet-beta"
DEVNET = "devnet"

RPC_ENDPOINTS = {
    MAINNET: "https://api.mainnet-beta.solana.com",
    DEVNET: "https://api.devnet.solana.com",
}

MODE_MANAGED_WALLET = "managed-wallet"
MODE_BATCH = "batch"

SPONSORSHIP_LABELS = {
    MODE_MANAGED_WALLET: "Privy Managed Wallet (Fee Payer)",
    MODE_BATCH: "Privy RPC API (sponsor: true)",
}


# ==== env loading: never fail at import time ====
def _get_env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _get_env_optional(name: str) -> Optional[str]:
    return _get_env_str(name) or None


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once at startup."""

    privy_app_id: Optional[str] = None
    privy_app_secret: Optional[str] = None
    fee_payer_wallet_id: Optional[str] = None
    network: str = MAINNET
    solana_rpc_url: Optional[str] = None
    gasless_mode: str = MODE_MANAGED_WALLET
    host: str = "0.0.0.0"
    port: int = 3000
    privy_rpc_base_url: str = "https://rpc.privy.io/solana"
    privy_api_base_url: str = "https://api.privy.io/v1"
    request_timeout: float = 30.0
    confirm_timeout: float = 60.0
    confirm_poll_interval: float = 0.5
    log_level: str = "INFO"

    @property
    def privy_configured(self) -> bool:
        return bool(self.privy_app_id and self.privy_app_secret)

    @property
    def fee_payer_configured(self) -> bool:
        return bool(self.fee_payer_wallet_id)

    @property
    def sponsorship_label(self) -> str:
        return SPONSORSHIP_LABELS[self.gasless_mode]

    @property
    def sponsored_rpc_url(self) -> str:
        return f"{self.privy_rpc_base_url.rstrip('/')}/{self.privy_app_id}"

    @property
    def rpc_endpoint(self) -> str:
        """Solana RPC node for the configured network."""
        if self.solana_rpc_url:
            return self.solana_rpc_url
        if self.network == MAINNET:
            return RPC_ENDPOINTS[MAINNET]
        return RPC_ENDPOINTS[DEVNET]

    def presence_flags(self) -> Dict[str, bool]:
        """Which credentials are set. Never the values themselves."""
        return {
            "appIdConfigured": bool(self.privy_app_id),
            "appSecretConfigured": bool(self.privy_app_secret),
            "feePayerConfigured": self.fee_payer_configured,
        }


def load_settings() -> Settings:
    mode = _get_env_str("GASLESS_MODE", MODE_MANAGED_WALLET).lower()
    if mode not in SPONSORSHIP_LABELS:
        logger.warning("Unknown GASLESS_MODE=%r, falling back to %s", mode, MODE_MANAGED_WALLET)
        mode = MODE_MANAGED_WALLET

    network = _get_env_str("SOLANA_NETWORK", MAINNET)
    if network not in RPC_ENDPOINTS and not _get_env_optional("SOLANA_RPC_URL"):
        logger.warning("Unknown SOLANA_NETWORK=%r, using the devnet endpoint", network)

    return Settings(
        privy_app_id=_get_env_optional("PRIVY_APP_ID"),
        privy_app_secret=_get_env_optional("PRIVY_APP_SECRET"),
        fee_payer_wallet_id=_get_env_optional("PRIVY_FEE_PAYER_WALLET_ID"),
        network=network,
        solana_rpc_url=_get_env_optional("SOLANA_RPC_URL"),
        gasless_mode=mode,
        host=_get_env_str("HOST", "0.0.0.0"),
        port=_get_env_int("PORT", 3000),
        privy_rpc_base_url=_get_env_str("PRIVY_RPC_BASE_URL", "https://rpc.privy.io/solana"),
        privy_api_base_url=_get_env_str("PRIVY_API_BASE_URL", "https://api.privy.io/v1"),
        request_timeout=_get_env_float("REQUEST_TIMEOUT_SECONDS", 30.0),
        confirm_timeout=_get_env_float("CONFIRM_TIMEOUT_SECONDS", 60.0),
        confirm_poll_interval=_get_env_float("CONFIRM_POLL_INTERVAL_SECONDS", 0.5),
        log_level=_get_env_str("LOG_LEVEL", "INFO").upper(),
    )
