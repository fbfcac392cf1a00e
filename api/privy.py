"""Privy client: sponsored Solana RPC and managed-wallet signing."""

import json
from typing import Any, Dict, Optional

import httpx

from api.config import Settings
from api.errors import ProviderError
from api.jsonrpc import pick_result, rpc_body, rpc_post
from api.log import get_logger

logger = get_logger("relay.privy")

# Options sent with the single-transaction sponsored send.
SEND_OPTIONS: Dict[str, Any] = {
    "encoding": "base64",
    "preflightCommitment": "confirmed",
}

# Extra options for each item of a batch; retries are delegated to Privy.
BATCH_SEND_OPTIONS: Dict[str, Any] = {
    **SEND_OPTIONS,
    "skipPreflight": True,
    "maxRetries": 3,
    "sponsor": True,
}


class PrivyClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.request_timeout,
            transport=self._transport,
            auth=(self.settings.privy_app_id or "", self.settings.privy_app_secret or ""),
            headers={"privy-app-id": self.settings.privy_app_id or ""},
        )

    async def send_sponsored(self, signed_tx: str, options: Optional[Dict[str, Any]] = None) -> str:
        """Send a signed base64 transaction through Privy's sponsored RPC, return its signature."""
        body = rpc_body("sendTransaction", [signed_tx, options or SEND_OPTIONS])
        async with self._client() as c:
            st, txt, j = await rpc_post(
                c, self.settings.sponsored_rpc_url, body, ctx="Privy RPC", error_cls=ProviderError
            )
        logger.debug("Privy RPC response: %s", txt[:500])
        signature = pick_result(st, txt, j, ctx="Privy RPC", error_cls=ProviderError)
        if not isinstance(signature, str) or not signature:
            raise ProviderError(f"Privy RPC returned an unexpected result: {json.dumps(signature)[:200]}")
        return signature

    async def sign_transaction(self, wallet_id: str, transaction_b64: str) -> str:
        """Have the managed wallet co-sign as fee payer, return the signed base64 blob."""
        url = f"{self.settings.privy_api_base_url.rstrip('/')}/wallets/{wallet_id}/rpc"
        body = {
            "method": "signTransaction",
            "params": {"transaction": transaction_b64, "encoding": "base64"},
        }
        async with self._client() as c:
            st, txt, j = await rpc_post(c, url, body, ctx="Privy signTransaction", error_cls=ProviderError)

        if not 200 <= st < 300:
            logger.error("Privy signTransaction HTTP %s: %s", st, txt)
            raise ProviderError(f"Privy signTransaction error: {st} {txt}", upstream_status=st)
        if not isinstance(j, dict):
            raise ProviderError(f"Privy signTransaction returned non-JSON response: {txt[:200]}", upstream_status=st)

        data = j.get("data")
        signed = data.get("signed_transaction") if isinstance(data, dict) else None
        if not signed:
            raise ProviderError(f"Privy signTransaction: no signed_transaction → {json.dumps(j)[:300]}")
        return signed
