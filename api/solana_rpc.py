"""Minimal Solana JSON-RPC client: broadcast and wait for confirmation."""

import asyncio
import json
from typing import Optional

import httpx

from api.config import Settings
from api.errors import NetworkError
from api.jsonrpc import pick_result, rpc_body, rpc_post
from api.log import get_logger

logger = get_logger("relay.solana")

CONFIRMED_LEVELS = ("confirmed", "finalized")


class SolanaRpcClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self.url = settings.rpc_endpoint
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.request_timeout, transport=self._transport)

    async def send_raw_transaction(self, signed_tx: str) -> str:
        body = rpc_body("sendTransaction", [
            signed_tx,
            {"encoding": "base64", "skipPreflight": False, "preflightCommitment": "confirmed"},
        ])
        async with self._client() as c:
            st, txt, j = await rpc_post(c, self.url, body, ctx="Solana RPC", error_cls=NetworkError)
        signature = pick_result(st, txt, j, ctx="Solana RPC", error_cls=NetworkError)
        if not isinstance(signature, str) or not signature:
            raise NetworkError(f"Solana RPC returned an unexpected result: {json.dumps(signature)[:200]}")
        return signature

    async def confirm_transaction(self, signature: str, commitment: str = "confirmed") -> None:
        """Poll ``getSignatureStatuses`` until ``signature`` reaches ``commitment``.

        Raises NetworkError when the transaction failed on-chain or the
        deadline passes first.
        """
        wanted = CONFIRMED_LEVELS[CONFIRMED_LEVELS.index(commitment):]
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.confirm_timeout
        body = rpc_body("getSignatureStatuses", [[signature], {"searchTransactionHistory": False}])

        async with self._client() as c:
            while True:
                st, txt, j = await rpc_post(c, self.url, body, ctx="Solana RPC", error_cls=NetworkError)
                result = pick_result(st, txt, j, ctx="Solana RPC", error_cls=NetworkError)
                values = result.get("value") if isinstance(result, dict) else None
                if not isinstance(values, list) or not values or not isinstance(values[0], (dict, type(None))):
                    logger.error("Malformed getSignatureStatuses result: %s", txt[:500])
                    raise NetworkError(
                        f"Solana RPC returned malformed getSignatureStatuses result: {json.dumps(result)[:200]}"
                    )
                status = values[0]
                if status:
                    if status.get("err"):
                        raise NetworkError(f"Transaction {signature} failed: {json.dumps(status['err'])}")
                    if status.get("confirmationStatus") in wanted:
                        logger.info("Transaction %s reached %s", signature, status["confirmationStatus"])
                        return

                if loop.time() >= deadline:
                    raise NetworkError(
                        f"Transaction {signature} was not {commitment} "
                        f"within {self.settings.confirm_timeout:g}s"
                    )
                await asyncio.sleep(self.settings.confirm_poll_interval)
