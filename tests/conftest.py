"""Shared fixtures: fake Privy / Solana upstreams served through httpx.MockTransport."""
from __future__ import annotations

import base64
import json
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction, VersionedTransaction

from api.config import Settings
from app import create_app

APP_ID = "app-test-123"
APP_SECRET = "secret-do-not-leak"
WALLET_ID = "wallet-fee-payer-1"

SPONSORED_RPC = f"https://rpc.privy.io/solana/{APP_ID}"
SIGN_URL = f"https://api.privy.io/v1/wallets/{WALLET_ID}/rpc"
MAINNET_RPC = "https://api.mainnet-beta.solana.com"
DEVNET_RPC = "https://api.devnet.solana.com"

Handler = Callable[[httpx.Request, Optional[dict]], httpx.Response]


class FakeUpstream:
    """Records every outbound call and answers from per-URL handlers."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Optional[dict]]] = []
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Handler] = {}

    def on(self, url: str, handler: Handler) -> None:
        parsed = httpx.URL(url)
        self._routes[(parsed.host, parsed.path)] = handler

    def calls_to(self, url: str) -> List[Optional[dict]]:
        return [body for called, body in self.calls if called == url]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.calls.append((str(request.url), body))
        self.requests.append(request)
        handler = self._routes.get((request.url.host, request.url.path))
        if handler is None:
            return httpx.Response(404, text=f"no fake route for {request.url}")
        return handler(request, body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def rpc_result(value) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": value})


def rpc_error(code: int, message: str) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": code, "message": message}})


def signature_status(confirmation: Optional[str], err=None) -> httpx.Response:
    value = None
    if confirmation is not None or err is not None:
        value = {"slot": 1, "confirmations": None, "err": err, "confirmationStatus": confirmation}
    return rpc_result({"context": {"slot": 1}, "value": [value]})


def make_settings(**overrides) -> Settings:
    values = dict(
        privy_app_id=APP_ID,
        privy_app_secret=APP_SECRET,
        fee_payer_wallet_id=WALLET_ID,
        confirm_timeout=1.0,
        confirm_poll_interval=0.0,
    )
    values.update(overrides)
    return Settings(**values)


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def unsigned_transfer(partially_signed: bool = False) -> str:
    """A transfer whose fee payer has not signed yet."""
    fee_payer = Pubkey.new_unique()
    sender = Keypair()
    ix = transfer(TransferParams(from_pubkey=sender.pubkey(), to_pubkey=Pubkey.new_unique(), lamports=1_000))
    tx = Transaction.new_unsigned(Message.new_with_blockhash([ix], fee_payer, Hash.default()))
    if partially_signed:
        tx.partial_sign([sender], Hash.default())
    return b64(bytes(tx))


def unsigned_v0_transfer() -> str:
    """A v0 (versioned) transfer with every signature slot still empty."""
    fee_payer = Pubkey.new_unique()
    sender = Pubkey.new_unique()
    ix = transfer(TransferParams(from_pubkey=sender, to_pubkey=Pubkey.new_unique(), lamports=1_000))
    message = MessageV0.try_compile(fee_payer, [ix], [], Hash.default())
    signatures = [Signature.default()] * message.header.num_required_signatures
    return b64(bytes(VersionedTransaction.populate(message, signatures)))


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def build_client(upstream):
    def _build(**overrides) -> TestClient:
        app = create_app(make_settings(**overrides), transport=upstream.transport)
        return TestClient(app)

    return _build
