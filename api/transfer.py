from dataclasses import dataclass
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from api.config import Settings
from api.errors import ConfigurationError, NetworkError, ProviderError, ValidationError
from api.log import get_logger
from api.privy import BATCH_SEND_OPTIONS, PrivyClient
from api.solana_rpc import SolanaRpcClient
from api.transactions import decode_base64, deserialize, explorer_url, reserialize

logger = get_logger("relay.transfer")

router = APIRouter()
managed_wallet_router = APIRouter()
batch_router = APIRouter()

FEE_PAYER_HINT = "Get the wallet ID from your Privy dashboard under Managed Wallets"


@dataclass
class RelayDependencies:
    settings: Settings
    privy: PrivyClient
    solana: SolanaRpcClient


def get_deps(request: Request) -> RelayDependencies:
    return request.app.state.deps


# ==== models ====
class SendWithSponsorIn(BaseModel):
    signedTransaction: Optional[str] = None
    walletAddress: Optional[str] = None


class ManagedWalletIn(BaseModel):
    serializedTransaction: Optional[str] = None
    walletAddress: Optional[str] = None


class BatchIn(BaseModel):
    # Any, so that a non-list is reported as a 400 by the handler.
    signedTx: Optional[Any] = None


class SignatureOut(BaseModel):
    signature: str
    message: str
    explorer: str


class SignatureResponse(BaseModel):
    data: SignatureOut


class BatchOut(BaseModel):
    signatures: List[str]
    count: int
    message: str


class BatchResponse(BaseModel):
    data: BatchOut


# ==== config checks ====
def _require_privy(settings: Settings, *, with_flags: bool = False) -> None:
    if not settings.privy_configured:
        raise ConfigurationError(
            "Privy credentials not configured",
            debug=settings.presence_flags() if with_flags else None,
        )


def _require_fee_payer(settings: Settings) -> str:
    if not settings.fee_payer_wallet_id:
        raise ConfigurationError(
            "Fee payer wallet ID not configured. Please set PRIVY_FEE_PAYER_WALLET_ID in your .env file",
            hint=FEE_PAYER_HINT,
            debug=settings.presence_flags(),
        )
    return settings.fee_payer_wallet_id


# ==== routes ====
@router.post("/transfer/send-with-sponsor", response_model=SignatureResponse)
async def send_with_sponsor(data: SendWithSponsorIn, deps: RelayDependencies = Depends(get_deps)):
    if not data.signedTransaction:
        raise ValidationError("Missing signedTransaction")
    decode_base64(data.signedTransaction, field="signedTransaction")
    _require_privy(deps.settings)

    logger.info("Sending transaction with Privy sponsorship (wallet=%s)", data.walletAddress)
    signature = await deps.privy.send_sponsored(data.signedTransaction)
    logger.info("Transaction sent: %s (gas sponsored by Privy)", signature)

    return {
        "data": {
            "signature": signature,
            "message": "Gasless transaction sent (gas paid by Privy)",
            "explorer": explorer_url(signature, deps.settings.network),
        }
    }


@managed_wallet_router.post("/transfer/signed-transaction-gasless", response_model=SignatureResponse)
async def signed_transaction_gasless(data: ManagedWalletIn, deps: RelayDependencies = Depends(get_deps)):
    settings = deps.settings
    if not data.serializedTransaction:
        raise ValidationError("Missing serializedTransaction")
    raw = decode_base64(data.serializedTransaction, field="serializedTransaction")
    _require_privy(settings, with_flags=True)
    wallet_id = _require_fee_payer(settings)

    logger.info("Processing transaction with Privy managed wallet as fee payer (wallet=%s)", data.walletAddress)
    logger.debug("Fee payer wallet ID: %s", wallet_id)

    try:
        tx = deserialize(raw)
        logger.debug(
            "Transaction instructions: %d, signatures before: %d",
            len(tx.message.instructions), len(tx.signatures),
        )
        signed_tx = await deps.privy.sign_transaction(wallet_id, reserialize(tx))
        logger.debug("Transaction signed by fee payer")

        signature = await deps.solana.send_raw_transaction(signed_tx)
        logger.info("Transaction sent: %s (gas paid by Privy managed wallet)", signature)

        await deps.solana.confirm_transaction(signature, "confirmed")
    except (ProviderError, NetworkError) as e:
        e.debug = settings.presence_flags()
        raise

    return {
        "data": {
            "signature": signature,
            "message": "Gasless transaction sent (gas paid by Privy managed wallet)",
            "explorer": explorer_url(signature, settings.network),
        }
    }


@batch_router.post("/transfer/signed-transaction-gasless", response_model=BatchResponse)
async def signed_transactions_batch(data: BatchIn, deps: RelayDependencies = Depends(get_deps)):
    items = data.signedTx
    if not isinstance(items, list) or not items:
        raise ValidationError("signedTx must be a non-empty array of base64 transactions")
    for i, item in enumerate(items, start=1):
        if not isinstance(item, str):
            raise ValidationError(f"signedTx[{i - 1}] must be a base64 string")
        decode_base64(item, field=f"signedTx[{i - 1}]")
    _require_privy(deps.settings)

    total = len(items)
    logger.info("Submitting batch of %d sponsored transactions", total)

    # Strictly sequential; the first failure aborts the whole batch.
    signatures: List[str] = []
    for i, item in enumerate(items, start=1):
        try:
            signature = await deps.privy.send_sponsored(item, BATCH_SEND_OPTIONS)
        except ProviderError as e:
            if signatures:
                logger.warning("Batch aborted at %d/%d; already sent: %s", i, total, ", ".join(signatures))
            raise ProviderError(
                f"Transaction {i} of {total} failed: {e.message}", upstream_status=e.upstream_status
            ) from e
        logger.info("Batch transaction %d/%d sent: %s", i, total, signature)
        signatures.append(signature)

    return {
        "data": {
            "signatures": signatures,
            "count": len(signatures),
            "message": f"{len(signatures)} gasless transactions sent (gas paid by Privy)",
        }
    }
