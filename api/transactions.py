import base64
import binascii
from typing import Union

from solders.transaction import Transaction, VersionedTransaction

from api.config import MAINNET
from api.errors import ProviderError, ValidationError

EXPLORER_TX_URL = "https://solscan.io/tx/"


def decode_base64(blob: str, *, field: str) -> bytes:
    """Strictly decode a base64 transaction blob; anything else is a 400."""
    if not isinstance(blob, str) or not blob.strip():
        raise ValidationError(f"Missing {field}")
    try:
        return base64.b64decode(blob.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError(f"{field} is not valid base64")


def deserialize(raw: bytes) -> Union[Transaction, VersionedTransaction]:
    # Partially signed transactions are fine here; signatures are not checked.
    try:
        return Transaction.from_bytes(raw)
    except Exception as legacy_exc:
        try:
            return VersionedTransaction.from_bytes(raw)
        except Exception:
            raise ProviderError(f"Failed to deserialize transaction: {legacy_exc}") from legacy_exc


def reserialize(tx: Union[Transaction, VersionedTransaction]) -> str:
    """Serialize back to base64 without requiring all signatures."""
    return base64.b64encode(bytes(tx)).decode("ascii")


def explorer_url(signature: str, network: str) -> str:
    url = f"{EXPLORER_TX_URL}{signature}"
    if network != MAINNET:
        url += f"?cluster={network}"
    return url
