import json
from typing import Any, Dict, Optional, Tuple, Type

import httpx

from api.errors import RelayError
from api.log import get_logger

logger = get_logger("relay.jsonrpc")

HEADERS = {"content-type": "application/json", "accept": "application/json"}


def rpc_body(method: str, params: Any, request_id: int = 1) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}


async def rpc_post(
    client: httpx.AsyncClient,
    url: str,
    body: Dict[str, Any],
    *,
    ctx: str,
    error_cls: Type[RelayError],
    **kwargs: Any,
) -> Tuple[int, str, Optional[Any]]:
    """POST ``body`` and return ``(status, text, parsed_json_or_None)``.

    Transport failures are raised as ``error_cls``; HTTP and JSON-RPC level
    failures are left for :func:`pick_result`.
    """
    headers = {**HEADERS, **kwargs.pop("headers", {})}
    try:
        r = await client.post(url, json=body, headers=headers, **kwargs)
    except httpx.TimeoutException as e:
        logger.error("%s timed out: %r", ctx, e)
        raise error_cls(f"{ctx} timed out") from e
    except httpx.HTTPError as e:
        logger.error("%s request failed: %r", ctx, e)
        raise error_cls(f"{ctx} request failed: {e}") from e

    text = r.text
    try:
        j = r.json()
    except ValueError:
        j = None
    return r.status_code, text, j


def pick_result(
    status: int,
    text: str,
    j: Optional[Any],
    *,
    ctx: str,
    error_cls: Type[RelayError],
) -> Any:
    """Return the JSON-RPC ``result`` or raise ``error_cls`` with the upstream message."""
    if not 200 <= status < 300:
        logger.error("%s HTTP %s: %s", ctx, status, text)
        raise error_cls(f"{ctx} error: {status} {text}", upstream_status=status)
    if not isinstance(j, dict):
        logger.error("%s non-JSON response: %s", ctx, text[:500])
        raise error_cls(f"{ctx} returned non-JSON response: {text[:200]}", upstream_status=status)
    if j.get("error"):
        logger.error("%s JSON-RPC error: %s", ctx, json.dumps(j["error"]))
        raise error_cls(f"RPC error: {json.dumps(j['error'])}", upstream_status=status)
    if "result" not in j:
        raise error_cls(f"{ctx}: JSON without 'result' → {json.dumps(j)[:300]}", upstream_status=status)
    return j["result"]
