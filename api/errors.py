from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base error rendered as a JSON body by the app's exception handler."""

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        debug: Optional[Dict[str, bool]] = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.debug = debug
        self.upstream_status = upstream_status

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.hint:
            body["hint"] = self.hint
        if self.debug is not None:
            body["debug"] = self.debug
        return body


class ValidationError(RelayError):
    """Missing or malformed request input."""

    status_code = 400


class ConfigurationError(RelayError):
    """A required credential or identifier is not configured."""


class ProviderError(RelayError):
    """Privy rejected the call, failed, or answered with something unusable."""


class NetworkError(RelayError):
    """The Solana network rejected the broadcast or did not confirm in time."""
