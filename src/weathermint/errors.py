from __future__ import annotations

from typing import Any, Optional


class MintError(RuntimeError):
    exit_code: int = 1


class ConfigurationError(MintError):
    exit_code = 2


class SelectorMismatchError(ConfigurationError):
    def __init__(self, selector: str, signature: str, computed: str) -> None:
        super().__init__(
            f"Selector {selector} does not match {signature} (computed {computed})"
        )
        self.selector = selector
        self.signature = signature
        self.computed = computed


class WeatherFetchError(MintError):
    exit_code = 3


class MalformedWeatherDataError(WeatherFetchError):
    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class AccountError(MintError):
    exit_code = 4


class UserRejectedError(AccountError):
    pass


class DispatchError(MintError):
    exit_code = 5


class RpcError(MintError):
    """Error object returned by a JSON-RPC endpoint."""

    def __init__(self, code: Optional[int], message: str, data: Any = None) -> None:
        super().__init__(f"RPC error {code}: {message}" if code is not None else f"RPC error: {message}")
        self.code = code
        self.rpc_message = message
        self.data = data

    @classmethod
    def from_payload(cls, payload: Any) -> "RpcError":
        if isinstance(payload, dict):
            return cls(payload.get("code"), str(payload.get("message", "")), payload.get("data"))
        return cls(None, str(payload))


# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001
