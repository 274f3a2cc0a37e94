from __future__ import annotations

from contextvars import ContextVar, Token

from store_client import StoreCredentials

_credentials_var: ContextVar[StoreCredentials | None] = ContextVar("store_credentials", default=None)


def set_request_credentials(credentials: StoreCredentials | None) -> Token:
    return _credentials_var.set(credentials)


def reset_request_credentials(token: Token) -> None:
    _credentials_var.reset(token)


def get_request_credentials() -> StoreCredentials | None:
    return _credentials_var.get()


def merge_credentials(
    access_key: str | None = None,
    context_token: str | None = None,
    language_id: str | None = None,
    shop_url: str | None = None,
) -> StoreCredentials:
    """Explicit tool arguments win over credentials injected by the HTTP route."""
    injected = get_request_credentials() or StoreCredentials()
    return StoreCredentials(
        access_key=access_key or injected.access_key,
        context_token=context_token or injected.context_token,
        language_id=language_id or injected.language_id,
        shop_url=shop_url or injected.shop_url,
    )


__all__ = [
    "set_request_credentials",
    "reset_request_credentials",
    "get_request_credentials",
    "merge_credentials",
]
