from __future__ import annotations

import contextvars
from dataclasses import dataclass

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
user_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("user_id", default=None)


@dataclass(frozen=True)
class RequestContextTokens:
    request_id: contextvars.Token[str | None]
    user_id: contextvars.Token[str | None]


def bind_request(request_id: str) -> RequestContextTokens:
    return RequestContextTokens(
        request_id=request_id_var.set(request_id),
        user_id=user_id_var.set(None),
    )


def unbind_request(tokens: RequestContextTokens) -> None:
    user_id_var.reset(tokens.user_id)
    request_id_var.reset(tokens.request_id)


def get_request_id() -> str | None:
    return request_id_var.get()


def get_user_id() -> str | None:
    return user_id_var.get()


def set_user_id(user_id: str | None) -> None:
    """Attach the authenticated caller to log records for the rest of the request."""
    user_id_var.set(user_id)
