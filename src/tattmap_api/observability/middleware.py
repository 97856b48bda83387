from __future__ import annotations

import re
import time
import uuid
from collections.abc import Callable

from opentelemetry import trace
from opentelemetry.propagate import extract
from opentelemetry.trace import SpanKind
from opentelemetry.trace.status import Status, StatusCode
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from tattmap_api.observability.context import bind_request, get_user_id, unbind_request
from tattmap_api.observability.tracing import tracing_enabled

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:-]{0,127}$")

AccessLogFn = Callable[[dict[str, object]], None]


def _header(scope: Scope, name: bytes) -> str | None:
    for key, value in scope.get("headers") or []:
        if key == name:
            return value.decode("latin-1").strip()
    return None


def _incoming_request_id(scope: Scope) -> str | None:
    value = _header(scope, b"x-request-id")
    if value and _REQUEST_ID_RE.fullmatch(value):
        return value
    return None


def _route_template(scope: Scope) -> str:
    """Path with parameters left as placeholders, e.g. ``/tattoo-artist/{artist_id}``."""
    route = scope.get("route")
    template = getattr(route, "path", None)
    return template or scope.get("path") or ""


class RequestContextMiddleware:
    """Binds a request id (echoed back as a header) and the caller to every log line."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        header_name: str = "x-request-id",
        access_log: AccessLogFn | None = None,
    ) -> None:
        self._app = app
        self._header_name = header_name.lower().encode("ascii")
        self._access_log = access_log

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or str(uuid.uuid4())
        tokens = bind_request(request_id)
        start = time.perf_counter()
        status_code: int | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
                headers = list(message.get("headers") or [])
                headers.append((self._header_name, request_id.encode("ascii")))
                message["headers"] = headers
            await send(message)

        try:
            if tracing_enabled():
                await self._call_traced(scope, receive, send_wrapper, request_id, lambda: status_code)
            else:
                await self._app(scope, receive, send_wrapper)
        finally:
            if self._access_log is not None:
                self._access_log(
                    {
                        "method": scope.get("method"),
                        "path": scope.get("path"),
                        "route": _route_template(scope),
                        "query_string": (scope.get("query_string") or b"").decode(
                            "utf-8", errors="ignore"
                        ),
                        "status_code": status_code,
                        "duration_ms": round((time.perf_counter() - start) * 1000.0, 3),
                        "client": (scope.get("client") or [None, None])[0],
                        "authenticated": get_user_id() is not None,
                    }
                )
            unbind_request(tokens)

    async def _call_traced(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        request_id: str,
        get_status_code: Callable[[], int | None],
    ) -> None:
        carrier = {
            key.decode("latin-1"): value.decode("latin-1") for key, value in scope.get("headers") or []
        }
        method = scope.get("method") or "UNKNOWN"
        tracer = trace.get_tracer("tattmap_api")
        with tracer.start_as_current_span(
            name=f"{method} {scope.get('path') or ''}",
            context=extract(carrier),
            kind=SpanKind.SERVER,
            attributes={
                "http.method": method,
                "http.target": scope.get("path") or "",
                "request.id": request_id,
            },
        ) as span:
            try:
                await self._app(scope, receive, send)
            except Exception as exc:
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR))
                raise
            finally:
                # The router fills in the matched route once dispatch has happened.
                span.update_name(f"{method} {_route_template(scope)}")
                span.set_attribute("http.route", _route_template(scope))
                status_code = get_status_code()
                if status_code is not None:
                    span.set_attribute("http.status_code", status_code)
                    if status_code >= 500:
                        span.set_status(Status(StatusCode.ERROR))
