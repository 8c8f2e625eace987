"""
Forward-proxy routing.

Clients configure the service as their HTTP proxy and send absolute-form
``GET http://site/path`` requests. Targets of that shape never match a route
path, so the handler is installed as an HTTP middleware that answers every
request before routing happens.

CONNECT is refused: a TLS tunnel would hide the request from FlareSolverr,
which needs to load the page itself to get past the challenge.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import Response
from opentelemetry import trace

from flareproxy.handler import (
    RequestHandler,
    html_response,
    method_not_allowed,
    upstream_error_response,
)
from flareproxy.models import Intent
from flareproxy.upstream import UpstreamError, UpstreamTranslator
from flareproxy.utils.traced_requests import traced_request

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

CONNECT_NOT_SUPPORTED = (
    "CONNECT method is not supported. FlareSolverr has to see the request "
    "content to bypass the challenge, so HTTPS tunneling cannot be proxied. "
    "Send plain http:// URLs through this proxy; they are fetched over HTTPS."
)
METHOD_NOT_ALLOWED = "Method not allowed"


def get_target_url(request: Request) -> str:
    """Return the absolute URL a proxy client asked for.

    Absolute-form request targets are used as sent. Servers that hand over an
    origin-form path get the URL rebuilt from the scheme and ``Host`` header.
    """
    scope = request.scope
    raw_path = scope.get("raw_path") or scope["path"].encode("utf-8")
    # Some servers leave the query on raw_path; query_string is the source of truth.
    target = raw_path.decode("latin-1").split("?", 1)[0]

    if not target.startswith(("http://", "https://")):
        host = request.headers.get("host", "")
        target = f"{scope.get('scheme', 'http')}://{host}{target}"

    query_string = scope.get("query_string", b"").decode("latin-1")
    if query_string:
        target = f"{target}?{query_string}"
    return target


def upgrade_scheme(url: str) -> str:
    if url.startswith("http://"):
        return url.replace("http://", "https://", 1)
    return url


class ProxyRouter(RequestHandler):
    """Serves GET requests like a classic HTTP forward proxy, without tunneling."""

    async def handle(self, request: Request) -> Response:
        method = request.method.upper()
        if method == "CONNECT":
            logger.info(f"[Proxy] Refusing CONNECT to {request.scope.get('path', '')}")
            return method_not_allowed(CONNECT_NOT_SUPPORTED)
        if method != "GET":
            logger.info(f"[Proxy] Refusing {method} request")
            return method_not_allowed(METHOD_NOT_ALLOWED)

        target_url = upgrade_scheme(get_target_url(request))
        with traced_request(
            tracer,
            operation="proxy_request",
            method=method,
            target_url=target_url,
            start_message=f"[Proxy] GET -> {target_url}",
        ):
            try:
                content = await self.translator.fetch(target_url, Intent.GET)
            except UpstreamError as e:
                return upstream_error_response(e)
            return html_response(content)


def install_forward_proxy(app: FastAPI, translator: UpstreamTranslator) -> ProxyRouter:
    """Make ``app`` answer every HTTP request as a forward proxy."""
    handler = ProxyRouter(translator)

    @app.middleware("http")
    async def forward_proxy(request: Request, call_next):
        return await handler.handle(request)

    return handler
