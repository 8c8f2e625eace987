"""
Direct-mode routing.

Requests of the form ``/<domain>[/<path>][?<query>]`` are turned into
``https://<domain>/<path>?<query>`` and fetched through FlareSolverr. When
FlareSolverr reports a failure for the HTTPS URL, the same URL is tried once
more over plain HTTP.
"""

import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from opentelemetry import trace

from flareproxy.handler import (
    RequestHandler,
    html_response,
    upstream_error_response,
)
from flareproxy.models import Intent
from flareproxy.upstream import (
    UpstreamError,
    UpstreamReportedFailureError,
    UpstreamTranslator,
)
from flareproxy.utils.traced_requests import traced_request

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

# Order matters: the first scheme is tried first, the second only after a reported failure.
SCHEMES = ("https", "http")

def get_raw_path(request: Request) -> str:
    """Return the request path exactly as sent, percent-escapes included."""
    scope = request.scope
    raw_path = scope.get("raw_path") or scope["path"].encode("utf-8")
    # Some servers leave the query on raw_path; query_string is the source of truth.
    return raw_path.decode("latin-1").split("?", 1)[0]


class MissingDomainError(ValueError):
    """The request path does not start with a target domain."""


def split_target(path: str) -> Tuple[str, str]:
    """Split ``/<domain>/<rest>`` into ``("<domain>", "/<rest>")``."""
    if path.startswith("/"):
        path = path[1:]
    domain, slash, rest = path.partition("/")
    if not domain:
        raise MissingDomainError("Domain is required in the request path, e.g. /example.com/page")
    return domain, slash + rest


def build_target_urls(domain: str, remaining_path: str, query: str) -> List[str]:
    """Return the URLs to try, HTTPS first."""
    suffix = f"{domain}{remaining_path}"
    if query:
        suffix = f"{suffix}?{query}"
    return [f"{scheme}://{suffix}" for scheme in SCHEMES]


def resolve_intent(method: str) -> Intent:
    intent = Intent.from_method(method)
    if intent is None:
        logger.warning(
            f"Method {method} is not supported by FlareSolverr, treating it as GET"
        )
        return Intent.GET
    return intent


class DirectRouter(RequestHandler):
    """Resolves the target site from the request path."""

    async def handle(self, request: Request) -> Response:
        try:
            domain, remaining_path = split_target(get_raw_path(request))
        except MissingDomainError as e:
            logger.warning(f"Rejecting direct request for {request.url.path!r}: {e}")
            return JSONResponse(status_code=400, content={"error": str(e)})

        intent = resolve_intent(request.method)
        target_urls = build_target_urls(domain, remaining_path, request.url.query)

        with traced_request(
            tracer,
            operation="direct_request",
            method=request.method,
            target_url=target_urls[0],
            start_message=f"[Direct] {request.method} {request.url.path} -> {target_urls[0]}",
            extra_attrs={"proxy.intent": intent.value},
        ) as span:
            last_failure: Optional[UpstreamReportedFailureError] = None
            for attempt, url in enumerate(target_urls, start=1):
                span.set_attribute("proxy.attempts", attempt)
                try:
                    content = await self.translator.fetch(url, intent)
                except UpstreamReportedFailureError as e:
                    last_failure = e
                    if attempt < len(target_urls):
                        logger.warning(
                            f"[Direct] {e.message} for {url}, retrying over {target_urls[attempt]}"
                        )
                    continue
                except UpstreamError as e:
                    return upstream_error_response(e)
                return html_response(content)

            return upstream_error_response(last_failure)


def create_direct_router(translator: UpstreamTranslator) -> APIRouter:
    router = APIRouter()
    handler = DirectRouter(translator)

    async def direct(request: Request):
        """Catch-all route that fetches ``/<domain>/<path>`` through FlareSolverr."""
        return await handler.handle(request)

    # No method list: every verb reaches the handler, which downgrades unknown ones to GET.
    router.add_route("/{path:path}", direct, methods=None)

    return router
