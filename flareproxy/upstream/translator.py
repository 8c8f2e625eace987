"""
Translation between inbound requests and FlareSolverr commands.

The translator owns the only outbound HTTP call in the service: it wraps a
target URL in a ``request.get`` command, POSTs it to FlareSolverr and unwraps
the ``solution.response`` field of the reply. Failures are raised as
:class:`~flareproxy.upstream.errors.UpstreamError` subclasses so that each
router can decide whether a failure is terminal.
"""

import logging
from typing import Optional

import httpx
from opentelemetry import trace
from pydantic import ValidationError

from flareproxy.config import AdapterConfig
from flareproxy.models import Intent, UpstreamCommand, UpstreamResult
from flareproxy.upstream.errors import (
    MalformedUpstreamResponseError,
    UpstreamReportedFailureError,
    UpstreamUnreachableError,
)
from flareproxy.utils.exception_logging import format_exception_message

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")


class UpstreamTranslator:
    """Issues one FlareSolverr command per call over a shared ``httpx.AsyncClient``."""

    def __init__(self, config: AdapterConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        # No transport timeout: FlareSolverr enforces the command's maxTimeout itself.
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(None))

    @property
    def flaresolverr_url(self) -> str:
        return self.config.flaresolverr_url

    async def fetch(self, url: str, intent: Intent = Intent.GET) -> str:
        """Fetch ``url`` through FlareSolverr and return the rendered page.

        Raises:
            UpstreamUnreachableError: the POST to FlareSolverr failed at the transport level.
            MalformedUpstreamResponseError: the reply was not a valid result object.
            UpstreamReportedFailureError: FlareSolverr reported a non-``ok`` status.
        """
        command = UpstreamCommand.for_intent(url, intent)

        with tracer.start_as_current_span("flaresolverr_request") as span:
            span.set_attribute("proxy.target_url", url)
            span.set_attribute("flaresolverr.cmd", command.cmd)
            span.set_attribute("flaresolverr.intent", intent.value)

            logger.debug(f"Sending {command.cmd} for {url} to {self.flaresolverr_url}")
            try:
                response = await self.client.post(
                    self.flaresolverr_url,
                    json=command.model_dump(),
                    headers={"Content-Type": "application/json"},
                )
                body = response.content
            except httpx.HTTPError as e:
                span.set_attribute("proxy.error", "upstream_unreachable")
                raise UpstreamUnreachableError(
                    f"Failed to connect to FlareSolverr: {format_exception_message(e)}"
                ) from e

            span.set_attribute("flaresolverr.http_status", response.status_code)
            result = self._parse(body, span)

            if not result.ok:
                span.set_attribute("proxy.error", "upstream_reported_failure")
                raise UpstreamReportedFailureError(
                    f"FlareSolverr error: {result.message}", result.message
                )

            try:
                solution = result.solved_page()
            except ValueError as e:
                span.set_attribute("proxy.error", "malformed_upstream_response")
                raise MalformedUpstreamResponseError(
                    f"Failed to parse response: {format_exception_message(e)}"
                ) from e

            span.set_attribute("flaresolverr.solution_status", solution.status)
            return solution.response

    @staticmethod
    def _parse(body: bytes, span) -> UpstreamResult:
        try:
            return UpstreamResult.model_validate_json(body)
        except ValidationError as e:
            span.set_attribute("proxy.error", "malformed_upstream_response")
            raise MalformedUpstreamResponseError(
                f"Failed to parse response: {format_exception_message(e)}"
            ) from e

    async def aclose(self) -> None:
        await self.client.aclose()
