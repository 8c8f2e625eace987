import logging
from abc import ABC, abstractmethod

from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from flareproxy.upstream import UpstreamError, UpstreamTranslator

logger = logging.getLogger("uvicorn.error")


class RequestHandler(ABC):
    """Interface shared by the direct-mode and proxy-mode routers."""

    def __init__(self, translator: UpstreamTranslator):
        self.translator = translator

    @abstractmethod
    async def handle(self, request: Request) -> Response:
        """Answer one inbound request."""


def html_response(content: str) -> HTMLResponse:
    """Relay a solved page. The status FlareSolverr saw on the target site is not propagated."""
    return HTMLResponse(content=content, status_code=200)


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    logger.error(f"Error: {message}")
    return JSONResponse(status_code=status_code, content={"error": message})


def upstream_error_response(error: UpstreamError) -> JSONResponse:
    return error_response(error.message)


def method_not_allowed(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=405)
