"""
Tests for the FlareSolverr translator.

Tests cover:
- Command envelope sent to FlareSolverr
- Unwrapping of ok responses
- Transport failures, malformed bodies and upstream-reported failures
- Absence of caching between identical calls
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from flareproxy.config import AdapterConfig
from flareproxy.models import Intent
from flareproxy.upstream import (
    MalformedUpstreamResponseError,
    UpstreamError,
    UpstreamReportedFailureError,
    UpstreamTranslator,
    UpstreamUnreachableError,
)

TEST_FLARESOLVERR_URL = "http://flaresolverr.test:8191/v1"
HTML = "<html><body>Test HTML Response</body></html>"


def ok_body(response=HTML, status=200):
    return {
        "status": "ok",
        "message": "Challenge not detected!",
        "solution": {
            "url": "https://example.com",
            "status": status,
            "response": response,
            "cookies": [],
            "userAgent": "Mozilla/5.0",
        },
    }


@pytest.fixture
def mock_client():
    client = AsyncMock(spec=httpx.AsyncClient)
    client.post.return_value = httpx.Response(200, json=ok_body())
    return client


@pytest.fixture
def translator(mock_client):
    return UpstreamTranslator(
        AdapterConfig(flaresolverr_url=TEST_FLARESOLVERR_URL), client=mock_client
    )


class TestCommandEnvelope:
    @pytest.mark.asyncio
    async def test_posts_json_command_to_configured_url(self, translator, mock_client):
        await translator.fetch("https://example.com/page?q=1", Intent.GET)

        mock_client.post.assert_awaited_once()
        args, kwargs = mock_client.post.call_args
        assert args[0] == TEST_FLARESOLVERR_URL
        assert kwargs["json"] == {
            "cmd": "request.get",
            "url": "https://example.com/page?q=1",
            "maxTimeout": 60000,
        }
        assert kwargs["headers"]["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_post_intent_uses_page_fetch_command(self, translator, mock_client):
        await translator.fetch("https://example.com/form", Intent.POST)

        assert mock_client.post.call_args.kwargs["json"]["cmd"] == "request.get"

    def test_default_client_has_no_transport_timeout(self):
        translator = UpstreamTranslator(AdapterConfig())

        assert translator.client.timeout == httpx.Timeout(None)


class TestSuccess:
    @pytest.mark.asyncio
    async def test_returns_rendered_body(self, translator):
        assert await translator.fetch("https://example.com") == HTML

    @pytest.mark.asyncio
    async def test_target_site_status_is_not_an_error(self, translator, mock_client):
        mock_client.post.return_value = httpx.Response(
            200, json=ok_body(response="<html>not found</html>", status=404)
        )

        assert await translator.fetch("https://example.com/missing") == (
            "<html>not found</html>"
        )

    @pytest.mark.asyncio
    async def test_identical_calls_are_not_cached(self, translator, mock_client):
        first = await translator.fetch("https://example.com")
        second = await translator.fetch("https://example.com")

        assert first == second == HTML
        assert mock_client.post.await_count == 2
        assert (
            mock_client.post.call_args_list[0].kwargs["json"]
            == mock_client.post.call_args_list[1].kwargs["json"]
        )


class TestTransportErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("[Errno 111] Connection refused"),
            httpx.ConnectError("[Errno -2] Name or service not known"),
            httpx.ReadTimeout("timed out"),
        ],
    )
    async def test_transport_failure_is_unreachable(self, translator, mock_client, error):
        mock_client.post.side_effect = error

        with pytest.raises(UpstreamUnreachableError) as exc_info:
            await translator.fetch("https://example.com")

        assert exc_info.value.message.startswith("Failed to connect to FlareSolverr: ")
        assert str(error) in exc_info.value.message
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_empty_error_text_falls_back_to_type_name(self, translator, mock_client):
        mock_client.post.side_effect = httpx.ReadTimeout("")

        with pytest.raises(UpstreamUnreachableError, match="ReadTimeout"):
            await translator.fetch("https://example.com")


class TestMalformedResponses:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content",
        [
            b"<html>Bad Gateway</html>",
            b"",
            b"[]",
            b'{"message": "no status"}',
            b'{"status": "ok"}',
            b'{"status": "ok", "solution": {"status": 200}}',
        ],
    )
    async def test_malformed_body(self, translator, mock_client, content):
        mock_client.post.return_value = httpx.Response(200, content=content)

        with pytest.raises(MalformedUpstreamResponseError) as exc_info:
            await translator.fetch("https://example.com")

        assert exc_info.value.message.startswith("Failed to parse response: ")


class TestReportedFailures:
    @pytest.mark.asyncio
    async def test_error_status_carries_upstream_message(self, translator, mock_client):
        mock_client.post.return_value = httpx.Response(
            500,
            json={"status": "error", "message": "Error: Unable to process browser request."},
        )

        with pytest.raises(UpstreamReportedFailureError) as exc_info:
            await translator.fetch("https://example.com")

        assert exc_info.value.upstream_message == "Error: Unable to process browser request."
        assert exc_info.value.message == (
            "FlareSolverr error: Error: Unable to process browser request."
        )
        assert isinstance(exc_info.value, UpstreamError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("solution", [{}, {"status": 0}, None])
    async def test_error_status_with_partial_solution_is_reported_failure(
        self, translator, mock_client, solution
    ):
        mock_client.post.return_value = httpx.Response(
            500, json={"status": "error", "message": "X", "solution": solution}
        )

        with pytest.raises(UpstreamReportedFailureError) as exc_info:
            await translator.fetch("https://example.com")

        assert exc_info.value.message == "FlareSolverr error: X"

    @pytest.mark.asyncio
    async def test_http_status_of_upstream_is_not_interpreted(self, translator, mock_client):
        mock_client.post.return_value = httpx.Response(500, json=ok_body())

        assert await translator.fetch("https://example.com") == HTML


@pytest.mark.asyncio
async def test_aclose_closes_client(translator, mock_client):
    await translator.aclose()

    mock_client.aclose.assert_awaited_once()
