"""Tests for the httpx JSON fetcher using mocked HTTP responses."""

import pytest

# Skip all tests if httpx is not installed
pytest.importorskip("httpx")

import httpx
import respx

from swrcache import Engine, json_fetcher

USER_URL = "https://api.test.dev/users/1"


class TestJsonFetcher:
    """Tests for json_fetcher with mocked responses."""

    @respx.mock
    async def test_returns_decoded_json(self) -> None:
        """Test that the response body is decoded."""
        route = respx.get(USER_URL).mock(
            return_value=httpx.Response(200, json={"id": 1, "name": "A"})
        )

        fetch = json_fetcher(USER_URL)
        assert await fetch() == {"id": 1, "name": "A"}
        assert route.call_count == 1

    @respx.mock
    async def test_each_call_hits_the_network(self) -> None:
        """Test that the fetcher is re-invoked on every call."""
        route = respx.get(USER_URL).mock(return_value=httpx.Response(200, json={}))

        fetch = json_fetcher(USER_URL)
        await fetch()
        await fetch()
        assert route.call_count == 2

    @respx.mock
    async def test_error_status_raises(self) -> None:
        """Test that non-2xx responses raise HTTPStatusError."""
        respx.get(USER_URL).mock(return_value=httpx.Response(503))

        fetch = json_fetcher(USER_URL)
        with pytest.raises(httpx.HTTPStatusError):
            await fetch()

    @respx.mock
    async def test_uses_given_client_and_kwargs(self) -> None:
        """Test that a shared client and request options are used."""
        route = respx.get(USER_URL, params={"fields": "name"}).mock(
            return_value=httpx.Response(200, json={"name": "A"})
        )

        async with httpx.AsyncClient(headers={"Authorization": "Bearer t"}) as client:
            fetch = json_fetcher(USER_URL, client=client, params={"fields": "name"})
            assert await fetch() == {"name": "A"}

        request = route.calls[0].request
        assert request.headers["Authorization"] == "Bearer t"

    @respx.mock
    async def test_http_failure_projected_by_engine(self) -> None:
        """Test that an HTTP error becomes the activation's error."""
        respx.get(USER_URL).mock(return_value=httpx.Response(500))
        errors: list[BaseException] = []

        engine = Engine()
        activation = await engine.activate(
            USER_URL, json_fetcher(USER_URL), on_error=errors.append
        )
        await activation.settle()

        assert isinstance(activation.state.error.error, httpx.HTTPStatusError)
        assert activation.state.value is None
        assert len(errors) == 1
        engine.close()
