"""Ready-made fetchers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from swrcache.types import Fetcher

if TYPE_CHECKING:
    import httpx


def json_fetcher(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    **request_kwargs: Any,
) -> Fetcher[Any]:
    """Build a fetcher that GETs ``url`` and returns the decoded JSON body.

    Non-2xx responses raise ``httpx.HTTPStatusError``, which the engine
    reports as a fetch failure. Without ``client`` each call opens and
    closes its own ``httpx.AsyncClient``.

    Usage:
        url = f"https://jsonplaceholder.typicode.com/users/{user_id}"
        engine.activate(url, json_fetcher(url), refresh_interval="5s")
    """
    import httpx

    async def fetch() -> Any:
        if client is not None:
            response = await client.get(url, **request_kwargs)
        else:
            async with httpx.AsyncClient() as owned:
                response = await owned.get(url, **request_kwargs)
        response.raise_for_status()
        return response.json()

    return fetch
