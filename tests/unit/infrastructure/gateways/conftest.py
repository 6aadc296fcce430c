from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def http_requests(monkeypatch) -> Callable[[Handler], List[httpx.Request]]:
    """Route every ``httpx.AsyncClient`` through a mock transport."""

    real_client = httpx.AsyncClient

    def install(handler: Handler) -> List[httpx.Request]:
        seen: List[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        monkeypatch.setattr(
            httpx,
            "AsyncClient",
            lambda timeout=None: real_client(
                transport=httpx.MockTransport(recording), timeout=timeout
            ),
        )
        return seen

    return install
