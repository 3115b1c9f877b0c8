"""
Pytest configuration and fixtures.

Provides a fake Zoho backend served through httpx.MockTransport, plus
token manager and client fixtures wired to it.
"""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from apptics_mcp.apptics_client import AppticsClient
from apptics_mcp.auth import TokenManager

ACCOUNTS_URI = "https://accounts.test/"
APPTICS_URI = "https://apptics.test/"


class FakeZoho:
    """Records every request and answers token and API calls."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.token_responses: List[httpx.Response] = []
        self.api_responses: Dict[str, Any] = {}
        self.issued = 0
        self.token_delay = 0.01

    @property
    def token_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/oauth/v2/token"]

    @property
    def api_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/cx/api/v1/")]

    def token_form(self, index: int = -1) -> Dict[str, str]:
        body = self.token_requests[index].content.decode()
        return {k: v[0] for k, v in parse_qs(body).items()}

    def queue_token(self, status_code: int = 200, json: Optional[dict] = None, text: str = ""):
        if json is not None:
            self.token_responses.append(httpx.Response(status_code, json=json))
        else:
            self.token_responses.append(httpx.Response(status_code, text=text))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/oauth/v2/token":
            # yield so concurrent callers overlap with the exchange
            await asyncio.sleep(self.token_delay)
            if self.token_responses:
                return self.token_responses.pop(0)
            self.issued += 1
            return httpx.Response(200, json={"access_token": f"access-{self.issued}"})

        path = request.url.path[len("/cx/api/v1/"):]
        answer = self.api_responses.get(path, {"data": []})
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)


@pytest.fixture
def zoho():
    return FakeZoho()


@pytest.fixture
def transport(zoho):
    return httpx.MockTransport(zoho.handler)


@pytest.fixture
def token_manager(transport):
    return TokenManager(
        client_id="client-id",
        client_secret="client-secret",
        refresh_token="refresh-0",
        accounts_uri=ACCOUNTS_URI,
        transport=transport,
    )


@pytest.fixture
def client(token_manager, transport):
    return AppticsClient(
        token_manager=token_manager,
        apptics_uri=APPTICS_URI,
        transport=transport,
    )
