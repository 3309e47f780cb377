"""
Scriptable webhook receiver for httpx.MockTransport.
"""

import json
from typing import Optional

import httpx


class WebhookTarget:
    """
    MockTransport handler answering per host from a script.

    responses maps a host to status codes consumed one per request; the
    last code repeats. A status of 0 simulates a refused connection.
    """

    def __init__(self, responses: Optional[dict[str, list[int]]] = None):
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        script = self.responses.get(request.url.host, [200])
        status = script.pop(0) if len(script) > 1 else script[0]
        if status == 0:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(status, json={"ok": status < 300})

    def client(self) -> httpx.AsyncClient:
        """AsyncClient routed to this target."""
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def hits(self, host: str) -> int:
        return sum(1 for r in self.requests if r.url.host == host)

    def events(self) -> list[str]:
        """Event names received, in order."""
        return [json.loads(r.content)["event"] for r in self.requests]
