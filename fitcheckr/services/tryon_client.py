"""HTTP client for the try-on endpoint."""

from typing import Any

import httpx
from pydantic import BaseModel

from ..config import OrchestratorConfig
from ..models import TryOnRequest


class TryOnResponse(BaseModel):
    """Raw answer of the try-on endpoint."""
    status_code: int
    body: dict[str, Any]


class TryOnClient:
    """Posts a TryOnRequest to the server and returns status + JSON body."""

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or OrchestratorConfig()
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            # The orchestrator's token enforces the real deadline
            self._client = httpx.AsyncClient(
                base_url=self.config.api_base_url,
                timeout=self.config.request_timeout_seconds + 5.0,
            )
        return self._client

    async def submit(self, request: TryOnRequest) -> TryOnResponse:
        """Send one try-on request.

        Raises:
            httpx.HTTPError: transport-level failure
        """
        response = await self.client.post(self.config.try_on_path, json=request.to_wire())
        try:
            body = response.json()
        except ValueError:
            body = {"error": response.text[:500]}
        if not isinstance(body, dict):
            body = {"error": str(body)}
        return TryOnResponse(status_code=response.status_code, body=body)

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
