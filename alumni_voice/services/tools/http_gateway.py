"""Remote agent-tools gateway over HTTP."""
import logging
from typing import Any, Dict, Optional

import httpx

from alumni_voice.services.errors import ExecutionFailed
from alumni_voice.services.tools.base import DomainGateway

logger = logging.getLogger(__name__)


class HttpToolGateway(DomainGateway):
    """Posts ``{tool_name, parameters}`` to a remote agent-tools endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 8.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}
        self.transport = transport

    async def invoke(self, tool_name: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
        body = {"tool_name": tool_name, "parameters": parameters}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=body, headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning(f"[TOOLS GATEWAY] {tool_name} transport error: {type(e).__name__}: {str(e)}")
            raise ExecutionFailed.from_status(None, f"{type(e).__name__}: {str(e)}") from e

        if response.status_code >= 400:
            logger.warning(f"[TOOLS GATEWAY] {tool_name} returned HTTP {response.status_code}")
            raise ExecutionFailed.from_status(response.status_code, response.text[:200])

        return response.json()
