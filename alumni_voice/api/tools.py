"""Agent tools endpoint shared by external voice agents."""
import logging
from typing import Any, Dict, Tuple

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from alumni_voice.core.dependencies import get_gateway, get_rate_limiter
from alumni_voice.core.rate_limit import RateLimiter
from alumni_voice.services.errors import ExecutionFailed, UnknownToolError
from alumni_voice.services.tools.base import DomainGateway

router = APIRouter()
logger = logging.getLogger(__name__)


def parse_tool_call(body: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Accept the direct format and the agent platform function-call envelope."""
    message = body.get("message")
    if isinstance(message, dict) and message.get("type") == "function-call" and message.get("functionCall"):
        call = message["functionCall"]
        return call.get("name") or "", call.get("parameters") or {}
    return body.get("tool_name") or "", body.get("parameters") or {}


def rate_limit_key(request: Request) -> str:
    return request.headers.get("x-api-key") or (request.client.host if request.client else "anon")


@router.post("/api/agent-tools")
async def invoke_tool(
    request: Request,
    body: Dict[str, Any] = Body(...),
    gateway: DomainGateway = Depends(get_gateway),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """Run one named tool."""
    limit = await limiter.check(rate_limit_key(request))
    if not limit.allowed:
        logger.warning(f"[AGENT TOOLS] Rate limit exceeded for {rate_limit_key(request)}")
        raise HTTPException(
            status_code=429,
            detail={"error": "Rate limit exceeded", "retry_after_seconds": limit.reset_in},
            headers={"Retry-After": str(limit.reset_in)},
        )

    tool_name, parameters = parse_tool_call(body)
    try:
        return await gateway.invoke(tool_name, parameters)
    except UnknownToolError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Unknown tool_name", "available_tools": e.available_tools},
        )
    except ExecutionFailed as e:
        logger.warning(f"[AGENT TOOLS] {tool_name} failed: {type(e).__name__}")
        raise HTTPException(status_code=e.status_code or 502, detail={"error": e.spoken_message})
