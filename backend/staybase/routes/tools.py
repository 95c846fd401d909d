"""Tool dispatch API routes."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from staybase.auth import verify_bearer_token
from staybase.dependencies import get_query_service
from staybase.services.queries import PropertyQueryService
from staybase.services.tools import TOOL_SCHEMAS, execute_tool

router = APIRouter(prefix="/tools", tags=["tools"])


class ToolCallRequest(BaseModel):
    """Arguments for one tool call."""

    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolCallResponse(BaseModel):
    """Result of one tool call."""

    name: str
    result: dict[str, Any]


@router.get("")
async def list_tools(_client: str = Depends(verify_bearer_token)) -> dict:
    """List available tools with their JSON input schemas."""
    return {"tools": TOOL_SCHEMAS}


@router.post("/{name}", response_model=ToolCallResponse)
async def call_tool(
    name: str,
    request: ToolCallRequest,
    service: PropertyQueryService = Depends(get_query_service),
    _client: str = Depends(verify_bearer_token),
) -> ToolCallResponse:
    """Run a tool.

    Raises:
        NotFoundError: 404 for an unknown tool or property.
        ValidationError: 400 for invalid arguments.
        RemoteError: 502 when the store rejects a query.
    """
    result = await execute_tool(name, request.arguments, service)
    return ToolCallResponse(name=name, result=result)
