import json
import os
from contextvars import ContextVar
from typing import Any, Dict, Optional, Tuple

from mcp import ClientSession
from mcp.client.sse import sse_client

from content_studio.core.errors import StorageError

auth_token_var: ContextVar[str] = ContextVar("auth_token", default="")

RECORD_TOOLS = ("get_record", "list_records", "create_record", "update_record", "delete_record")


def parse_mcp_result(result: Any) -> Tuple[Optional[Any], Optional[str]]:
    """Parse MCP tool result. Returns (data, error_msg)."""
    if not result or not hasattr(result, "content") or not result.content:
        return None, "Empty or invalid result from MCP"

    text = result.content[0].text
    if text.startswith("Error:"):
        return None, text
    try:
        return json.loads(text), None
    except (json.JSONDecodeError, ValueError) as e:
        return None, f"JSON parse error: {e}. Raw: {text[:200]}"


async def execute_mcp_tool(tool_name: str, arguments: dict, server_url: Optional[str] = None) -> Any:
    sse_url = server_url or os.getenv("MCP_SERVER_URL", "http://localhost:7999/sse")

    token = auth_token_var.get()
    if token and tool_name in RECORD_TOOLS and "auth_token" not in arguments:
        arguments["auth_token"] = token

    async with sse_client(sse_url) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            return await session.call_tool(tool_name, arguments)


async def call_record_tool(tool_name: str, arguments: dict, server_url: Optional[str] = None) -> Any:
    """Run a PocketBase record tool and return its parsed payload.

    Raises StorageError when the server reports an error.
    """
    result = await execute_mcp_tool(tool_name, arguments, server_url=server_url)
    data, err = parse_mcp_result(result)
    if err:
        raise StorageError(f"{tool_name} on {arguments.get('collection')} failed: {err}")
    return data
