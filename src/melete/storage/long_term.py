"""MCP client forwarding consolidation records to a long-term memory server."""

import json
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from loguru import logger
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError

from melete.core.models import ConsolidationRecord
from melete.utils.exceptions import ExternalDependencyError


class MCPLongTermStore:
    """
    Long-term memory store reached over MCP stdio.

    Each consolidation record becomes one call to the server's storage
    tool. The connection is held open for the lifetime of `connect()`,
    so a whole sweep reuses a single server process.
    """

    def __init__(
        self,
        server_command: str = "memory-server",
        server_args: Optional[List[str]] = None,
        tool_name: str = "store_memory",
    ):
        """
        Initialize the client.

        Args:
            server_command: Command to launch the memory server
            server_args: Additional arguments for the server command
            tool_name: Tool that accepts consolidation records
        """
        self.server_command = server_command
        self.server_args = server_args or []
        self.tool_name = tool_name
        self._session: Optional[ClientSession] = None
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Check if client is connected to server."""
        return self._connected and self._session is not None

    @asynccontextmanager
    async def connect(self) -> AsyncIterator["MCPLongTermStore"]:
        """
        Context manager for connecting to the memory server.

        Usage:
            async with store.connect() as connected:
                await service.consolidate_session(session_id)

        Raises:
            ExternalDependencyError: If the server cannot be started or
                does not complete the MCP handshake
        """
        server_params = StdioServerParameters(
            command=self.server_command,
            args=self.server_args,
        )

        async with AsyncExitStack() as stack:
            try:
                read, write = await stack.enter_async_context(stdio_client(server_params))
                session = await stack.enter_async_context(ClientSession(read, write))
                await session.initialize()
            except (OSError, McpError) as e:
                raise ExternalDependencyError(
                    f"Cannot reach long-term memory server ({self.server_command}): {e}"
                ) from e

            self._session = session
            self._connected = True
            logger.info(f"Connected to long-term memory server ({self.server_command})")

            try:
                yield self
            finally:
                self._connected = False
                self._session = None
                logger.info("Disconnected from long-term memory server")

    async def _call_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Call a tool on the server and return parsed result."""
        if not self.is_connected:
            raise ExternalDependencyError(
                "Not connected to long-term memory server. Use 'async with store.connect()'"
            )

        result = await self._session.call_tool(name, arguments)

        if getattr(result, "isError", False):
            text = result.content[0].text if result.content else "unknown error"
            raise ExternalDependencyError(f"{name} failed: {text}")

        if result.content and len(result.content) > 0:
            payload = json.loads(result.content[0].text)
            if isinstance(payload, dict) and "error" in payload:
                raise ExternalDependencyError(f"{name} failed: {payload['error']}")
            return payload
        return {}

    async def store(self, record: ConsolidationRecord) -> str:
        """
        Store a consolidation record.

        Returns:
            Record id assigned by the server (empty if none was returned)
        """
        result = await self._call_tool(self.tool_name, record.to_dict())
        return str(result.get("id", ""))
