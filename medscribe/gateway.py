import json
import time
import logging
from typing import Dict, Any, Optional, List, Tuple

import mcp.types as types
from mcp.server.lowlevel import Server
from pydantic import ValidationError

from .catalog import CatalogLoader, CatalogError
from .adapters.diseases import DiseaseTracker
from .adapters.submissions import SubmissionStore, SubmitRequest
from .adapters.instructions import InstructionsSource
from .config import Settings
from .telemetry import Telemetry, SERVICE_NAME


SERVER_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


TOOLS: List[Dict[str, Any]] = [
    {
        "name": "get_next_disease",
        "description": "Get the next disease name from the catalog",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    },
    {
        "name": "submit_description",
        "description": "Submit a disease description in Bengali",
        "inputSchema": {
            "type": "object",
            "properties": {
                "disease": {
                    "type": "string",
                    "description": "The disease name",
                },
                "description_bn": {
                    "type": "string",
                    "description": "The disease description in Bengali (450-500 words)",
                },
            },
            "required": ["disease", "description_bn"],
        },
    },
    {
        "name": "get_instructions",
        "description": "Get instructions for creating disease descriptions",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    },
]


class ToolCallError(Exception):
    def __init__(self, error: str, reason: str):
        super().__init__(reason)
        self.error = error
        self.reason = reason


class UnknownToolError(ValueError):
    def __init__(self, tool: str):
        super().__init__(f"Unknown tool: {tool}")
        self.tool = tool


class Gateway:
    def __init__(
        self,
        tracker: DiseaseTracker,
        submissions: SubmissionStore,
        instructions: InstructionsSource,
        telemetry: Telemetry
    ):
        self.tracker = tracker
        self.submissions = submissions
        self.instructions = instructions
        self.telemetry = telemetry

    def list_tools(self) -> List[Dict[str, Any]]:
        return TOOLS

    async def handle_tool_call(self, tool: str, arguments: Optional[Dict[str, Any]] = None) -> str:
        params = arguments or {}
        start_time = time.time()

        try:
            result = await self._forward_to_tool(tool, params)
        except Exception as e:
            latency = (time.time() - start_time) * 1000
            error = self._classify(e)

            self.telemetry.record_call(
                tool=tool,
                arguments=params,
                ok=False,
                reason=str(e),
                latency_ms=latency,
                error=error
            )

            if error == "ToolError":
                logger.exception(f"Tool {tool} failed")
            else:
                logger.warning(f"Rejected call to {tool}: {e}")

            raise ToolCallError(error=error, reason=str(e)) from e

        latency = (time.time() - start_time) * 1000
        self.telemetry.record_call(
            tool=tool,
            arguments=params,
            ok=True,
            reason="ok",
            latency_ms=latency
        )

        if isinstance(result, str):
            return result
        return json.dumps(result, ensure_ascii=False)

    async def _forward_to_tool(self, tool: str, params: Dict[str, Any]):
        if tool == "get_next_disease":
            return self.tracker.next().model_dump()

        elif tool == "submit_description":
            req = SubmitRequest(**params)
            return self.submissions.submit(req).model_dump()

        elif tool == "get_instructions":
            return self.instructions.read()

        else:
            raise UnknownToolError(tool)

    def _classify(self, exc: Exception) -> str:
        if isinstance(exc, UnknownToolError):
            return "UnknownTool"
        if isinstance(exc, CatalogError):
            return "CatalogError"
        if isinstance(exc, ValidationError):
            return "InvalidArguments"
        if isinstance(exc, ValueError):
            return "Rejected"
        return "ToolError"

    def get_stats(self) -> Dict[str, int]:
        return {
            "diseases": len(self.tracker.diseases),
            "remaining": self.tracker.remaining()
        }

    def close(self):
        self.tracker.loader.close()
        self.telemetry.shutdown()


def create_gateway(settings: Settings) -> Gateway:
    telemetry = Telemetry(settings.otel_endpoint, settings.audit_log)
    loader = CatalogLoader(settings.catalog_path)
    tracker = DiseaseTracker(loader)
    tracker.load()

    if settings.watch_catalog:
        loader.watch(tracker.replace)

    return Gateway(
        tracker=tracker,
        submissions=SubmissionStore(settings.data_dir),
        instructions=InstructionsSource(settings.instructions_path),
        telemetry=telemetry
    )


def create_server(settings: Settings) -> Tuple[Server, Gateway]:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    gateway = create_gateway(settings)
    server = Server(SERVICE_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [types.Tool(**tool) for tool in gateway.list_tools()]

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        text = await gateway.handle_tool_call(name, arguments)
        return [types.TextContent(type="text", text=text)]

    return server, gateway
