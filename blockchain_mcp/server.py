"""FastAPI application wiring the blockchain MCP tools to HTTP routes."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from blockchain_mcp import __version__, mcp
from blockchain_mcp.config import BlockchainMcpConfig, default_config
from blockchain_mcp.context import ToolContext, build_context
from blockchain_mcp.metrics import default_metrics
from blockchain_mcp.tools import (
    gateway_execute_rpc,
    gateway_get_supported_chains,
    gateway_get_supported_methods,
)

logger = logging.getLogger(__name__)

HEALTH_STATUS = {"status": "ok"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "request_id", "error", "chain", "status"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: BlockchainMcpConfig, *, force: bool = False) -> None:
    """Send logs to stderr; stdout is reserved for the stdio transport."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    if config.log_format.lower() == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=[handler], force=force)
    else:
        logging.basicConfig(level=level, force=force)


configure_logging(default_config)


def log_tool_result(tool_name: str, result: Any, request_id: Optional[str] = None) -> None:
    if isinstance(result, dict) and isinstance(result.get("status"), int):
        default_metrics.record_upstream_status(result["status"], result.get("statusText"))

    if isinstance(result, dict) and result.get("error"):
        logger.warning(
            "tool=%s outcome=error error=%s request_id=%s",
            tool_name,
            result.get("error"),
            request_id,
            extra={"tool": tool_name, "request_id": request_id, "error": result.get("error")},
        )
        default_metrics.record_tool(tool_name, success=False)
    else:
        logger.info(
            "tool=%s outcome=success request_id=%s",
            tool_name,
            request_id,
            extra={"tool": tool_name, "request_id": request_id},
        )
        default_metrics.record_tool(tool_name, success=True)


def _context(request: Request) -> ToolContext:
    return request.app.state.context


def create_app(
    config: Optional[BlockchainMcpConfig] = None,
    context: Optional[ToolContext] = None,
) -> FastAPI:
    """Build the HTTP app around a tool context; tests pass their own context."""
    config = config or (context.config if context else default_config)
    context = context or build_context(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await context.aclose()

    app = FastAPI(
        title="Blockchain MCP Server",
        description="RPC gateway and Data API tool surface for LLM agents.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.time()
        default_metrics.incr_request()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        default_metrics.record_duration(request_id, duration_ms)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health endpoint for monitoring."""
        return JSONResponse(content=HEALTH_STATUS)

    @app.get("/metrics")
    async def metrics() -> JSONResponse:
        """Return in-process metrics snapshot."""
        return JSONResponse(content=default_metrics.snapshot())

    @app.get("/tools/gateway/chains")
    async def supported_chains(request: Request) -> JSONResponse:
        result = await gateway_get_supported_chains(gateway=_context(request).gateway)
        log_tool_result("gateway_get_supported_chains", result, getattr(request.state, "request_id", None))
        return JSONResponse(content=result)

    @app.get("/tools/gateway/methods/{chain}")
    async def supported_methods(chain: str, request: Request) -> JSONResponse:
        result = await gateway_get_supported_methods(chain, gateway=_context(request).gateway)
        log_tool_result("gateway_get_supported_methods", result, getattr(request.state, "request_id", None))
        return JSONResponse(content=result)

    @app.post("/tools/gateway/execute")
    async def execute_rpc(request: Request) -> JSONResponse:
        """Body: ``{"chain": ..., "method": ..., "params": [...]}``."""
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return JSONResponse(
                status_code=400,
                content={"data": None, "error": "Request body must be a JSON object", "status": 400, "statusText": "Bad Request"},
            )
        result = await gateway_execute_rpc(
            body.get("chain"),
            body.get("method"),
            body.get("params"),
            gateway=_context(request).gateway,
        )
        log_tool_result("gateway_execute_rpc", result, getattr(request.state, "request_id", None))
        return JSONResponse(content=result)

    @app.post("/tools/data/{tool_name}")
    async def data_tool(tool_name: str, request: Request) -> JSONResponse:
        """Invoke a Data API tool with a JSON object of arguments."""
        tool = mcp.TOOL_REGISTRY.get(tool_name)
        if tool is None or tool.category != "data":
            return JSONResponse(status_code=404, content={"error": f"Unknown tool: {tool_name}"})
        try:
            body = await request.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})
        result = await mcp.call_tool(tool_name, body, _context(request))
        log_tool_result(tool_name, result, getattr(request.state, "request_id", None))
        return JSONResponse(content=result)

    @app.post("/mcp")
    async def mcp_gateway(request: Request) -> Response:
        """JSON-RPC gateway for MCP-style integrations."""
        request_id = getattr(request.state, "request_id", None)
        start_time = time.time()

        raw = await request.body()
        body, parse_error = mcp.parse_message(raw)
        if parse_error is not None:
            return JSONResponse(status_code=400, content=parse_error)

        outcome = await mcp.handle_message(body, _context(request))
        if outcome.tool is not None and outcome.tool_result is not None:
            log_tool_result(outcome.tool, outcome.tool_result, request_id)

        duration_ms = (time.time() - start_time) * 1000
        method_label = body.get("method") if isinstance(body, dict) else None
        logger.debug(
            "mcp method=%s tool=%s status=%s duration_ms=%.2f",
            method_label,
            outcome.tool,
            outcome.status_code,
            duration_ms,
            extra={"request_id": request_id, "tool": outcome.tool},
        )
        if outcome.payload is None:
            return Response(status_code=outcome.status_code)
        return JSONResponse(status_code=outcome.status_code, content=outcome.payload)

    return app


app = create_app()

# Run with: uvicorn blockchain_mcp.server:app --reload
