"""FastAPI application wiring VeChain MCP tools to HTTP routes."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from vechain_mcp import mcp
from vechain_mcp.config import default_config
from vechain_mcp.metrics import default_metrics
from vechain_mcp.thor_api import default_client
from vechain_mcp.tools import (
    enrich_addresses,
    get_token_fiat_price,
    lookup_name,
    resolve_address,
    validate_address,
)

logger = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "request_id", "error"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload)


_log_level = getattr(logging, default_config.log_level.upper(), logging.INFO)
if default_config.log_format.lower() == "json":
    _handler = logging.StreamHandler()
    _handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=_log_level, handlers=[_handler])
else:
    logging.basicConfig(level=_log_level)

HEALTH_STATUS = {"status": "ok"}
APP_VERSION = "0.1.0"
MCP_SERVER_NAME = "vechain-mcp-server"
MCP_SERVER_VERSION = APP_VERSION


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("Starting VeChain MCP server on %s network", default_config.profile.network.value)
    yield
    await default_client.aclose()


app = FastAPI(
    title="VeChain MCP Server",
    description="Read-only VeChain name resolution and oracle price tools for LLM agents.",
    version=APP_VERSION,
    lifespan=lifespan,
)


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


def _log_tool_result(tool_name: str, result: Dict[str, Any], request_id: Optional[str] = None) -> None:
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


def _tool_response(tool_name: str, result: Any, request: Request) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    _log_tool_result(tool_name, result if isinstance(result, dict) else {}, request_id)
    return JSONResponse(content=result)


@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for monitoring."""
    return JSONResponse(content=HEALTH_STATUS)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Return in-process metrics snapshot."""
    return JSONResponse(content=default_metrics.snapshot())


@app.get("/tools/validate_address/{address}")
async def validate_address_route(address: str, request: Request) -> JSONResponse:
    """Proxy for validate_address tool."""
    result = await validate_address(address)
    return _tool_response("validate_address", result, request)


@app.get("/tools/resolve_address/{value}")
async def resolve_address_route(value: str, request: Request) -> JSONResponse:
    """Proxy for resolve_address tool."""
    result = await resolve_address(value)
    return _tool_response("resolve_address", result, request)


@app.get("/tools/lookup_name/{address}")
async def lookup_name_route(address: str, request: Request) -> JSONResponse:
    """Proxy for lookup_name tool."""
    result = await lookup_name(address)
    return _tool_response("lookup_name", result, request)


@app.get("/tools/enrich_addresses")
async def enrich_addresses_route(
    request: Request, address: Optional[List[str]] = Query(None)
) -> JSONResponse:
    """Proxy for enrich_addresses tool (repeat ``address`` per entry)."""
    result = await enrich_addresses(address or [])
    return _tool_response("enrich_addresses", result, request)


@app.get("/tools/token_fiat_price")
async def token_fiat_price_route(
    request: Request, token: str = Query(...), fiat: str = Query("usd")
) -> JSONResponse:
    """Proxy for get_token_fiat_price tool."""
    result = await get_token_fiat_price(token, fiat)
    return _tool_response("get_token_fiat_price", result, request)


@app.post("/mcp")
async def mcp_gateway(request: Request) -> JSONResponse:
    """
    Minimal JSON-RPC-like gateway for MCP-style integrations.

    Supported methods:
      - initialize
      - list_tools / tools/list
      - call_tool / tools/call
    """
    request_id = getattr(request.state, "request_id", None)

    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content=_jsonrpc_error_payload(None, -32700, "Parse error"))

    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content=_jsonrpc_error_payload(None, -32600, "Invalid request"))

    method = body.get("method")
    rpc_id = body.get("id")
    raw_params = body.get("params")
    if raw_params is None:
        params: Dict[str, Any] = {}
    elif isinstance(raw_params, dict):
        params = raw_params
    else:
        return JSONResponse(content=_jsonrpc_error_payload(rpc_id, -32602, "Invalid params"))

    if not method:
        return JSONResponse(content=_jsonrpc_error_payload(rpc_id, -32600, "Invalid request"))

    logger.debug("mcp method=%s id=%s", method, rpc_id, extra={"request_id": request_id})

    if method == "initialize":
        protocol_version = params.get("protocolVersion")
        if not isinstance(protocol_version, str) or not protocol_version:
            return JSONResponse(content=_jsonrpc_error_payload(rpc_id, -32602, "Invalid params"))
        result = {
            "protocolVersion": protocol_version,
            "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
            "capabilities": {"tools": {"listChanged": False}},
        }
        return JSONResponse(content=_jsonrpc_success_payload(rpc_id, result))

    if method in ("list_tools", "tools/list"):
        return JSONResponse(content=_jsonrpc_success_payload(rpc_id, {"tools": mcp.list_tools()}))

    if method in ("call_tool", "tools/call"):
        tool_name = params.get("tool") or params.get("name")
        tool_params = params.get("params")
        if tool_params is None:
            tool_params = params.get("arguments") or {}
        if not isinstance(tool_name, str) or not tool_name.strip() or not isinstance(tool_params, dict):
            return JSONResponse(content=_jsonrpc_error_payload(rpc_id, -32602, "Invalid params"))
        result = await mcp.call_tool(tool_name, tool_params)
        _log_tool_result(tool_name, result if isinstance(result, dict) else {}, request_id)
        return JSONResponse(content=_jsonrpc_success_payload(rpc_id, _wrap_tool_result(result)))

    if method in ("notifications/initialized", "initialized"):
        # Notifications should not return a JSON-RPC response body.
        return Response(status_code=204)

    return JSONResponse(content=_jsonrpc_error_payload(rpc_id, -32601, "Method not found"))


# Run with: uvicorn vechain_mcp.server:app --reload


def _jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _jsonrpc_error_payload(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


def _wrap_tool_result(result: Any) -> Dict[str, Any]:
    """
    Shape tool outputs into MCP-friendly content array.
    """
    # Tool-level errors are returned in-band with isError flag.
    if isinstance(result, dict) and "error" in result:
        message = result.get("error") or "Error"
        return {
            "content": [{"type": "text", "text": str(message)}],
            "isError": True,
            "structuredContent": result,
        }

    text_repr = json.dumps(result, ensure_ascii=True)
    return {"content": [{"type": "text", "text": text_repr}], "structuredContent": result}
