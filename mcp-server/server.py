from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from config import load_settings
from store_client import StoreCredentials
from store_tools import register_tools
from store_tools.context import reset_request_credentials, set_request_credentials
from store_tools.registry import tool_result_payload

load_dotenv()

SERVICE_NAME = "shopware-store-mcp"

_LOGGER = logging.getLogger("storemcp.server")

settings = load_settings()
mcp = FastMCP(name=SERVICE_NAME)

tool_invokers = register_tools(mcp, settings)
# Primary transport: streamable HTTP at /mcp/sse.
mcp_streamable_app = mcp.http_app(path="/sse", transport="streamable-http")
# Legacy SSE transport for clients that still open GET /sse + POST messages.
mcp_legacy_sse_app = mcp.http_app(path="/sse", transport="sse")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # The streamable transport's session manager lives in its own lifespan.
    async with mcp_streamable_app.lifespan(mcp_streamable_app):
        yield


app = FastAPI(title="Shopware Store MCP Server", lifespan=lifespan)


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def _credentials_from_headers(request: Request) -> StoreCredentials:
    headers = request.headers
    return StoreCredentials(
        access_key=headers.get("sw-access-key") or None,
        context_token=headers.get("sw-context-token") or None,
        language_id=headers.get("sw-language-id") or None,
        shop_url=headers.get("x-shop-url") or None,
    )


@app.get("/health")
async def health() -> dict[str, Any]:
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "tools": sorted(tool_invokers),
    }


@app.get("/")
async def root(request: Request) -> dict[str, Any]:
    base = _base_url(request)
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "transport": "streamable-http",
        "sse_url": f"{base}/mcp/sse",
        "legacy_sse_url": f"{base}/mcp-legacy/sse",
    }


@app.post("/mcp/tool/{tool}")
async def invoke_tool(tool: str, request: Request) -> dict[str, Any]:
    invoker = tool_invokers.get(tool)
    if not invoker:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {tool}")

    payload = await request.json() if request.headers.get("content-type", "").startswith("application/json") else {}
    if not isinstance(payload, dict):
        payload = {}

    arguments = payload.get("arguments", payload)
    if not isinstance(arguments, dict):
        raise HTTPException(status_code=400, detail="Tool arguments must be a JSON object")

    token = set_request_credentials(_credentials_from_headers(request))
    try:
        content = await invoker(**arguments)
        return tool_result_payload(content)
    except ToolError as exc:
        return tool_result_payload(error=exc)
    except TypeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        reset_request_credentials(token)


app.mount("/mcp", mcp_streamable_app)
app.mount("/mcp-legacy", mcp_legacy_sse_app)


@app.api_route("/sse", methods=["GET", "HEAD", "POST", "DELETE"])
async def sse_alias() -> RedirectResponse:
    return RedirectResponse(url="/mcp/sse", status_code=307)


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not settings.http_enabled:
        _LOGGER.info("MCP HTTP server disabled via MCP_HTTP_ENABLED=false; serving over stdio")
        mcp.run()
        return

    import uvicorn

    _LOGGER.info("Shopware Store MCP Server running on port %s", settings.http_port)
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()


__all__ = ["app", "main", "mcp", "settings", "tool_invokers"]
