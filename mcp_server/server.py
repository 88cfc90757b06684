#!/usr/bin/env python3
"""
API Cache MCP Server

MCP server that exposes the cached, retrying request client as tools.
Lets an agent fetch JSON endpoints, warm and invalidate the cache, and
inspect cache statistics.

Usage:
    python -m mcp_server.server

Set API_BASE_URL (and optionally API_AUTH_TOKEN) in .env.
"""

import json
import logging
import asyncio

from mcp.server import Server
from mcp.types import Tool, TextContent
import mcp.server.stdio

from api_cache.cache import cache_store, cache_clear, cache_stats
from api_cache.client import ApiClient, RequestConfig
from api_cache.config import API_AUTH_TOKEN, API_BASE_URL, LOG_LEVEL, MAX_PREFETCH_URLS
from api_cache.prefetch import Prefetcher
from api_cache.sweeper import CacheSweeper

# =============================================================================
# LOGGING
# =============================================================================

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("api-cache-mcp")

# =============================================================================
# CLIENT
# =============================================================================


def build_client() -> ApiClient:
    """Create the client used by the tools, adding auth if configured."""
    headers = {"Content-Type": "application/json"}
    if API_AUTH_TOKEN:
        headers["Authorization"] = f"Bearer {API_AUTH_TOKEN}"
    return ApiClient(API_BASE_URL, cache=cache_store, default_config=RequestConfig(headers=headers))


client = build_client()
prefetcher = Prefetcher(client)

MUTATING_METHODS = ("POST", "PUT", "DELETE")

# =============================================================================
# MCP SERVER
# =============================================================================

server = Server("api-cache")


@server.list_tools()
async def list_tools() -> list[Tool]:
    """Return available tools."""
    return [
        Tool(
            name="fetch_resource",
            description="""Fetch a JSON resource with a GET request.

Responses are cached (5 min by default). Failed attempts are retried
with exponential backoff.

Returns the payload and whether it was served from cache.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "url": {
                        "type": "string",
                        "description": "Path relative to API_BASE_URL, or a full URL"
                    },
                    "cache": {
                        "type": "boolean",
                        "default": True,
                        "description": "Read and write the response cache"
                    },
                    "cache_ttl": {
                        "type": "number",
                        "minimum": 0,
                        "description": "Cache lifetime in seconds"
                    },
                    "retries": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 10,
                        "description": "Total number of attempts"
                    },
                    "timeout": {
                        "type": "number",
                        "minimum": 0,
                        "description": "Per-attempt timeout in seconds"
                    }
                },
                "required": ["url"]
            }
        ),
        Tool(
            name="send_request",
            description="""Send a POST, PUT or DELETE request.

These requests never use the cache.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "url": {
                        "type": "string",
                        "description": "Path relative to API_BASE_URL, or a full URL"
                    },
                    "method": {
                        "type": "string",
                        "enum": list(MUTATING_METHODS),
                        "description": "HTTP method"
                    },
                    "body": {
                        "description": "JSON body (ignored for DELETE)"
                    }
                },
                "required": ["url", "method"]
            }
        ),
        Tool(
            name="prefetch_resources",
            description=f"""Warm the cache for up to {MAX_PREFETCH_URLS} URLs.

Failures are ignored. Returns the URLs that were fetched.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "urls": {
                        "type": "array",
                        "items": {"type": "string"},
                        "maxItems": MAX_PREFETCH_URLS,
                        "description": "URLs to prefetch"
                    }
                },
                "required": ["urls"]
            }
        ),
        Tool(
            name="invalidate_cache",
            description="Drop the cached response for a URL.",
            inputSchema={
                "type": "object",
                "properties": {
                    "url": {
                        "type": "string",
                        "description": "URL that was fetched"
                    }
                },
                "required": ["url"]
            }
        ),
        Tool(
            name="clear_cache",
            description="Remove every cached response.",
            inputSchema={"type": "object", "properties": {}}
        ),
        Tool(
            name="cache_stats",
            description="Show cache size, keys and approximate memory usage.",
            inputSchema={"type": "object", "properties": {}}
        )
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Execute a tool."""
    logger.info(f"Tool call: {name} with {arguments}")

    try:
        if name == "fetch_resource":
            result = await handle_fetch_resource(arguments)
        elif name == "send_request":
            result = await handle_send_request(arguments)
        elif name == "prefetch_resources":
            result = await handle_prefetch_resources(arguments)
        elif name == "invalidate_cache":
            result = await handle_invalidate_cache(arguments)
        elif name == "clear_cache":
            result = await handle_clear_cache(arguments)
        elif name == "cache_stats":
            result = await handle_cache_stats(arguments)
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, ensure_ascii=False, indent=2, default=str)
        )]

    except Exception as e:
        logger.error(f"Tool error: {e}", exc_info=True)
        return [TextContent(
            type="text",
            text=json.dumps({
                "error": str(type(e).__name__),
                "message": str(e)
            }, ensure_ascii=False)
        )]


# =============================================================================
# TOOL HANDLERS
# =============================================================================

async def handle_fetch_resource(args: dict) -> dict:
    """Handle fetch_resource tool."""
    url = args.get("url")
    if not url:
        return {"error": "url is required"}

    response = client.get(
        url,
        cache=args.get("cache"),
        cache_ttl=args.get("cache_ttl"),
        retries=args.get("retries"),
        timeout=args.get("timeout"),
    )

    return {
        "url": url,
        "data": response.data,
        "cached": response.cached,
        "timestamp": response.timestamp
    }


async def handle_send_request(args: dict) -> dict:
    """Handle send_request tool."""
    url = args.get("url")
    if not url:
        return {"error": "url is required"}

    method = str(args.get("method", "")).upper()
    if method not in MUTATING_METHODS:
        return {"error": f"method must be one of {', '.join(MUTATING_METHODS)}"}

    body = args.get("body")
    if method == "POST":
        response = client.post(url, body)
    elif method == "PUT":
        response = client.put(url, body)
    else:
        response = client.delete(url)

    return {
        "url": url,
        "method": method,
        "data": response.data,
        "timestamp": response.timestamp
    }


async def handle_prefetch_resources(args: dict) -> dict:
    """Handle prefetch_resources tool."""
    urls = args.get("urls")
    if not urls:
        return {"error": "urls is required"}
    if not isinstance(urls, list):
        return {"error": "urls must be a list"}
    if len(urls) > MAX_PREFETCH_URLS:
        return {"error": f"At most {MAX_PREFETCH_URLS} urls per call"}

    done = prefetcher.prefetch(urls)

    return {
        "requested": len(urls),
        "prefetched": done
    }


async def handle_invalidate_cache(args: dict) -> dict:
    """Handle invalidate_cache tool."""
    url = args.get("url")
    if not url:
        return {"error": "url is required"}

    prefetcher.prefetched.discard(url)
    return {
        "url": url,
        "invalidated": client.invalidate_cache(url)
    }


async def handle_clear_cache(args: dict) -> dict:
    """Handle clear_cache tool."""
    prefetcher.prefetched.clear()
    return cache_clear()


async def handle_cache_stats(args: dict) -> dict:
    """Handle cache_stats tool."""
    return cache_stats()


# =============================================================================
# MAIN
# =============================================================================

async def main():
    """Start the MCP server."""
    logger.info("Starting API Cache MCP Server...")

    with CacheSweeper(cache_store):
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )


def run():
    """Console entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
