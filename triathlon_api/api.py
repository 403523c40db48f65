"""
REST API for the Triathlon Stats Gateway.

Provides the HTTP endpoints the browser app calls.
- /api/claude - Natural language question -> UI action (LLM)
- /api/triathlon - World Triathlon API proxy
- /api/youtube - Recent videos from channel RSS feeds
- /api/youtube-videos - YouTube Data API lookups
"""

import asyncio
import logging
from typing import Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .config import Settings
from .errors import GatewayError, MethodNotAllowedError
from .models import ErrorResponse, HealthResponse, VideoFeedResponse
from .prompts import load_knowledge_base
from .query_agent import parse_query_request, require_api_key, translate_query
from .stats_proxy import fetch_stats
from .utils import cors_headers
from .video_feed import CACHE_CONTROL, collect_recent_videos
from .youtube_channels import fetch_videos


# =============================================================================
# Configuration
# =============================================================================

API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)

# Per-route CORS headers, applied to success and error responses alike
ROUTE_CORS: Dict[str, Dict[str, str]] = {
    "/api/claude": cors_headers("POST, OPTIONS", allow_headers="Content-Type"),
    "/api/triathlon": cors_headers("GET"),
    "/api/youtube": cors_headers("GET"),
    "/api/youtube-videos": cors_headers("GET"),
}

ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 405, 500)}

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]


# =============================================================================
# Middleware & Error Handling
# =============================================================================

class RouteCORSMiddleware(BaseHTTPMiddleware):
    """Attach the route's CORS headers to every response it produces."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in ROUTE_CORS.get(request.url.path, {}).items():
            response.headers[name] = value
        return response


async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


# =============================================================================
# App Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None, knowledge_base: Optional[str] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Gateway configuration. Read from the environment if omitted.
        knowledge_base: Prompt template for the query handler. Loaded from
            settings (or the built-in default) if omitted.
    """
    settings = settings or Settings.from_env()
    if knowledge_base is None:
        knowledge_base = load_knowledge_base(settings)

    app = FastAPI(
        title="Triathlon Stats Gateway",
        description="Server-side proxies for the triathlon statistics app",
        version=API_VERSION,
    )

    app.add_middleware(RouteCORSMiddleware)
    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    @app.get("/", response_model=HealthResponse)
    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": API_VERSION}

    @app.api_route("/api/claude", methods=ALL_METHODS, responses=ERROR_RESPONSES)
    async def claude_endpoint(request: Request):
        """
        Translate a natural language question into an action descriptor.

        Always answers 200 once the LLM replied 2xx with text; non-JSON text
        comes back as an ``answer`` action.
        """
        if request.method == "OPTIONS":
            return Response(status_code=200)
        if request.method != "POST":
            raise MethodNotAllowedError()

        require_api_key(settings)
        query_request = parse_query_request(await request.body())

        result = await asyncio.to_thread(
            translate_query,
            query_request.query,
            settings,
            knowledge_base,
        )
        return JSONResponse(status_code=200, content=result)

    @app.get("/api/triathlon", responses=ERROR_RESPONSES)
    async def triathlon_endpoint(request: Request):
        """Proxy ``endpoint`` plus the remaining query parameters to the stats API."""
        params = [(k, v) for k, v in request.query_params.multi_items() if k != "endpoint"]
        status_code, data = await asyncio.to_thread(
            fetch_stats,
            request.query_params.get("endpoint"),
            params,
            settings,
        )
        return JSONResponse(status_code=status_code, content=data)

    @app.get("/api/youtube", response_model=VideoFeedResponse, responses=ERROR_RESPONSES)
    async def youtube_feed_endpoint():
        """Newest videos across the fixed channel feeds (at most 8)."""
        try:
            videos = await collect_recent_videos()
        except Exception as e:
            logger.error("YouTube RSS error: %s", e)
            raise GatewayError("Failed to fetch YouTube videos") from e

        return JSONResponse(
            status_code=200,
            content={"videos": videos},
            headers={"Cache-Control": CACHE_CONTROL},
        )

    @app.get("/api/youtube-videos", responses=ERROR_RESPONSES)
    async def youtube_videos_endpoint(request: Request):
        """YouTube Data API lookups selected by the ``action`` parameter."""
        return await fetch_videos(request.query_params, settings)

    return app


app = create_app()


# =============================================================================
# Run Server
# =============================================================================

def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Run the FastAPI server."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    if reload:
        uvicorn.run("triathlon_api.api:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server(host="0.0.0.0", port=8000, reload=True)
