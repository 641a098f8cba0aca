import logging
from typing import Any, Callable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from blogwriter import __version__
from blogwriter.analyze_worker import analyze_website
from blogwriter.blog_worker import compose_blog
from blogwriter.brand_store import BrandProfileStore
from blogwriter.chat_worker import chat_edit
from blogwriter.config import Settings
from blogwriter.errors import BlogWriterError, ValidationError
from blogwriter.logging_config import configure_logging
from blogwriter.schemas.models import (
    AnalysisRequest,
    AnalysisResult,
    ChatReply,
    ChatRequest,
    GenerationRequest,
    GenerationResult,
)
from blogwriter.vendors import GenerationClient, SearchClient

logger = logging.getLogger(__name__)

CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
ENDPOINTS = ("analyze-website", "generate-blog", "chat-edit-blog")


class PreflightCORSMiddleware(CORSMiddleware):
    """CORS whose accepted preflights answer an empty 200 instead of \"OK\"."""

    def preflight_response(self, request_headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


def create_app(
    settings: Optional[Settings] = None,
    search: Optional[SearchClient] = None,
    generation: Optional[GenerationClient] = None,
    brand_store: Optional[BrandProfileStore] = None,
    page_transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    """Build the API. Vendor clients default to real ones built from ``settings``."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="SEO Blog Writer API", version=__version__)
    app.state.settings = settings

    # ── CORS ──────────────────────────────────────────────────────────────────
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=CORS_HEADERS,
    )

    # ── Error envelope ────────────────────────────────────────────────────────

    def error_response(exc: Exception) -> JSONResponse:
        if isinstance(exc, ValidationError):
            status = settings.validation_error_status
        elif isinstance(exc, BlogWriterError):
            status = exc.status_code
        else:
            status = 500
        message = str(exc) or "An unknown error occurred"
        return JSONResponse({"error": message}, status_code=status)

    def run_handler(name: str, handler: Callable[[], Any]) -> Any:
        try:
            return handler()
        except BlogWriterError as exc:
            logger.error("Error in %s: %s", name, exc)
            return error_response(exc)
        except Exception as exc:
            logger.exception("Unexpected error in %s", name)
            return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ())[1:]) or 'body'}: {err.get('msg')}"
            for err in exc.errors()
        )
        logger.error("Invalid request body for %s: %s", request.url.path, details)
        return error_response(ValidationError(f"Invalid request body: {details}"))

    # ── Endpoints ─────────────────────────────────────────────────────────────

    @app.post("/analyze-website", response_model=AnalysisResult)
    def analyze_website_endpoint(request: AnalysisRequest):
        return run_handler(
            "analyze-website",
            lambda: analyze_website(request.website_url, settings, search=search),
        )

    @app.post("/generate-blog", response_model=GenerationResult)
    def generate_blog_endpoint(request: GenerationRequest):
        return run_handler(
            "generate-blog",
            lambda: compose_blog(
                request,
                settings,
                search=search,
                generation=generation,
                brand_store=brand_store,
                page_transport=page_transport,
            ),
        )

    @app.post("/chat-edit-blog", response_model=ChatReply)
    def chat_edit_blog_endpoint(request: ChatRequest):
        return run_handler(
            "chat-edit-blog",
            lambda: ChatReply(reply=chat_edit(request, settings, generation=generation)),
        )

    def preflight() -> Response:
        return Response(status_code=200)

    for name in ENDPOINTS:
        app.add_api_route(f"/{name}", preflight, methods=["OPTIONS"], include_in_schema=False)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


# ── Entry point ───────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "blogwriter.main:app",
        host=app.state.settings.host,
        port=app.state.settings.port,
        reload=False,
    )
