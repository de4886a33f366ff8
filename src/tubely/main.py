"""FastAPI application entry point."""

import os

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging
from .media.media_tools import MediaToolkit
from .storage.s3_uploader import S3Uploader


def create_app(
    config: AppConfig | None = None,
    *,
    toolkit: MediaToolkit | None = None,
    uploader: S3Uploader | None = None,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="Tubely")
    include_routers(app, cfg, toolkit=toolkit, uploader=uploader)
    return app


def run() -> None:
    """Serve the app with uvicorn; ``HOST`` and ``PORT`` override the bind address."""
    uvicorn.run(
        "tubely.main:create_app",
        factory=True,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8091")),
    )


if __name__ == "__main__":
    run()
