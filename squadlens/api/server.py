"""
squadlens - FastAPI Server

Serves the derived squad model (members, tasks, decisions, logs, issues)
for a single project root over a local HTTP API.
"""

import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core.provider import SquadDataProvider
from ..core.settings import SquadSettings
from .routes import issues, squad, standup
from .state import get_provider, set_provider, start_watching, stop_watching

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Stop the file watcher on shutdown."""
    yield
    stop_watching()


app = FastAPI(
    title="squadlens",
    description="Read API over a squad's Markdown roster, logs and decisions",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(squad.router, prefix="/api/squad", tags=["squad"])
app.include_router(issues.router, prefix="/api/issues", tags=["issues"])
app.include_router(standup.router, prefix="/api/standup", tags=["standup"])


@app.get("/health")
def health():
    """Health check endpoint"""
    provider = get_provider()
    return {"status": "ok", "root": str(provider.root), "squadFolder": provider.folder_name}


@app.get("/")
def root():
    """Root endpoint with API info"""
    return {
        "name": "squadlens",
        "version": __version__,
        "docs": "/docs",
    }


def main():
    """Main entry point for the server"""
    parser = argparse.ArgumentParser(description="squadlens server")
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Project root containing the squad folder (default: $SQUADLENS_ROOT or cwd)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=9877,
        help="Port to run the server on (default: 9877)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Refresh automatically when squad Markdown files change",
    )
    args = parser.parse_args()

    settings = SquadSettings.from_env()
    if args.root:
        settings.root = args.root.expanduser().resolve()
    provider = SquadDataProvider.from_settings(settings)
    set_provider(provider)
    if args.watch:
        start_watching(provider)

    print(f"Starting squadlens on {args.host}:{args.port} for {provider.squad_dir}")

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["access"]["fmt"] = "%(asctime)s %(levelprefix)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s %(levelprefix)s %(message)s"
    log_config["formatters"]["access"]["datefmt"] = "%H:%M:%S"
    log_config["formatters"]["default"]["datefmt"] = "%H:%M:%S"

    uvicorn.run(app, host=args.host, port=args.port, log_level="info", log_config=log_config)


if __name__ == "__main__":
    main()
