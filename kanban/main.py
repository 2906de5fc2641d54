"""FastAPI application entry point."""
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kanban.api.v1 import api_router
from kanban.config import settings
from kanban.database import Base, engine
from kanban.errors import register_error_handlers
from kanban.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging()
    Base.metadata.create_all(bind=engine)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "ok", "version": settings.APP_VERSION}

    logger.info("%s %s ready (API at %s)", settings.APP_NAME, settings.APP_VERSION, settings.API_PREFIX)
    return app


app = create_app()


def run() -> None:
    uvicorn.run("kanban.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
