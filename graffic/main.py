from __future__ import annotations

from contextlib import asynccontextmanager

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from graffic.api.v1.router import router as api_router
from graffic.core.errors import NotFoundError, ValidationError
from graffic.core.logging import setup_logging
from graffic.db.base import Base
from graffic.db.session import engine as db_engine
from graffic.models.common import ErrorResponse
from graffic.services.job_queue import close_redis
from graffic.services.runtime import build_runtime


def create_app(runtime=None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        if runtime is None:
            setup_logging()
            Base.metadata.create_all(db_engine)
            app.state.runtime = build_runtime()
        else:
            app.state.runtime = runtime

        yield

        # Shutdown
        if runtime is None:
            close_redis()

    app = FastAPI(title="Graffic API", lifespan=lifespan)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        body = ErrorResponse(error="validation_error", message=str(exc))
        return JSONResponse(status_code=422, content=body.model_dump())

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        body = ErrorResponse(error="not_found", message=str(exc))
        return JSONResponse(status_code=404, content=body.model_dump())

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
