import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import Settings, configure_logging
from database import (
    build_engine,
    build_session_factory,
    check_connection,
    init_db,
    resolve_database_url,
)
from routes import auth_router, inquiry_router, project_router
from schemas import HealthResponse
from uploads import ensure_upload_dir

logger = logging.getLogger(__name__)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(location), "message": error.get("msg", "")})
    return JSONResponse(
        status_code=400, content={"detail": "Validation error", "errors": errors}
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"detail": "Something went wrong!"}
    if request.app.state.settings.is_development:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)
    settings.warn_insecure_defaults()

    app = FastAPI(
        title="Portfolio Backend API",
        description="Backend API for the portfolio site with contact inquiries and admin panel",
        version="1.0.0",
    )

    database_url = resolve_database_url(settings.database_url)
    engine = build_engine(database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    init_db(engine)
    logger.info("Using %s database", engine.dialect.name)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/api/health", response_model=HealthResponse)
    def health_check(request: Request):
        connected = check_connection(request.app.state.engine)
        return {
            "status": "ok",
            "message": "Server is running",
            "database": "connected" if connected else "disconnected",
        }

    app.include_router(auth_router, prefix="/api")
    app.include_router(inquiry_router, prefix="/api")
    app.include_router(project_router, prefix="/api")

    ensure_upload_dir(settings.public_dir)
    app.mount(
        "/uploads",
        StaticFiles(directory=os.path.join(settings.public_dir, "uploads")),
        name="uploads",
    )

    # Built SPA bundle, if one is deployed alongside the API
    if settings.frontend_dir and os.path.isdir(settings.frontend_dir):
        app.mount(
            "/", StaticFiles(directory=settings.frontend_dir, html=True), name="frontend"
        )
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
