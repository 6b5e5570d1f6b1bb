# whalemall/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from whalemall.api.routes import router as api_router
from whalemall.config import Settings
from whalemall.db import init_db, make_engine, make_session_factory
from whalemall.errors import MarketplaceError, ValidationError
from whalemall.security import ContactCipher
from whalemall.seed import seed_sample_listings
from whalemall.utils import logger


def _error_body(err: MarketplaceError) -> dict:
    return {"success": False, "code": err.code, "message": err.message}


def _validation_response(errors) -> JSONResponse:
    body = _error_body(ValidationError("Validation failed"))
    body["errors"] = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in errors
    ]
    return JSONResponse(status_code=ValidationError.status_code, content=body)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    engine = make_engine(settings)
    session_factory = make_session_factory(engine)
    cipher = ContactCipher(settings.encryption_key)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Ensure database tables are created on startup
        init_db(engine)
        if settings.seed_sample_data:
            db = session_factory()
            try:
                seed_sample_listings(db, cipher, settings.seed_admin_id)
            finally:
                db.close()
        yield
        engine.dispose()

    app = FastAPI(title="Blue Whale Mall", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.cipher = cipher
    app.include_router(api_router)

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _validation_response(exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "code": "INTERNAL_ERROR", "message": "Internal server error"},
        )

    return app


app = create_app()
