import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from classroom_exchange.api.router import api_router
from classroom_exchange.core.config import settings
from classroom_exchange.core.errors import ExchangeError
from classroom_exchange.core.message_broker import message_broker
from classroom_exchange.db.session import init_db

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Classroom Exchange...")
    if settings.auto_create_tables:
        init_db()
    yield
    message_broker.close()
    logger.info("Shutdown complete")


app = FastAPI(title="Classroom Exchange", lifespan=lifespan)
app.include_router(api_router, prefix="/api")


@app.exception_handler(ExchangeError)
async def exchange_error_handler(_: Request, exc: ExchangeError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _flatten_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(i) for i in err.get("loc", []) if i != "body")
        parts.append(f"{loc}: {err.get('msg', 'Invalid value')}")
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": _flatten_validation_errors(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "처리 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."},
    )


def main():
    """Run the application."""
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
