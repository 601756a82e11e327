import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core import db
from core.config import logger_settings
from core.logger import configure_logging
from core.orm import DeadlineExceededError, OrmError
from users import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(logger_settings())
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

app.include_router(users_router.router, tags=["users"])


@app.exception_handler(OrmError)
async def orm_error_handler(_: Request, exc: OrmError) -> JSONResponse:
    logger.error("query_failed operation=%s error=%s", exc.operation, exc)
    status_code = (
        status.HTTP_504_GATEWAY_TIMEOUT
        if isinstance(exc, DeadlineExceededError)
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(
        status_code=status_code,
        content={"status": False, "message": "Something went wrong", "errors": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"status": False, "message": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": False, "message": str(exc.detail), "errors": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "projects management api"}
