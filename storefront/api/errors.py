# storefront/api/errors.py
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.domain.errors import DomainError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _failure(status_code: int, message: str, code: str, **extra) -> JSONResponse:
    body = {"success": False, "message": message, "error": code}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return _failure(exc.status_code, exc.message, exc.code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return _failure(400, "Bledne dane wejsciowe", "ValidationError", errors=errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    #401/403 z dependencies i 404/405 z routingu w tej samej kopercie
    codes = {401: "Unauthorized", 403: "Forbidden", 404: "NotFound", 405: "MethodNotAllowed"}
    return _failure(exc.status_code, str(exc.detail), codes.get(exc.status_code, "HTTPError"))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return _failure(500, "Wewnetrzny blad bazy danych", "InternalError")


async def storage_error_handler(request: Request, exc: OSError) -> JSONResponse:
    #blad dysku (np. brak uprawnien do UPLOAD_PATH)
    logger.exception(f"Storage error on {request.method} {request.url.path}")
    return _failure(500, "Wewnetrzny blad zapisu pliku", "InternalError")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(OSError, storage_error_handler)
