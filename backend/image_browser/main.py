from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware

from .audit import OperationAuditMiddleware
from .config import settings
from .errors import ImageBrowserError
from .logger import logger
from .routers import admin, folders


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Starting image browser on bucket '{settings.storage.bucket}' "
        f"({settings.storage.backend} backend)"
    )
    yield
    logger.info("Shutdown complete.")


api_app = FastAPI(root_path="/api")

# Middleware added last runs first
api_app.add_middleware(OperationAuditMiddleware)

api_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@api_app.exception_handler(ImageBrowserError)
async def image_browser_error_handler(request: Request, exc: ImageBrowserError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@api_app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=exc.headers,
    )


@api_app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": f"Invalid request: {errors}"},
    )


api_app.include_router(folders.router)
api_app.include_router(admin.router)

app = FastAPI(lifespan=lifespan, title="Image Browser")
app.mount("/api", api_app)
