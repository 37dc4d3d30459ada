from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response, PlainTextResponse
from starlette.requests import Request
from app.api.loan_routes import router as loan_router
from app.api.application_routes import router as application_router
from app.api.user_routes import router as user_router
from app.api.payment_routes import router as payment_router
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.dependencies import gateway
from app.core.exceptions import StoreUnavailable
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging
import traceback

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("loanlink")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds basic security headers to every non-OPTIONS response.

    OPTIONS requests are left untouched so CORSMiddleware fully owns
    preflight responses.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.is_serverless:
        # Connection is opened lazily by the first request
        if not settings.MONGODB_URI:
            logger.warning("MONGODB_URI not set, database routes will answer 503")
        yield
        return

    if not settings.MONGODB_URI:
        logger.error("MONGODB_URI is missing from the environment")
        raise RuntimeError("MONGODB_URI is not set in environment variables")

    await gateway.connect()
    yield
    await gateway.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Loan marketplace API: loan products, applications, users and fee payments",
    version="1.0.0",
    lifespan=lifespan
)


# Route handlers put the exact response body in `detail`
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if isinstance(exc.detail, dict):
        body = exc.detail
    else:
        body = {"message": str(exc.detail) if exc.detail else exc.status_code}
    logger.warning(f"HTTPException handled: {exc.status_code} {body}")
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.warning(f"Database unavailable for {request.method} {request.url.path}")
    return JSONResponse(status_code=503, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    body = {
        "message": "Request validation failed",
        "details": jsonable_encoder(exc.errors()),
    }
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{tb}")
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


# Middleware runs last-added-first, so CORS sees requests before the header middleware
app.add_middleware(SecurityHeadersMiddleware)

allowed_origins = settings.allowed_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials="*" not in allowed_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

app.include_router(loan_router)
app.include_router(application_router)
app.include_router(user_router)
app.include_router(payment_router)


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "LoanLink Server is running"


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "database": "connected" if gateway.is_connected else "disconnected",
        "mode": settings.DEPLOYMENT_MODE,
    }


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Server running on: http://localhost:{settings.PORT}")
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
