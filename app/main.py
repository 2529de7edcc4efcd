from contextlib import asynccontextmanager
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import router as auth_router
from .user import router as user_router, address_router
from .e_commerce import category_router, product_router, coupon_router
from .core.config import APP_NAME, DEBUG, LOG_LEVEL, RATE_LIMIT_PER_MINUTE
from .core.database import engine, Base
from .core.exceptions import AppError, AuthError
from .core.rate_limit import RateLimiter
from .core.responses import error_response

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables when starting up
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {str(e)}")
        raise
    yield
    engine.dispose()


app = FastAPI(title=APP_NAME, debug=DEBUG, lifespan=lifespan)
app.state.rate_limiter = RateLimiter(RATE_LIMIT_PER_MINUTE)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    client_ip = request.client.host if request.client else "unknown"
    if not request.app.state.rate_limiter.hit(client_ip):
        logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
        return error_response(429, "Too many requests, please try again later")
    response = await call_next(request)
    response.headers["X-RateLimit-Remaining"] = str(request.app.state.rate_limiter.remaining(client_ip))
    return response


@app.middleware("http")
async def request_log_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    start = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception(f"[{request_id}] Unhandled exception on {request.method} {request.url.path}: {str(e)}")
        response = error_response(500, "Internal server error")

    latency_ms = (time.perf_counter() - start) * 1000
    message = f"[{request_id}] {request.method} {request.url.path} {response.status_code} {latency_ms:.1f}ms"
    if response.status_code >= 500:
        logger.error(message)
    elif response.status_code >= 400:
        logger.warning(message)
    else:
        logger.info(message)

    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return error_response(exc.status_code, exc.message, exc.data, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    ]
    return error_response(400, "Invalid request parameters", {"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


# Exception handler for generic exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}")
    return error_response(500, "Internal server error")


# Health check endpoint
@app.get("/health")
def health_check():
    return {"status": "healthy"}


# Include routers
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(address_router)
app.include_router(category_router)
app.include_router(product_router)
app.include_router(coupon_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=DEBUG, log_level=LOG_LEVEL.lower())
