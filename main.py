"""
LexiGuard Backend
Rights guides, incident logs, wallet identity and Stripe-billed premium access
"""

from pathlib import Path
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

# Import routers
from auth import auth_router
from routers.billing_router import billing_router
from routers.content_router import router as content_router
from routers.incidents_router import router as incidents_router
from routers.users_router import router as users_router
from database import init_db
from config.settings import settings

# Logging setup - write ALL events to /logs/app.log
LOGS_DIR = Path("./logs")
LOGS_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "app.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

from backend.utils.responses import error_response

# ============================================================================
# FASTAPI APP SETUP
# ============================================================================

app = FastAPI(title="LexiGuard API")


def _is_render_env() -> bool:
    """Check if running in Render.com environment"""
    return bool(settings.render or settings.render_external_url or settings.render_service_name)


# Uncaught exception middleware - logs all unhandled exceptions and returns 500
class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception: {e}\n{traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"ok": False, "data": {}, "error": "internal_error", "message": "Internal Server Error"}
            )


# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: CSP, HSTS, X-Frame-Options, X-Content-Type-Options"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        # JSON API only; Stripe.js runs on the frontend origin
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; "
            "frame-ancestors 'none'; "
            "base-uri 'none';"
        )

        # Only set in production (Render environment) where HTTPS is guaranteed
        if _is_render_env():
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"

        return response


app.add_middleware(UncaughtExceptionMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS MUST be near the bottom
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Invalid bodies and query parameters answer 400 with field details"""
    logger.info(f"Validation failed for {request.method} {request.url.path}: {exc.errors()}")
    return error_response(
        "validation_error",
        status=400,
        message="Invalid request",
        data={"details": jsonable_encoder(exc.errors())},
    )


# ============================================================================
# STARTUP CHECKS
# ============================================================================
@app.on_event("startup")
async def check_env_keys_on_startup():
    """Warn about missing billing configuration (non-fatal)"""
    key_checks = {
        "STRIPE_SECRET_KEY": settings.stripe_secret_key,
        "STRIPE_WEBHOOK_SECRET": settings.stripe_webhook_secret,
    }
    missing = [env_key for env_key, value in key_checks.items() if not value]
    if missing:
        logger.warning(f"Startup check: Missing environment variables: {', '.join(missing)}")
    else:
        logger.info("Startup check: All billing environment variables are set")


# Initialize database on startup
@app.on_event("startup")
async def initialize_database():
    """Create all tables."""
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


@app.get("/api/health")
async def health():
    return {"status": "ok"}


# ============================================================================
# INCLUDE ROUTERS
# ============================================================================
app.include_router(billing_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(content_router)
app.include_router(incidents_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
