from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import os

from core.config import logger, ALLOWED_ORIGINS, STORAGE_DIR  # type: ignore
from core.errors import AppError
from utils.response import error_response

# Routers
from routers import auth, users, locations, bookings, collection_dates, settings  # type: ignore
from routers.slot_times import session_times_router, special_request_times_router  # type: ignore

app = FastAPI(title="Studio Bookings")

# ---- CORS setup ----
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Security headers ---
@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    return response


# ---- Error envelopes ----
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return error_response(exc.message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        message = str(errors[0].get("msg") or message)
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
    return error_response(message, 400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response("Internal server error", 500)


# ---- Static mount (local content store) ----
os.makedirs(STORAGE_DIR, exist_ok=True)
app.mount("/storage", StaticFiles(directory=STORAGE_DIR), name="storage")


# ---- Include routers ----
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(locations.router)
app.include_router(bookings.router)
app.include_router(session_times_router)
app.include_router(special_request_times_router)
app.include_router(collection_dates.router)
app.include_router(settings.router)


@app.on_event("startup")
async def _init_schema():
    try:
        from core.database import init_db
        init_db()
    except Exception as _ex:
        logger.warning(f"init_db failed: {_ex}")


@app.get("/health")
def health():
    return {"success": True, "message": "Server is running"}


@app.get("/api")
def api_index():
    return {
        "success": True,
        "message": "Studio Bookings API",
        "data": {
            "endpoints": [
                "/api/auth",
                "/api/users",
                "/api/locations",
                "/api/bookings",
                "/api/session-times",
                "/api/special-request-times",
                "/api/collection-dates",
                "/api/settings",
            ]
        },
    }
