"""
FastAPI application entrypoint.
Run with: uvicorn laportal.main:app --reload --port 8000

API base path: routes are mounted at root (no /api prefix).
  - Auth:  POST /auth/login, GET /auth/me, POST /auth/logout, POST /auth/student/signup,
           GET /auth/students/pending, POST /auth/students/{id}/approve|reject,
           POST /auth/change-password, POST /auth/admin/reset-password
  - Staff: GET/POST /staff, GET/PUT/DELETE /staff/{nuid}, GET/PUT /staff/{nuid}/schedule,
           PUT /staff/cl/{cl_nuid}/assign
  - Schedule: GET /schedule/my, POST /schedule, PUT/DELETE /schedule/{id}, POST /schedule/generate-sessions
  - Office hours: GET /office-hours, GET /office-hours/sessions, POST /office-hours/sessions/{id}/queue
  - Feedback: POST /feedback (public), GET /feedback (staff)
  - Courses: GET /courses

Every API error is JSON {"message": "..."}. Login, signup and password routes are rate limited per
client address (429). When STATIC_DIR is set the front end is served from it.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from laportal.config import settings
from laportal.extensions import limiter
from laportal.api.auth import router as auth_router
from laportal.api.courses import router as courses_router
from laportal.api.feedback import router as feedback_router
from laportal.api.office_hours import router as office_hours_router
from laportal.api.schedule import router as schedule_router
from laportal.api.staff import router as staff_router

logger = logging.getLogger("laportal.main")

app = FastAPI(
    title="LA Portal API",
    description="Course staffing: staff directory, schedules, office hours and feedback.",
    version="0.1.0",
)
app.state.limiter = limiter

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(staff_router)
app.include_router(schedule_router)
app.include_router(office_hours_router)
app.include_router(feedback_router)
app.include_router(courses_router)


def _validation_message(exc: RequestValidationError) -> str:
    """First error as '<field>: <reason>'."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
    field = ".".join(loc) or "body"
    msg = str(err.get("msg", "invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{field}: {msg}"


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit hit on %s %s (%s)", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"message": "Too many requests, please try again later."},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": _validation_message(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    detail = "Internal server error"
    if settings.debug:
        detail = f"Internal server error: {type(exc).__name__}: {exc}"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": detail})


@app.on_event("startup")
def startup():
    """Configure logging, refuse to run without SECRET_KEY, create SQLite tables."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if not (settings.secret_key or "").strip():
        logger.critical("SECRET_KEY is not set. Set SECRET_KEY in env or .env.")
        raise RuntimeError("SECRET_KEY is not set. Set SECRET_KEY in env or .env.")
    if settings.is_production and "sqlite" in settings.database_url:
        logger.warning("ENV=production with a SQLite DATABASE_URL; expected the Postgres connection string.")
    from laportal.database import init_sqlite_db
    init_sqlite_db()
    logger.info("Token lifetime %sh, bcrypt rounds %s", settings.jwt_expire_hours, settings.bcrypt_rounds)


@app.get("/healthz", response_class=PlainTextResponse)
def healthz():
    """Liveness only."""
    return "ok"


if settings.static_dir is not None:
    if settings.static_dir.is_dir():
        # registered last so API routes win
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="frontend")
    else:
        logger.warning("STATIC_DIR %s does not exist; front end not served", settings.static_dir)
