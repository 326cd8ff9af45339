import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lexify.api.api import api_router
from lexify.core.config import settings
from lexify.db import session as db_session
from lexify.db.base import Base

# --- Logging ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Lexify API", openapi_url="/api/openapi.json")


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value or value == "None":
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _cors_origins() -> list[str]:
    candidates = {_sanitize_origin(origin) for origin in settings.BACKEND_CORS_ORIGINS}
    candidates.add(_sanitize_origin(str(settings.FRONTEND_BASE_URL)))
    origins = sorted(origin for origin in candidates if origin)
    logger.info("CORS origins: %s", origins)
    return origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type", "X-Access-Token"],
)


# --- Error bodies: always {"message": ...} ---
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )


app.include_router(api_router, prefix="/api")


@app.on_event("startup")
def startup():
    logger.info("Checking database tables...")
    Base.metadata.create_all(bind=db_session.engine)
    logger.info("Database tables ready.")


@app.get("/")
def read_root():
    return {"message": "Welcome to Lexify API!"}
