from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from unimart.api.endpoints import auth, users
from unimart.core.config import settings
from unimart.core.errors import IdentityError, Internal, ValidationError
from unimart.core.logging import capture_error, get_logger, init_sentry, setup_logging
from unimart.core.security import SessionIssuer
from unimart.db.base import Base
from unimart.db.session import engine
from unimart.helpers.getters import isTestMode
from unimart.middleware.logging import AccessLoggingMiddleware

# Initialize logging and error tracking
setup_logging()
init_sentry()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Startup: database tables checked/created")
    yield
    await engine.dispose()


app = FastAPI(
    title="Unimart API",
    description="""
## Authentication

Accounts are verified by a one-time code sent to the registered email.

1. `POST /api/auth/register` and read the code from your inbox
2. `POST /api/auth/verify-otp` with `purpose: "register"`
3. `POST /api/auth/login` and copy the `access_token`
4. Click **Authorize** and paste the token, or log in there with your email
   in the `username` field

Session tokens are valid for 7 days and cannot be revoked before expiry.
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# Missing JWT_SECRET already failed in Settings(); an empty one fails here.
app.state.session_issuer = SessionIssuer.from_settings(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(AccessLoggingMiddleware, enabled=not isTestMode())


@app.exception_handler(IdentityError)
async def identity_error_handler(request: Request, exc: IdentityError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = ValidationError.message
    if errors:
        # Name the first offending field, without the "body"/"query" prefix
        loc = [str(part) for part in errors[0].get("loc", ())[1:]]
        message = f"{'.'.join(loc)}: {errors[0].get('msg')}" if loc else errors[0].get("msg", message)
    error = ValidationError(message)
    content = error.to_dict()
    content["errors"] = jsonable_encoder(errors)
    return JSONResponse(status_code=422, content=content)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    capture_error(
        exc,
        context={"request": {"path": request.url.path, "method": request.method}},
        tags={"request_id": getattr(request.state, "request_id", "")},
    )
    error = Internal()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])


@app.get("/")
def root():
    return {"message": "Unimart API is running. See /docs for the OpenAPI documentation."}
