"""FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from b2b_backend.api.error_handlers import register_error_handlers
from b2b_backend.api.limiter import limiter
from b2b_backend.config import settings
from b2b_backend.db.base import init_db
from b2b_backend.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and initialize database on startup."""
    setup_logging(settings.log_level, settings.log_format)
    try:
        init_db()
    except ValueError:
        logger.warning("DATABASE_URL not configured, skipping table creation")
    yield


app = FastAPI(
    title="B2B Network API",
    description="Accounts, profiles, business pages, jobs and connections",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Return 429 with a clear message when rate limit is exceeded."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


# Import and include routers
from b2b_backend.api.routes import (  # noqa: E402
    applications,
    auth,
    business_profile,
    connections,
    invitations,
    jobs,
    members,
    owner,
    profile,
    roles,
    users,
)

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(roles.router, prefix="/roles", tags=["Roles"])
app.include_router(profile.router, prefix="/profile", tags=["Profile"])
# Fixed member paths must win over /{profile_id}/members/{member_id}
app.include_router(members.router, prefix="/business-profile", tags=["Members"])
app.include_router(owner.router, prefix="/business-profile", tags=["Owner"])
app.include_router(invitations.profile_router, prefix="/business-profile", tags=["Invitations"])
app.include_router(jobs.router, prefix="/business-profile", tags=["Jobs"])
app.include_router(business_profile.router, prefix="/business-profile", tags=["Business Profile"])
app.include_router(invitations.router, prefix="/invitations", tags=["Invitations"])
app.include_router(jobs.search_router, prefix="/jobs", tags=["Jobs"])
app.include_router(applications.router, prefix="/jobs", tags=["Applications"])
app.include_router(connections.router, prefix="/connection", tags=["Connections"])
app.include_router(users.router, prefix="/users", tags=["Users"])


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
