# roleguard/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roleguard.config import settings
from roleguard.core.db import init_db, close_db
from roleguard.core.bootstrap import ensure_default_superadmin
from roleguard.core.errors import RoleGuardError, roleguard_error_handler

from roleguard.api.v1.routers import auth, initialization, permissions, roles, user_roles, users

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Domain errors -> {"detail": {"code", "message", ...}}
app.add_exception_handler(RoleGuardError, roleguard_error_handler)


@app.on_event("startup")
async def on_startup():
    logger.info("[startup] env=%s", settings.env)
    await init_db()
    # Seed roles and permissions; create the default SuperAdmin on first run
    await ensure_default_superadmin()


@app.on_event("shutdown")
async def on_shutdown():
    await close_db()


# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(initialization.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(roles.router, prefix="/api/v1")
app.include_router(user_roles.router, prefix="/api/v1")
app.include_router(permissions.router, prefix="/api/v1")


@app.get("/healthz")
def healthz():
    return {"ok": True}
