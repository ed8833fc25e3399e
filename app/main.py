# app/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from core.config import settings
from core.errors import IdentityError
from core.logger import logger
from api.v1.auth import router as auth_router
from api.v1.access import router as access_router
from api.v1.tenants import router as tenants_router
from api.v1.tenants_members import router as tenants_members_router
from api.v1.join_requests import router as join_requests_router

@asynccontextmanager
async def lifespan(app: FastAPI):
    from api.deps import get_services
    services = get_services()
    if settings.STORE_BACKEND == "postgres":
        services.store.ensure_schema()
        services.authenticator.ensure_schema()
    elif settings.SEED_DEV_DATA:
        from services.dev_seeder import seed_dev_tenant
        seed_dev_tenant(services)
    yield


app = FastAPI(title="tenantgate API", version="1.0", lifespan=lifespan)


origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IdentityError)
async def identity_error_handler(request: Request, exc: IdentityError):
    # same {"detail": {"code", "message", "meta"}} shape as http_error
    logger.info("Request failed", extra={"meta": {"code": exc.code.value, "path": request.url.path}})
    return await http_exception_handler(request, exc.to_http())


@app.get("/health")
def health(): return {"ok": True}

app.include_router(auth_router)
app.include_router(access_router)
app.include_router(tenants_router)
app.include_router(tenants_members_router)
app.include_router(join_requests_router)
