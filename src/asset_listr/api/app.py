import logging

from fastapi import FastAPI

from asset_listr.api.routes.auth import router as auth_router
from asset_listr.api.routes.properties import router as properties_router
from asset_listr.config import describe, get_settings
from asset_listr.controllers.listing import AUTH_PATH
from asset_listr.log import configure_logging


def health():
    return {"status": "ok"}


def auth_entry():
    return {
        "ok": True,
        "path": AUTH_PATH,
        "sign_in": "/api/auth/sign-in",
        "message": "Sign in with your agent email and password.",
    }


app = FastAPI(title="Asset Listr")

app.include_router(auth_router, prefix="/api")
app.include_router(properties_router, prefix="/api")


@app.get("/health")
def health_route():
    return health()


@app.get(AUTH_PATH)
def auth_route():
    return auth_entry()


@app.on_event("startup")
def _check_configuration():
    # ConfigurationError here is fatal: the server must not come up.
    settings = get_settings()
    configure_logging(settings.log_level, json_lines=settings.log_json)
    logger = logging.getLogger("asset_listr.startup")
    logger.info("startup config: %s", describe(settings))
