from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from replyzy.agent.errors import (
    ChatModelAuthError,
    ChatModelBadRequestError,
    ChatModelForbiddenError,
    RequestCancelledError,
)
from replyzy.api.routes import router
from replyzy.core.logging import get_logger
from replyzy.db.session import SessionLocal, engine, init_db
from replyzy.services.initialization import InitializationService

log = get_logger("main")

app = FastAPI(title="Replyzy Planner API", version="0.1.0")
app.include_router(router, prefix="/v1")

_STATUS_BY_ERROR = {
    ChatModelAuthError: 401,
    ChatModelBadRequestError: 400,
    ChatModelForbiddenError: 403,
    RequestCancelledError: 499,
}


def _handler(status_code: int):
    async def handle(request: Request, exc: Exception):
        return JSONResponse(status_code=status_code, content={"error": type(exc).__name__, "detail": str(exc)})
    return handle


for _exc, _status in _STATUS_BY_ERROR.items():
    app.add_exception_handler(_exc, _handler(_status))


@app.on_event("startup")
async def on_startup():
    await init_db()
    async with SessionLocal() as db:
        res = await InitializationService().ensure_default_configuration(db)
    if res.status == "degraded":
        log.warning(f"Default configuration degraded: {res.reason}")


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()
