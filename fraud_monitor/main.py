import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fraud_monitor.api.endpoints import router
from fraud_monitor.config import Config
from fraud_monitor.exceptions import InvalidModelId, InvalidTransaction
from fraud_monitor.monitoring.session import MonitoringSession

logger = logging.getLogger(__name__)


def create_app(session: Optional[MonitoringSession] = None) -> FastAPI:
    """Build the API around a monitoring session (a fresh one by default)"""
    app = FastAPI(
        title=Config.API_TITLE,
        description=Config.API_DESCRIPTION,
        version=Config.API_VERSION
    )
    app.state.session = session if session is not None else MonitoringSession()
    app.include_router(router)

    @app.exception_handler(InvalidTransaction)
    async def invalid_transaction_handler(request: Request, exc: InvalidTransaction):
        logger.warning(f"Rejected transaction on {request.url.path}: {exc}")
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InvalidModelId)
    async def invalid_model_handler(request: Request, exc: InvalidModelId):
        logger.warning(f"Unknown model on {request.url.path}: {exc.model_id}")
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    active = app.state.session.active_model()
    logger.info(f"Fraud monitor ready | model={active.name} v{active.version}")

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=Config.LOG_LEVEL)
    uvicorn.run(create_app(), host=Config.API_HOST, port=Config.API_PORT)
