import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from fraud_monitor.api.models import ActivateModelRequest, ModelListResponse, ModelSummary
from fraud_monitor.config import Config
from fraud_monitor.data.generator import TransactionGenerator
from fraud_monitor.evaluation.evaluator import ModelEvaluator
from fraud_monitor.models.engine import ModelPerformance
from fraud_monitor.models.registry import ModelRegistry
from fraud_monitor.models.transaction import FraudDetectionResult, Transaction
from fraud_monitor.monitoring.session import MonitoringSession, ScoredTransaction, SessionStats

logger = logging.getLogger(__name__)

router = APIRouter()


def get_session(request: Request) -> MonitoringSession:
    return request.app.state.session


@router.get("/")
async def root(session: MonitoringSession = Depends(get_session)):
    """API banner"""
    active = session.active_model()
    return {
        "service": Config.API_TITLE,
        "status": "running",
        "version": Config.API_VERSION,
        "active_model": active.name,
        "active_model_version": active.version,
        "history_size": session.history_size(),
    }


@router.get("/health")
async def health_check(session: MonitoringSession = Depends(get_session)):
    """Health check for the scoring service"""
    return {
        "status": "healthy",
        "components": {
            "engine": session.engine is not None,
            "generator": session.generator is not None,
            "registry": len(session.list_models()) > 0,
        },
        "history_size": session.history_size(),
        "timestamp": datetime.now().isoformat(),
    }


@router.post("/transactions/generate", response_model=Transaction)
async def generate_transaction(force_fraud: bool = False, session: MonitoringSession = Depends(get_session)):
    """Synthesize a transaction without scoring or recording it"""
    return session.generate(force_fraud=force_fraud)


@router.post("/analyze", response_model=FraudDetectionResult)
async def analyze_transaction(transaction: Transaction, session: MonitoringSession = Depends(get_session)):
    """Score a transaction; history is left unchanged"""
    result = session.analyze(transaction)
    logger.info(f"Analysis: {transaction.id} -> {result.recommendation.value} "
                f"(score: {result.risk_score}, model: {result.model_version})")
    return result


@router.post("/transactions", status_code=201)
async def add_transaction(transaction: Transaction, session: MonitoringSession = Depends(get_session)):
    """Append a transaction to the engine history"""
    session.add_transaction(transaction)
    return {"transaction_id": transaction.id, "history_size": session.history_size()}


@router.post("/stream/step", response_model=ScoredTransaction)
async def stream_step(force_fraud: bool = False, session: MonitoringSession = Depends(get_session)):
    """Generate, analyze and record one transaction"""
    return session.step(force_fraud=force_fraud)


@router.get("/transactions/recent", response_model=List[ScoredTransaction])
async def recent_transactions(limit: int = Query(Config.DISPLAY_WINDOW, ge=1, le=Config.DISPLAY_WINDOW),
                              session: MonitoringSession = Depends(get_session)):
    return session.recent(limit)


@router.get("/stats", response_model=SessionStats)
async def session_stats(session: MonitoringSession = Depends(get_session)):
    return session.stats


@router.get("/models", response_model=ModelListResponse)
async def list_models(session: MonitoringSession = Depends(get_session)):
    models = session.list_models()
    active_id = next(m.id for m in models if m.is_active)
    return ModelListResponse(
        active_model_id=active_id,
        models=[ModelSummary(model=m, metrics=m.derived_metrics()) for m in models],
    )


@router.put("/models/active", response_model=ModelListResponse)
async def activate_model(body: ActivateModelRequest, session: MonitoringSession = Depends(get_session)):
    """Switch the active model and return the refreshed registry; unknown ids are a 404"""
    session.set_active_model(body.model_id)
    return await list_models(session)


@router.get("/models/performance", response_model=List[ModelPerformance])
async def model_performance(session: MonitoringSession = Depends(get_session)):
    return session.model_performance()


@router.post("/evaluate")
async def evaluate_models(count: int = Query(Config.EVALUATION_SAMPLES, ge=1, le=Config.MAX_EVALUATION_SAMPLES),
                          session: MonitoringSession = Depends(get_session)):
    """Compare every model's observed error rates with its declared ones"""
    evaluator = ModelEvaluator(ModelRegistry(session.list_models()), TransactionGenerator())
    try:
        results = evaluator.run(count)
    except Exception as e:
        logger.error(f"Evaluation error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Evaluation failed: {str(e)}")

    return {
        "samples": count,
        "models": results,
        "timestamp": datetime.now().isoformat(),
    }
