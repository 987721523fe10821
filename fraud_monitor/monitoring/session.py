import logging
import threading
from collections import deque
from typing import List, Optional

from pydantic import BaseModel

from fraud_monitor.config import Config
from fraud_monitor.data.generator import TransactionGenerator
from fraud_monitor.models.engine import FraudDetectionEngine, ModelPerformance
from fraud_monitor.models.transaction import FraudDetectionResult, ModelVersion, Transaction

logger = logging.getLogger(__name__)


class ScoredTransaction(BaseModel):
    transaction: Transaction
    result: FraudDetectionResult


class SessionStats(BaseModel):
    total_transactions: int = 0
    flagged_transactions: int = 0
    blocked_transactions: int = 0
    average_risk_score: float = 0.0


class MonitoringSession:
    """
    Live monitoring loop around one engine: generate, analyze, then record.

    Keeps a bounded window of recent results and running totals. A single
    lock serialises every engine and registry access so the session can sit
    behind a multi-threaded server.
    """

    def __init__(self, engine: Optional[FraudDetectionEngine] = None,
                 generator: Optional[TransactionGenerator] = None,
                 display_window: int = Config.DISPLAY_WINDOW):
        self.engine = engine if engine is not None else FraudDetectionEngine()
        self.generator = generator if generator is not None else TransactionGenerator()
        self._recent = deque(maxlen=display_window)
        self._stats = SessionStats()
        self._lock = threading.Lock()

    @property
    def stats(self) -> SessionStats:
        with self._lock:
            return self._stats.model_copy()

    def step(self, force_fraud: bool = False) -> ScoredTransaction:
        """One monitoring tick"""
        with self._lock:
            transaction = self.generator.generate(self.engine.history, force_fraud=force_fraud)
            result = self.engine.analyze(transaction)
            self.engine.add_transaction(transaction)

            scored = ScoredTransaction(transaction=transaction, result=result)
            self._recent.appendleft(scored)
            self._record(result)

        if result.is_blocked:
            logger.info(f"Blocked {transaction.id} (score {result.risk_score}, model {result.model_version})")

        return scored

    def _record(self, result: FraudDetectionResult):
        stats = self._stats
        total = stats.total_transactions + 1

        self._stats = SessionStats(
            total_transactions=total,
            flagged_transactions=stats.flagged_transactions + (1 if result.risk_score >= Config.FLAGGED_RISK_SCORE else 0),
            blocked_transactions=stats.blocked_transactions + (1 if result.is_blocked else 0),
            average_risk_score=(stats.average_risk_score * stats.total_transactions + result.risk_score) / total,
        )

    def recent(self, limit: Optional[int] = None) -> List[ScoredTransaction]:
        """Most recent results first"""
        with self._lock:
            items = list(self._recent)
        return items if limit is None else items[:limit]

    def generate(self, force_fraud: bool = False) -> Transaction:
        with self._lock:
            return self.generator.generate(self.engine.history, force_fraud=force_fraud)

    def analyze(self, transaction: Transaction) -> FraudDetectionResult:
        with self._lock:
            return self.engine.analyze(transaction)

    def add_transaction(self, transaction: Transaction):
        with self._lock:
            self.engine.add_transaction(transaction)

    def history_size(self) -> int:
        with self._lock:
            return len(self.engine.history)

    def list_models(self) -> List[ModelVersion]:
        with self._lock:
            return self.engine.get_models()

    def active_model(self) -> ModelVersion:
        with self._lock:
            return self.engine.get_active_model()

    def set_active_model(self, model_id: str) -> ModelVersion:
        with self._lock:
            return self.engine.set_active_model(model_id)

    def model_performance(self) -> List[ModelPerformance]:
        with self._lock:
            return self.engine.get_model_performance_stats()
