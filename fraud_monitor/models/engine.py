import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from fraud_monitor.config import Config
from fraud_monitor.features import signals
from fraud_monitor.models.registry import ModelRegistry
from fraud_monitor.models.transaction import (
    FraudDetectionResult,
    ModelVersion,
    Recommendation,
    Transaction,
)

logger = logging.getLogger(__name__)


class ModelPerformance(BaseModel):
    """Registry entry paired with the number of transactions seen so far"""
    model: ModelVersion
    recent_transactions: int


def recommend(risk_score: int, threshold: int) -> Recommendation:
    """Map a risk score onto approve/review/block around a model threshold"""
    if risk_score >= threshold + Config.REVIEW_MARGIN:
        return Recommendation.BLOCK
    elif risk_score >= threshold - Config.REVIEW_MARGIN:
        return Recommendation.REVIEW
    else:
        return Recommendation.APPROVE


def confidence_for(risk_score: int) -> float:
    return min((risk_score / 100) * 0.8 + 0.2, 1.0)


class FraudDetectionEngine:
    """
    Heuristic risk scoring over a transaction and the engine's own history.

    History only grows through add_transaction; analyze never mutates it, so
    callers must analyze a transaction before adding it, or it will be
    counted against itself.
    """

    def __init__(self, registry: Optional[ModelRegistry] = None):
        self.registry = registry if registry is not None else ModelRegistry()
        self._history: List[Transaction] = []
        self._by_user: Dict[str, List[Transaction]] = defaultdict(list)

    @property
    def history(self) -> Tuple[Transaction, ...]:
        return tuple(self._history)

    def user_history(self, user_id: str) -> List[Transaction]:
        return list(self._by_user.get(user_id, ()))

    def get_models(self) -> List[ModelVersion]:
        return self.registry.list_models()

    def get_active_model(self) -> ModelVersion:
        return self.registry.active_model()

    def set_active_model(self, model_id: str) -> ModelVersion:
        return self.registry.set_active(model_id)

    def add_transaction(self, transaction: Transaction):
        self._history.append(transaction)
        self._by_user[transaction.user_id].append(transaction)

    def analyze(self, transaction: Transaction) -> FraudDetectionResult:
        """
        Score a transaction against the current history and active model.

        Args:
            transaction: Transaction to score

        Returns:
            FraudDetectionResult with score, confidence, reasons and recommendation
        """
        active_model = self.registry.active_model()
        user_history = self._by_user.get(transaction.user_id, [])
        reasons = []
        total_score = 0

        velocity = signals.velocity_score(transaction, user_history)
        if velocity > 0:
            total_score += velocity
            reasons.append(f"High transaction velocity ({transaction.velocity} transactions in 1 hour)")

        amount = signals.amount_score(transaction, user_history)
        if amount > 0:
            total_score += amount
            reasons.append(f"Unusual transaction amount (${transaction.amount:.2f})")

        location = signals.location_score(transaction, user_history)
        if location > 0:
            total_score += location
            reasons.append(f"Unusual location ({transaction.location})")

        time_of_day = signals.time_score(transaction)
        if time_of_day > 0:
            total_score += time_of_day
            reasons.append(f"Unusual time of day ({transaction.time_of_day.value})")

        merchant = signals.merchant_score(transaction)
        if merchant > 0:
            total_score += merchant
            reasons.append(f"Suspicious merchant ({transaction.merchant})")

        online_bonus = signals.online_high_value_bonus(transaction)
        if online_bonus:
            total_score += online_bonus
            reasons.append("High-value online transaction")

        weekend_bonus = signals.weekend_high_value_bonus(transaction)
        if weekend_bonus:
            total_score += weekend_bonus
            reasons.append("Weekend high-value transaction")

        risk_score = max(0, min(total_score, 100))
        recommendation = recommend(risk_score, active_model.threshold)

        logger.debug(f"Scored {transaction.id}: {risk_score} -> {recommendation.value} "
                     f"(model {active_model.version})")

        return FraudDetectionResult(
            is_blocked=recommendation is Recommendation.BLOCK,
            risk_score=risk_score,
            confidence=confidence_for(risk_score),
            model_version=active_model.version,
            reasons=tuple(reasons),
            recommendation=recommendation,
        )

    def get_model_performance_stats(self) -> List[ModelPerformance]:
        """
        Every registry entry with the current history size.

        History is not partitioned by model, so each entry reports the same
        count regardless of which model scored which transaction.
        """
        recent = len(self._history)
        return [ModelPerformance(model=model, recent_transactions=recent) for model in self.registry.list_models()]
