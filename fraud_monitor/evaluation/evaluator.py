import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, confusion_matrix, f1_score, precision_score, recall_score

from fraud_monitor.config import Config
from fraud_monitor.data.generator import TransactionGenerator
from fraud_monitor.models.engine import FraudDetectionEngine
from fraud_monitor.models.registry import ModelRegistry
from fraud_monitor.models.transaction import Transaction

logger = logging.getLogger(__name__)


class ModelEvaluator:
    """Replay synthetic transactions through every registered model and measure it against ground truth"""

    def __init__(self, registry: Optional[ModelRegistry] = None, generator: Optional[TransactionGenerator] = None):
        self.registry = registry if registry is not None else ModelRegistry()
        self.generator = generator if generator is not None else TransactionGenerator()

    def run(self, count: int = Config.EVALUATION_SAMPLES) -> Dict[str, Dict[str, Any]]:
        """Generate a fresh batch and evaluate it"""
        logger.info(f"Starting model evaluation on {count} synthetic transactions...")
        return self.evaluate(self.generator.generate_batch(count))

    def evaluate(self, transactions: Sequence[Transaction]) -> Dict[str, Dict[str, Any]]:
        """
        Score the batch once per model.

        Args:
            transactions: Transactions in arrival order

        Returns:
            Dict keyed by model id with observed and declared metrics
        """
        results = {}

        for model in self.registry.list_models():
            predictions = self._replay(model.id, transactions)
            metrics = self._compute_metrics(predictions)
            metrics.update({
                "model_name": model.name,
                "version": model.version,
                "threshold": model.threshold,
                "declared_accuracy": model.accuracy,
                "declared_false_positive_rate": model.false_positive_rate,
                "declared_false_negative_rate": model.false_negative_rate,
                "last_evaluated": datetime.now().isoformat(),
            })
            results[model.id] = metrics

            logger.info(f"{model.name}: accuracy {metrics['accuracy']:.3f} "
                        f"(declared {model.accuracy:.2f}), F1 {metrics['f1_score']:.3f}")

        return results

    def _replay(self, model_id: str, transactions: Sequence[Transaction]) -> pd.DataFrame:
        """Analyze then add each transaction, as the live loop does"""
        registry = ModelRegistry(self.registry.list_models(), active_id=model_id)
        engine = FraudDetectionEngine(registry)
        rows = []

        for transaction in transactions:
            result = engine.analyze(transaction)
            engine.add_transaction(transaction)
            rows.append({
                "transaction_id": transaction.id,
                "is_fraud": int(transaction.is_fraud),
                "predicted": int(result.is_blocked),
                "risk_score": result.risk_score,
                "recommendation": result.recommendation.value,
            })

        return pd.DataFrame(rows, columns=["transaction_id", "is_fraud", "predicted", "risk_score", "recommendation"])

    def _compute_metrics(self, predictions: pd.DataFrame) -> Dict[str, Any]:
        if predictions.empty:
            return {
                "samples": 0,
                "fraud_rate": 0.0,
                "accuracy": 0.0,
                "precision": 0.0,
                "recall": 0.0,
                "f1_score": 0.0,
                "false_positive_rate": 0.0,
                "false_negative_rate": 0.0,
                "average_risk_score": 0.0,
                "recommendations": {},
            }

        y_true = predictions["is_fraud"].to_numpy()
        y_pred = predictions["predicted"].to_numpy()

        tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()

        return {
            "samples": int(len(predictions)),
            "fraud_rate": float(np.mean(y_true)),
            "accuracy": float(accuracy_score(y_true, y_pred)),
            "precision": float(precision_score(y_true, y_pred, zero_division=0)),
            "recall": float(recall_score(y_true, y_pred, zero_division=0)),
            "f1_score": float(f1_score(y_true, y_pred, zero_division=0)),
            "false_positive_rate": float(fp / (fp + tn)) if (fp + tn) else 0.0,
            "false_negative_rate": float(fn / (fn + tp)) if (fn + tp) else 0.0,
            "average_risk_score": float(predictions["risk_score"].mean()),
            "recommendations": {k: int(v) for k, v in predictions["recommendation"].value_counts().items()},
        }
