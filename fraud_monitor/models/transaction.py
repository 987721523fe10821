from datetime import datetime
from enum import Enum
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator

from fraud_monitor.exceptions import InvalidTransaction


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class Recommendation(str, Enum):
    APPROVE = "approve"
    REVIEW = "review"
    BLOCK = "block"


def time_of_day_for_hour(hour: int) -> TimeOfDay:
    """Bucket an hour of the day (0-23)"""
    if 6 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 18:
        return TimeOfDay.AFTERNOON
    if 18 <= hour < 22:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


class Transaction(BaseModel):
    """
    A single payment event.

    Weekend flag, hour and time-of-day bucket are computed from the timestamp
    so they can never disagree with it.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    timestamp: datetime
    amount: float = Field(gt=0)
    merchant: str
    category: str
    location: str
    card_type: str
    user_id: str = Field(min_length=1)
    user_age: int
    user_location: str
    merchant_category: str
    velocity: int = Field(default=0, ge=0)
    risk_score: int = Field(default=0, ge=0, le=100)
    is_fraud: bool = False
    flagged_reasons: Tuple[str, ...] = ()

    @field_validator("timestamp")
    @classmethod
    def _to_naive_local(cls, value: datetime) -> datetime:
        """Aware timestamps are converted to naive local time, matching datetime.now()"""
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value

    @computed_field
    @property
    def hour(self) -> int:
        return self.timestamp.hour

    @computed_field
    @property
    def is_weekend(self) -> bool:
        return self.timestamp.weekday() >= 5

    @computed_field
    @property
    def time_of_day(self) -> TimeOfDay:
        return time_of_day_for_hour(self.timestamp.hour)

    @classmethod
    def build(cls, **fields) -> "Transaction":
        """Construct a transaction, raising InvalidTransaction on bad input"""
        try:
            return cls(**fields)
        except ValidationError as e:
            raise InvalidTransaction(str(e)) from e


class ModelVersion(BaseModel):
    """Named, versioned scoring configuration"""
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    name: str
    version: str
    threshold: int = Field(ge=0, le=100)
    accuracy: float
    false_positive_rate: float
    false_negative_rate: float
    is_active: bool = False

    def derived_metrics(self) -> Dict[str, float]:
        """Precision, recall and F1 (percent) implied by the declared error rates"""
        precision = 1 - self.false_positive_rate
        recall = 1 - self.false_negative_rate
        f1_score = 2 * (precision * recall) / (precision + recall)

        return {
            "precision": precision * 100,
            "recall": recall * 100,
            "f1_score": f1_score * 100,
        }


class FraudDetectionResult(BaseModel):
    """Outcome of scoring one transaction against the active model"""
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    is_blocked: bool
    risk_score: int = Field(ge=0, le=100)
    confidence: float = Field(ge=0.2, le=1.0)
    model_version: str
    reasons: Tuple[str, ...]
    recommendation: Recommendation

    @computed_field
    @property
    def risk_level(self) -> str:
        if self.risk_score >= 80:
            return "Very High Risk"
        elif self.risk_score >= 60:
            return "High Risk"
        elif self.risk_score >= 40:
            return "Medium Risk"
        else:
            return "Low Risk"
