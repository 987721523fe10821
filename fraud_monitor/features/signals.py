"""
Risk signals used by the scoring engine.

Each signal is a pure function of the transaction being scored and the
relevant slice of history, returning its score contribution (0 when the
signal does not fire).
"""
from collections import Counter
from datetime import timedelta
from typing import Sequence

from fraud_monitor.config import Config
from fraud_monitor.models.transaction import Transaction


def count_recent(transaction: Transaction, user_history: Sequence[Transaction],
                 window_minutes: int = Config.VELOCITY_WINDOW_MINUTES) -> int:
    """Number of history entries strictly inside the trailing window"""
    window_start = transaction.timestamp - timedelta(minutes=window_minutes)
    return sum(1 for t in user_history if t.timestamp > window_start)


def velocity_score(transaction: Transaction, user_history: Sequence[Transaction]) -> int:
    recent = count_recent(transaction, user_history)

    if recent <= 1:
        return 0
    if recent <= 3:
        return 10
    if recent <= 5:
        return 25
    return 40


def amount_score(transaction: Transaction, user_history: Sequence[Transaction]) -> int:
    """Score how far the amount deviates from the user's average spend"""
    if not user_history:
        return 0

    avg_amount = sum(t.amount for t in user_history) / len(user_history)
    deviation_ratio = transaction.amount / avg_amount

    if deviation_ratio > 10:
        return 35
    if deviation_ratio > 5:
        return 25
    if deviation_ratio > 3:
        return 15
    if deviation_ratio > 2:
        return 10
    return 0


def most_common_location(user_history: Sequence[Transaction]):
    """Mode of past locations; ties go to the location seen first"""
    if not user_history:
        return None
    # Counter.most_common keeps first-encountered order among equal counts
    return Counter(t.location for t in user_history).most_common(1)[0][0]


def is_high_risk_location(location: str) -> bool:
    return any(country in location for country in Config.HIGH_RISK_COUNTRIES)


def location_score(transaction: Transaction, user_history: Sequence[Transaction]) -> int:
    common_location = most_common_location(user_history)
    if common_location is None or transaction.location == common_location:
        return 0

    if is_high_risk_location(transaction.location):
        return 30
    return 15


def time_score(transaction: Transaction) -> int:
    hour = transaction.timestamp.hour
    if 2 <= hour <= 6:
        return 20
    if hour >= 22 or hour <= 1:
        return 10
    return 0


def merchant_score(transaction: Transaction) -> int:
    merchant = transaction.merchant

    if merchant == Config.UNKNOWN_MERCHANT:
        return 35
    if "ATM" in merchant:
        return 10
    if any(name in merchant for name in Config.SUSPICIOUS_MERCHANTS):
        return 25
    return 0


def online_high_value_bonus(transaction: Transaction) -> int:
    return 10 if transaction.category == "Online" and transaction.amount > 200 else 0


def weekend_high_value_bonus(transaction: Transaction) -> int:
    return 5 if transaction.is_weekend and transaction.amount > 500 else 0
