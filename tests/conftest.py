import random
from datetime import datetime

import pytest

from fraud_monitor.data.generator import TransactionGenerator
from fraud_monitor.models.engine import FraudDetectionEngine
from fraud_monitor.models.registry import ModelRegistry
from fraud_monitor.models.transaction import Transaction

# Wednesday, mid-afternoon
WEEKDAY_NOON = datetime(2024, 1, 10, 14, 30)
# Saturday
WEEKEND_NOON = datetime(2024, 1, 13, 14, 30)


def build_transaction(**overrides) -> Transaction:
    fields = {
        "id": "txn_test",
        "timestamp": WEEKDAY_NOON,
        "amount": 100.0,
        "merchant": "Starbucks",
        "category": "Restaurant",
        "location": "New York, NY",
        "card_type": "Visa",
        "user_id": "user_1",
        "user_age": 35,
        "user_location": "New York, NY",
        "merchant_category": "Restaurant",
    }
    fields.update(overrides)
    return Transaction.build(**fields)


@pytest.fixture
def make_transaction():
    return build_transaction


@pytest.fixture
def registry():
    return ModelRegistry()


@pytest.fixture
def engine(registry):
    return FraudDetectionEngine(registry)


@pytest.fixture
def generator():
    return TransactionGenerator(rng=random.Random(42), clock=lambda: WEEKDAY_NOON)
