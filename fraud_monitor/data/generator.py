import logging
import random
import string
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd

from fraud_monitor.config import Config
from fraud_monitor.features.signals import count_recent
from fraud_monitor.models.transaction import TimeOfDay, Transaction, time_of_day_for_hour

logger = logging.getLogger(__name__)

NIGHT_HOURS = [0, 1, 2, 3, 4, 5]


class TransactionGenerator:
    """Generate synthetic transactions, optionally shaped like known fraud patterns"""

    def __init__(self, rng: Optional[random.Random] = None, clock: Optional[Callable[[], datetime]] = None):
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock if clock is not None else datetime.now

        self.merchants = [
            "Amazon", "Walmart", "Target", "Starbucks", "McDonald's", "Shell", "Exxon",
            "Best Buy", "Home Depot", "Costco", "CVS", "Walgreens", "Subway", "Pizza Hut",
            "Nike", "Apple Store", "GameStop", "Macy's", "Uber", "Airbnb"
        ]

        self.categories = [
            "Grocery", "Gas", "Restaurant", "Retail", "Electronics", "Healthcare",
            "Transportation", "Entertainment", "Travel", "Online", "Subscription"
        ]

        self.locations = [
            "New York, NY", "Los Angeles, CA", "Chicago, IL", "Houston, TX", "Phoenix, AZ",
            "Philadelphia, PA", "San Antonio, TX", "San Diego, CA", "Dallas, TX", "San Jose, CA",
            "Austin, TX", "Jacksonville, FL", "Fort Worth, TX", "Columbus, OH", "Charlotte, NC"
        ]

        self.high_risk_locations = ["Lagos, Nigeria", "Kiev, Ukraine", "Mumbai, India"]
        self.card_types = ["Visa", "Mastercard", "American Express", "Discover"]

    def generate(self, history: Sequence[Transaction] = (), force_fraud: bool = False) -> Transaction:
        """
        Generate one transaction.

        Args:
            history: Previously generated transactions, used for velocity
            force_fraud: Always overlay a fraud pattern

        Returns:
            Transaction with generator risk score, reasons and ground-truth label
        """
        now = self.clock()
        is_fraud = force_fraud or self.rng.random() < Config.FRAUD_PROBABILITY

        fields = self._generate_baseline(now)
        if is_fraud:
            fields.update(self._generate_fraud_pattern())

        # Night patterns pull the timestamp into the night so derived fields agree
        if fields.pop("time_of_day", None) is TimeOfDay.NIGHT and time_of_day_for_hour(now.hour) is not TimeOfDay.NIGHT:
            fields["timestamp"] = now.replace(hour=self.rng.choice(NIGHT_HOURS))

        fields["amount"] = round(fields["amount"], 2)

        user_history = [t for t in history if t.user_id == fields["user_id"]]
        candidate = Transaction.build(**fields)
        fields["velocity"] = count_recent(candidate, user_history)

        risk_score, reasons = self._score(Transaction.build(**fields))
        fields["risk_score"] = risk_score
        fields["flagged_reasons"] = tuple(reasons)
        fields["is_fraud"] = is_fraud

        return Transaction.build(**fields)

    def generate_batch(self, count: int = Config.BATCH_SIZE, force_fraud: bool = False) -> List[Transaction]:
        """Generate transactions in order, each one seeing all earlier ones for velocity"""
        transactions = []

        for _ in range(count):
            transactions.append(self.generate(transactions, force_fraud=force_fraud))

        fraud_count = sum(t.is_fraud for t in transactions)
        logger.info(f"Generated {len(transactions)} transactions: {fraud_count} frauds")

        return transactions

    def to_frame(self, transactions: Sequence[Transaction]) -> pd.DataFrame:
        """One row per transaction, derived fields included"""
        return pd.DataFrame([t.model_dump(mode="json") for t in transactions])

    def _generate_id(self, now: datetime) -> str:
        suffix = "".join(self.rng.choices(string.ascii_lowercase + string.digits, k=9))
        return f"txn_{int(now.timestamp() * 1000)}_{suffix}"

    def _generate_baseline(self, now: datetime) -> Dict:
        """Independent uniform draws for every field"""
        return {
            "id": self._generate_id(now),
            "timestamp": now,
            "merchant": self.rng.choice(self.merchants),
            "category": self.rng.choice(self.categories),
            "location": self.rng.choice(self.locations),
            "card_type": self.rng.choice(self.card_types),
            "user_id": f"user_{self.rng.randrange(Config.N_USERS)}",
            "user_age": self.rng.randint(Config.MIN_USER_AGE, Config.MAX_USER_AGE),
            "user_location": self.rng.choice(self.locations),
            "merchant_category": self.rng.choice(self.categories),
            "amount": self.rng.uniform(10, 510),
            "velocity": self.rng.randrange(5),
        }

    def _generate_fraud_pattern(self) -> Dict:
        """Pick one fraud pattern uniformly; its fields override the baseline"""
        pattern = self.rng.randrange(3)

        if pattern == 0:  # Large foreign purchase at night
            return {
                "amount": self.rng.uniform(1000, 6000),
                "location": self.rng.choice(self.high_risk_locations),
                "time_of_day": TimeOfDay.NIGHT,
                "velocity": self.rng.randint(5, 14),
            }
        elif pattern == 1:  # Online burst at an unknown merchant
            return {
                "amount": self.rng.uniform(500, 600),
                "merchant": Config.UNKNOWN_MERCHANT,
                "category": "Online",
                "velocity": self.rng.randint(10, 24),
            }
        else:  # Card testing: tiny amounts, very high velocity
            return {
                "amount": self.rng.uniform(1, 51),
                "velocity": self.rng.randint(15, 34),
                "time_of_day": TimeOfDay.NIGHT,
            }

    def _score(self, transaction: Transaction):
        """Generator-local risk score, independent of the scoring engine"""
        risk_factors = []
        risk_score = 0

        if transaction.amount > 1000:
            risk_score += 30
            risk_factors.append("High transaction amount")

        if transaction.time_of_day is TimeOfDay.NIGHT:
            risk_score += 20
            risk_factors.append("Unusual time of day")

        if transaction.velocity > 5:
            risk_score += 25
            risk_factors.append("High transaction velocity")

        if transaction.location != transaction.user_location:
            risk_score += 15
            risk_factors.append("Location mismatch")

        if transaction.merchant == Config.UNKNOWN_MERCHANT:
            risk_score += 35
            risk_factors.append("Unknown merchant")

        if transaction.category == "Online" and transaction.amount > 200:
            risk_score += 10
            risk_factors.append("High-value online transaction")

        if transaction.is_weekend and transaction.amount > 500:
            risk_score += 5
            risk_factors.append("Weekend high-value transaction")

        return max(0, min(risk_score, 100)), risk_factors
