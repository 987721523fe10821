from datetime import datetime, timedelta, timezone

import pytest

from fraud_monitor.models.engine import FraudDetectionEngine, confidence_for, recommend
from fraud_monitor.models.registry import ModelRegistry
from fraud_monitor.models.transaction import Recommendation
from tests.conftest import WEEKDAY_NOON, WEEKEND_NOON, build_transaction


def test_literal_high_risk_scenario_with_empty_history(engine):
    transaction = build_transaction(
        amount=5000,
        location="Lagos, Nigeria",
        merchant="Unknown Merchant",
        timestamp=WEEKDAY_NOON.replace(hour=3),
    )

    result = engine.analyze(transaction)

    assert result.risk_score == 55
    assert result.recommendation is Recommendation.APPROVE
    assert result.is_blocked is False
    assert result.model_version == "2.1.0"
    assert result.reasons == (
        "Unusual time of day (night)",
        "Suspicious merchant (Unknown Merchant)",
    )
    assert result.confidence == pytest.approx(0.55 * 0.8 + 0.2)


def test_clean_transaction_scores_zero(engine):
    result = engine.analyze(build_transaction())

    assert result.risk_score == 0
    assert result.confidence == pytest.approx(0.2)
    assert result.reasons == ()
    assert result.recommendation is Recommendation.APPROVE


def test_reasons_follow_signal_order(engine):
    late_saturday = WEEKEND_NOON.replace(hour=23)
    for i in range(6):
        engine.add_transaction(build_transaction(
            id=f"h{i}", amount=50.0, timestamp=late_saturday - timedelta(minutes=10 + i),
        ))

    transaction = build_transaction(
        amount=900,
        velocity=6,
        location="Kiev, Ukraine",
        merchant="Western Union",
        category="Online",
        timestamp=late_saturday,
    )
    result = engine.analyze(transaction)

    assert result.reasons == (
        "High transaction velocity (6 transactions in 1 hour)",
        "Unusual transaction amount ($900.00)",
        "Unusual location (Kiev, Ukraine)",
        "Unusual time of day (night)",
        "Suspicious merchant (Western Union)",
        "High-value online transaction",
        "Weekend high-value transaction",
    )
    # 40 + 35 + 30 + 10 + 25 + 10 + 5 clamps to 100
    assert result.risk_score == 100
    assert result.confidence == pytest.approx(1.0)
    assert result.recommendation is Recommendation.BLOCK
    assert result.is_blocked is True


def test_velocity_reason_cites_transaction_field(engine):
    for i in range(3):
        engine.add_transaction(build_transaction(id=f"h{i}", timestamp=WEEKDAY_NOON - timedelta(minutes=i + 1)))

    result = engine.analyze(build_transaction(velocity=42))

    assert result.reasons[0] == "High transaction velocity (42 transactions in 1 hour)"


def test_analyze_does_not_grow_history(engine):
    transaction = build_transaction()
    engine.analyze(transaction)

    assert engine.history == ()


def test_analyze_is_idempotent(engine):
    engine.add_transaction(build_transaction(id="h1", amount=10.0))
    transaction = build_transaction(amount=400, location="Mumbai, India")

    assert engine.analyze(transaction) == engine.analyze(transaction)


def test_other_users_history_is_ignored(engine):
    for i in range(10):
        engine.add_transaction(build_transaction(id=f"h{i}", user_id="user_2", amount=1.0, location="Austin, TX"))

    assert engine.analyze(build_transaction(amount=500)).risk_score == 0


def test_adding_before_analyze_counts_transaction_against_itself(engine):
    transaction = build_transaction(amount=100.0)
    engine.add_transaction(build_transaction(id="h1", amount=100.0))
    before = engine.analyze(transaction)

    engine.add_transaction(transaction)
    after = engine.analyze(transaction)

    assert before.risk_score == 0
    assert after.risk_score == 10


def test_result_reflects_model_active_at_call_time(engine):
    transaction = build_transaction(merchant="Unknown Merchant", timestamp=WEEKDAY_NOON.replace(hour=3))

    engine.set_active_model("model_v1")
    first = engine.analyze(transaction)
    engine.set_active_model("model_v3")
    second = engine.analyze(transaction)

    assert (first.model_version, first.recommendation) == ("1.0.0", Recommendation.REVIEW)
    assert (second.model_version, second.recommendation) == ("3.0.0", Recommendation.APPROVE)


@pytest.mark.parametrize("threshold", [60, 70, 75])
def test_recommendation_boundaries(threshold):
    for score in range(0, 101):
        expected = (
            Recommendation.BLOCK if score >= threshold + 10
            else Recommendation.APPROVE if score < threshold - 10
            else Recommendation.REVIEW
        )
        assert recommend(score, threshold) is expected

    assert recommend(threshold + 10, threshold) is Recommendation.BLOCK
    assert recommend(threshold + 9, threshold) is Recommendation.REVIEW
    assert recommend(threshold - 10, threshold) is Recommendation.REVIEW
    assert recommend(threshold - 11, threshold) is Recommendation.APPROVE


def test_confidence_bounds_and_monotonic():
    values = [confidence_for(score) for score in range(0, 101)]

    assert values == sorted(values)
    assert min(values) == pytest.approx(0.2)
    assert max(values) == pytest.approx(1.0)


def test_performance_stats_report_history_size_for_every_model(engine):
    for i in range(4):
        engine.add_transaction(build_transaction(id=f"h{i}"))

    stats = engine.get_model_performance_stats()

    assert [s.model.id for s in stats] == ["model_v1", "model_v2", "model_v3"]
    assert [s.recent_transactions for s in stats] == [4, 4, 4]
    assert [s.model.is_active for s in stats] == [False, True, False]


def test_engines_are_isolated():
    first = FraudDetectionEngine()
    second = FraudDetectionEngine(ModelRegistry())

    first.add_transaction(build_transaction())
    first.set_active_model("model_v1")

    assert second.history == ()
    assert second.get_active_model().id == "model_v2"


def test_user_history_is_indexed(engine):
    engine.add_transaction(build_transaction(id="a", user_id="user_1"))
    engine.add_transaction(build_transaction(id="b", user_id="user_2"))
    engine.add_transaction(build_transaction(id="c", user_id="user_1"))

    assert [t.id for t in engine.user_history("user_1")] == ["a", "c"]
    assert engine.user_history("user_3") == []


def test_aware_and_naive_timestamps_mix_in_history(engine):
    aware = datetime(2024, 1, 10, 14, 40, tzinfo=timezone.utc)
    local = aware.astimezone().replace(tzinfo=None)
    for i in range(2):
        engine.add_transaction(build_transaction(id=f"h{i}", timestamp=local - timedelta(minutes=5 * (i + 1))))

    result = engine.analyze(build_transaction(timestamp=aware, velocity=2))

    assert result.reasons[0] == "High transaction velocity (2 transactions in 1 hour)"
