import pytest
from pydantic import ValidationError

from fraud_monitor.exceptions import InvalidModelId
from fraud_monitor.models.registry import ModelRegistry


def active_ids(registry):
    return [m.id for m in registry.list_models() if m.is_active]


def test_seeded_models_in_source_order(registry):
    models = registry.list_models()

    assert [m.id for m in models] == ["model_v1", "model_v2", "model_v3"]
    assert [m.name for m in models] == ["Basic Rules Engine", "Machine Learning Model", "Deep Learning Model"]
    assert [m.threshold for m in models] == [60, 70, 75]
    assert [m.version for m in models] == ["1.0.0", "2.1.0", "3.0.0"]


def test_machine_learning_model_active_by_default(registry):
    active = registry.active_model()

    assert active.id == "model_v2"
    assert active.is_active is True
    assert active_ids(registry) == ["model_v2"]


def test_set_active_round_trip(registry):
    registry.set_active("model_v3")

    models = {m.id: m for m in registry.list_models()}
    assert models["model_v3"].is_active is True
    assert models["model_v1"].is_active is False
    assert models["model_v2"].is_active is False


def test_exactly_one_active_after_any_sequence(registry):
    for model_id in ["model_v1", "model_v3", "model_v3", "model_v2", "model_v1"]:
        registry.set_active(model_id)
        assert active_ids(registry) == [model_id]


def test_unknown_id_is_rejected_and_selection_kept(registry):
    registry.set_active("model_v1")

    with pytest.raises(InvalidModelId) as excinfo:
        registry.set_active("model_v9")

    assert excinfo.value.model_id == "model_v9"
    assert active_ids(registry) == ["model_v1"]


def test_get_unknown_id_raises(registry):
    with pytest.raises(InvalidModelId):
        registry.get("nope")


def test_registries_do_not_share_state():
    first = ModelRegistry()
    second = ModelRegistry()

    first.set_active("model_v3")

    assert second.active_id == "model_v2"


def test_constructor_rejects_unknown_active_id():
    with pytest.raises(InvalidModelId):
        ModelRegistry(active_id="missing")


def test_listed_models_cannot_change_selection(registry):
    listed = registry.list_models()

    with pytest.raises(ValidationError):
        listed[0].is_active = True

    assert registry.active_id == "model_v2"
