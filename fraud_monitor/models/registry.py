import logging
from typing import Dict, List, Optional

from fraud_monitor.config import Config
from fraud_monitor.exceptions import InvalidModelId
from fraud_monitor.models.transaction import ModelVersion

logger = logging.getLogger(__name__)

DEFAULT_MODELS = [
    ModelVersion(
        id="model_v1",
        name="Basic Rules Engine",
        version="1.0.0",
        threshold=60,
        accuracy=0.85,
        false_positive_rate=0.12,
        false_negative_rate=0.08,
    ),
    ModelVersion(
        id="model_v2",
        name="Machine Learning Model",
        version="2.1.0",
        threshold=70,
        accuracy=0.92,
        false_positive_rate=0.06,
        false_negative_rate=0.04,
    ),
    ModelVersion(
        id="model_v3",
        name="Deep Learning Model",
        version="3.0.0",
        threshold=75,
        accuracy=0.96,
        false_positive_rate=0.03,
        false_negative_rate=0.02,
    ),
]


class ModelRegistry:
    """
    Fixed set of scoring configurations with a single active selection.

    Configurations are stored immutable and keyed by id; the active model is
    a single id, so switching can never leave zero or several models active.
    """

    def __init__(self, models: Optional[List[ModelVersion]] = None, active_id: Optional[str] = None):
        models = DEFAULT_MODELS if models is None else models
        if not models:
            raise ValueError("Registry needs at least one model")

        self._models: Dict[str, ModelVersion] = {
            m.id: m.model_copy(update={"is_active": False}) for m in models
        }

        if active_id is None:
            active_id = Config.DEFAULT_MODEL_ID if Config.DEFAULT_MODEL_ID in self._models else models[0].id
        if active_id not in self._models:
            raise InvalidModelId(active_id)
        self._active_id = active_id

    @property
    def active_id(self) -> str:
        return self._active_id

    def _stamp(self, model: ModelVersion) -> ModelVersion:
        return model.model_copy(update={"is_active": model.id == self._active_id})

    def list_models(self) -> List[ModelVersion]:
        """All models in registration order, with is_active reflecting the selection"""
        return [self._stamp(m) for m in self._models.values()]

    def get(self, model_id: str) -> ModelVersion:
        if model_id not in self._models:
            raise InvalidModelId(model_id)
        return self._stamp(self._models[model_id])

    def active_model(self) -> ModelVersion:
        model = self._models.get(self._active_id)
        if model is None:
            model = next(iter(self._models.values()))
        return self._stamp(model)

    def set_active(self, model_id: str) -> ModelVersion:
        """Make model_id the active model; unknown ids leave the selection unchanged"""
        if model_id not in self._models:
            logger.warning(f"Rejected model switch to unknown id {model_id!r} (active: {self._active_id})")
            raise InvalidModelId(model_id)

        previous = self._active_id
        self._active_id = model_id
        logger.info(f"Active model switched: {previous} -> {model_id}")
        return self.active_model()
