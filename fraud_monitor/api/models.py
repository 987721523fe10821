from typing import Dict, List

from pydantic import BaseModel, ConfigDict

from fraud_monitor.models.transaction import ModelVersion


class ActivateModelRequest(BaseModel):
    """Body for switching the active model"""
    model_config = ConfigDict(protected_namespaces=())

    model_id: str


class ModelSummary(BaseModel):
    """Registry entry with precision/recall/F1 implied by its declared rates"""
    model: ModelVersion
    metrics: Dict[str, float]


class ModelListResponse(BaseModel):
    active_model_id: str
    models: List[ModelSummary]
