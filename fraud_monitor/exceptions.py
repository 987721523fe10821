class FraudMonitorError(Exception):
    """Base class for all fraud monitor errors"""


class InvalidModelId(FraudMonitorError, KeyError):
    """Raised when a model id is not present in the registry"""

    def __init__(self, model_id: str):
        super().__init__(model_id)
        self.model_id = model_id

    def __str__(self):
        return f"Unknown model id: {self.model_id!r}"


class InvalidTransaction(FraudMonitorError, ValueError):
    """Raised when transaction fields fail validation"""
