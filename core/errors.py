"""
Exceptions raised by the analysis engine.
Per-unit data anomalies are not exceptions: the unit is skipped and logged.
"""


class AnalysisError(Exception):
    """Base class for analysis engine errors."""


class ModelLoadError(AnalysisError):
    """Model could not be fetched or parsed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load model '{source}': {reason}")


class ModelNotReadyError(AnalysisError):
    """Analysis was requested before a model finished loading."""

    def __init__(self, message: str = "Model not loaded yet"):
        super().__init__(message)
