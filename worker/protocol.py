"""
Message protocol between the caller and the background analysis worker.
Messages are (type, data) pairs; only plain, picklable data is carried.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Command(str, Enum):
    """Requests sent to the worker."""

    INIT = 'init'
    LOAD_MODEL = 'loadModel'
    CALCULATE = 'calculate'
    SHUTDOWN = 'shutdown'


class Response(str, Enum):
    """Events posted back by the worker."""

    READY = 'ready'
    MODEL_LOADED = 'modelLoaded'
    MODEL_LOAD_ERROR = 'modelLoadError'
    MODEL_NOT_READY = 'modelNotReady'
    PROCESSING = 'processing'
    SUNLIGHT_CALC_FINISH = 'sunlightCalcFinish'
    FIELD_VIEW_CALC_FINISH = 'fieldViewCalcFinish'
    FINISHED = 'finished'
    ERROR = 'error'


# Responses after which the worker exits
TERMINAL_RESPONSES = frozenset({Response.FINISHED, Response.MODEL_LOAD_ERROR, Response.ERROR})


@dataclass(frozen=True)
class Message:
    """One protocol message."""

    type: Any  # Command or Response
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type.value, 'data': self.data}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'Message':
        """
        Parse a {'type': ..., 'data': ...} mapping.

        Raises:
            ValueError: If the type is not a known command or response
        """
        raw_type = payload.get('type')
        for enum_cls in (Command, Response):
            try:
                return cls(enum_cls(raw_type), payload.get('data'))
            except ValueError:
                continue
        raise ValueError(f"Unknown message type: {raw_type}")

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_RESPONSES
