"""
Background analysis worker: message protocol, session state and host process.
"""

from .protocol import Command, Response, Message
from .session import AnalysisSession
from .host import AnalysisHost, AnalysisWorker, run_host

__all__ = [
    'Command',
    'Response',
    'Message',
    'AnalysisSession',
    'AnalysisHost',
    'AnalysisWorker',
    'run_host',
]
