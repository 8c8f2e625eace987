from .errors import (
    MalformedUpstreamResponseError,
    UpstreamError,
    UpstreamReportedFailureError,
    UpstreamUnreachableError,
)
from .translator import UpstreamTranslator

__all__ = [
    "MalformedUpstreamResponseError",
    "UpstreamError",
    "UpstreamReportedFailureError",
    "UpstreamTranslator",
    "UpstreamUnreachableError",
]
