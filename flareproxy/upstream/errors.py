class UpstreamError(Exception):
    """Base class for failures talking to FlareSolverr."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamUnreachableError(UpstreamError):
    """FlareSolverr could not be reached (connection refused, DNS failure, timeout)."""


class MalformedUpstreamResponseError(UpstreamError):
    """FlareSolverr answered with something that is not a valid result object."""


class UpstreamReportedFailureError(UpstreamError):
    """FlareSolverr answered well-formed JSON with a status other than ``ok``."""

    def __init__(self, message: str, upstream_message: str):
        super().__init__(message)
        self.upstream_message = upstream_message
