from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from flareproxy.vars import FLARESOLVERR_COMMAND, FLARESOLVERR_MAX_TIMEOUT_MS


class Intent(str, Enum):
    """What the inbound request asked for, reduced to the verbs FlareSolverr understands."""

    GET = "GET"
    POST = "POST"

    @classmethod
    def from_method(cls, method: str) -> Optional["Intent"]:
        """Return the intent for an HTTP method, or ``None`` when there is no direct match."""
        try:
            return cls(method.upper())
        except ValueError:
            return None


# FlareSolverr has no generic HTTP method support, so both intents fetch the page.
COMMAND_BY_INTENT = {
    Intent.GET: FLARESOLVERR_COMMAND,
    Intent.POST: FLARESOLVERR_COMMAND,
}


class UpstreamCommand(BaseModel):
    cmd: str
    url: str
    maxTimeout: int = FLARESOLVERR_MAX_TIMEOUT_MS

    @classmethod
    def for_intent(cls, url: str, intent: Intent) -> "UpstreamCommand":
        return cls(cmd=COMMAND_BY_INTENT[intent], url=url)


class Solution(BaseModel):
    response: str
    status: int = 0
    cookies: List[Any] = Field(default_factory=list)
    userAgent: str = ""


class UpstreamResult(BaseModel):
    status: str
    message: str = ""
    # Only an ok reply is guaranteed to carry a usable solution, so it is validated on demand.
    solution: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def solved_page(self) -> Solution:
        """Validate and return the solution. Raises ``ValueError`` when it is missing or invalid."""
        if self.solution is None:
            raise ValueError("missing solution in ok response")
        return Solution.model_validate(self.solution)
