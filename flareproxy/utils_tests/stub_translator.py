from typing import Iterable, List, Tuple, Union

from flareproxy.config import AdapterConfig
from flareproxy.models import Intent
from flareproxy.upstream import UpstreamTranslator


class StubTranslator(UpstreamTranslator):
    """Translator double that records calls and replays scripted outcomes.

    Each outcome is either the page content to return or an exception to raise.
    The last outcome repeats once the script runs out.
    """

    def __init__(self, outcomes: Iterable[Union[str, Exception]] = ("<html>ok</html>",)):
        self.config = AdapterConfig(flaresolverr_url="http://flaresolverr.test/v1")
        self.client = None
        self.outcomes: List[Union[str, Exception]] = list(outcomes)
        self.calls: List[Tuple[str, Intent]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def urls(self) -> List[str]:
        return [url for url, _ in self.calls]

    def script(self, *outcomes: Union[str, Exception]) -> None:
        self.outcomes = list(outcomes)

    async def fetch(self, url: str, intent: Intent = Intent.GET) -> str:
        self.calls.append((url, intent))
        index = min(len(self.calls), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        return None
