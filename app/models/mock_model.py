import re
from .base import CompletionClient
from ..core.utils import stable_fraction

_ORIGINAL_PRICE = re.compile(r"\$(\d+(?:\.\d+)?)")

class MockCompletionClient(CompletionClient):
    """
    Deterministic offline stand-in for the model. Reads the original price
    back out of the prompt and answers with 20–70% of it, seeded by the
    prompt text so the same item always gets the same answer.
    """
    async def get_completion(self, prompt: str) -> str:
        match = _ORIGINAL_PRICE.search(prompt)
        if not match:
            return "I cannot estimate the value of this item."
        original = float(match.group(1))
        share = 0.2 + stable_fraction(prompt) * 0.5
        return f"{original * share:.2f}"
