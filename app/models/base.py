from dataclasses import dataclass
from typing import Protocol

class TransportError(Exception):
    """The completion could not be obtained (network, status or payload)."""

@dataclass(frozen=True)
class CompletionConfig:
    model: str
    max_tokens: int = 300
    temperature: float = 0.7
    system_prompt: str = "You are a helpful assistant."

    def messages(self, prompt: str) -> list[dict]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]

class CompletionClient(Protocol):
    async def get_completion(self, prompt: str) -> str:
        """
        Returns the text of a single completion for `prompt`.
        Raises TransportError on any failure to get one.
        """
        ...
