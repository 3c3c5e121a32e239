import httpx
from .base import CompletionClient, CompletionConfig, TransportError

class HttpCompletionClient(CompletionClient):
    """
    Client for a self-hosted or proxied OpenAI-compatible gateway.
    Expects POST {base_url}/chat/completions with the standard chat payload.
    """
    def __init__(
        self,
        base_url: str,
        config: CompletionConfig,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.config = config
        self.api_key = api_key
        self.transport = transport

    async def get_completion(self, prompt: str) -> str:
        cfg = self.config
        payload = {
            "model": cfg.model,
            "messages": cfg.messages(prompt),
            "max_tokens": cfg.max_tokens,
            "temperature": cfg.temperature,
            "n": 1,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                r = await client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
                r.raise_for_status()
                j = r.json()
            content = j["choices"][0]["message"]["content"]
            if content is not None and not isinstance(content, str):
                raise TypeError(f"content is {type(content).__name__}, expected text")
        except httpx.HTTPError as exc:
            raise TransportError(f"Completion gateway request failed: {exc}") from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise TransportError("Malformed completion payload from gateway") from exc
        return content or ""
