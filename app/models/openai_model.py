"""OpenAI-backed completion client."""

from __future__ import annotations

import httpx
import openai

from .base import CompletionClient, CompletionConfig, TransportError


class OpenAICompletionClient(CompletionClient):
    def __init__(
        self,
        api_key: str | None,
        config: CompletionConfig,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
    ):
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY missing from settings")
        if not config.model:
            raise RuntimeError("OPENAI_MODEL missing from settings")

        self.config = config
        # One attempt per submit: the SDK would otherwise retry on its own
        self.client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            http_client=http_client,
            max_retries=0,
        )

    async def get_completion(self, prompt: str) -> str:
        """Request exactly one chat completion and return its text.

        Parameters
        ----------
        prompt: str
            The user message.

        Returns
        -------
        str
            The reply content, or "" when the model returned no content.
        """
        cfg = self.config
        try:
            completion = await self.client.chat.completions.create(
                model=cfg.model,
                messages=cfg.messages(prompt),
                max_tokens=cfg.max_tokens,
                temperature=cfg.temperature,
                n=1,
            )
            content = completion.choices[0].message.content
            # The SDK does not validate response payloads
            if content is not None and not isinstance(content, str):
                raise TypeError(f"content is {type(content).__name__}, expected text")
        except openai.OpenAIError as exc:
            raise TransportError(f"OpenAI request failed: {exc}") from exc
        except (IndexError, AttributeError, TypeError) as exc:
            raise TransportError("Malformed completion payload from OpenAI") from exc

        return content or ""
