"""
OpenAI-compatible LLM client: works with OpenAI, Azure OpenAI proxies,
LM Studio and any other provider that implements the chat/completions API.
"""

import logging

import requests

from .base import LLMClient
from ..cli_display import token_tracker

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a database analyst. You describe tables, views and stored "
    "procedures for people who do not know the schema."
)


class OpenAIClient(LLMClient):

    def __init__(self, base_url: str, model: str, api_key: str = "",
                 temperature: float = 0.2, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.temperature = temperature

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _generate(self, prompt: str) -> str:
        est_tokens = int(len(prompt.split()) * 1.3)
        logger.debug(f"[OpenAI] Sending ~{est_tokens} est. tokens")
        logger.debug(f"[OpenAI] Prompt:\n{prompt}")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "stream": False,
        }
        url = f"{self.base_url}/chat/completions"
        response = requests.post(url, headers=self._headers(), json=payload,
                                 timeout=(10, 300))
        response.raise_for_status()
        data = response.json()

        usage = data.get("usage", {})
        prompt_tokens = usage.get("prompt_tokens", est_tokens)
        completion_tokens = usage.get("completion_tokens", 0)
        token_tracker.record(
            prompt_tokens if isinstance(prompt_tokens, int) else est_tokens,
            completion_tokens if isinstance(completion_tokens, int) else 0,
        )
        logger.debug(f"[OpenAI] Usage: prompt={prompt_tokens} completion={completion_tokens}")

        response_text = data["choices"][0]["message"]["content"]
        logger.debug(f"[OpenAI] Response:\n{response_text}")
        return response_text
