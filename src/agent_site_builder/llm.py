"""LLM client wrapper around litellm.

Provides a unified interface for calling any LLM model supported by litellm.
"""

from litellm import completion

DEFAULT_MODEL = "gpt-4o"


class LlmClient:
    """Wrapper for LLM API calls via litellm."""

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ):
        self.model = model or DEFAULT_MODEL
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens

    def call(self, system: str, user: str, temperature: float | None = None) -> str:
        """Send a system+user message to the LLM and return the response text."""
        kwargs = {}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        response = completion(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_tokens,
            **kwargs,
        )
        return response.choices[0].message.content or ""
