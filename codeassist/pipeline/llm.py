from typing import Protocol

from openai import AsyncOpenAI

from codeassist.config import settings


class CompletionClient(Protocol):
    """Anything that turns one prompt into one final completion text."""

    async def complete(self, prompt: str) -> str: ...


class OpenAICompletionClient:
    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        temperature: float = 0.1,
        max_tokens: int = 4096,
        system_prompt: str | None = None,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt

    async def complete(self, prompt: str) -> str:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            **settings.max_tokens_param(self.max_tokens, self.model),
        )
        return response.choices[0].message.content or ""


def build_openai_client() -> AsyncOpenAI:
    kwargs: dict = {"api_key": settings.openai_api_key}
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return AsyncOpenAI(**kwargs)


def build_generation_client(client: AsyncOpenAI | None = None) -> OpenAICompletionClient:
    return OpenAICompletionClient(
        client or build_openai_client(),
        model=settings.openai_model,
        temperature=settings.generation_temperature,
        max_tokens=settings.generation_max_tokens,
    )


def build_classifier_client(client: AsyncOpenAI | None = None) -> OpenAICompletionClient | None:
    """Classifier client, or None when no API key is configured."""
    if not settings.ai_configured:
        return None
    return OpenAICompletionClient(
        client or build_openai_client(),
        model=settings.openai_classifier_model,
        temperature=0.1,
        max_tokens=settings.classifier_max_tokens,
    )
