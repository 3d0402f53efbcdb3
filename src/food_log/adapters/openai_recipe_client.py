"""OpenAI chat completions client for recipe replies."""

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from food_log.domain.errors import InvalidSource, RemoteUnavailable
from food_log.services.recipes import RecipeClient


@dataclass
class OpenAIRecipeClient(RecipeClient):
    """Recipe client backed by the OpenAI chat completions API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIRecipeClient":
        """Create an OpenAI recipe client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        user_message: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Send one system and one user message and return the reply."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as exc:
            raise RemoteUnavailable("Recipe generation failed") from exc
        if not response.choices:
            raise InvalidSource("OpenAI returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise InvalidSource("OpenAI returned an empty response")
        return content

    async def close(self) -> None:
        await self.client.close()
