import logging

import httpx
import openai
from openai.types.chat import (
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam,
)

from chef.config import Config
from chef.errors import MalformedPayload, UpstreamRequestFailed
from chef.prompts import SYSTEM_PROMPT, RecommendDishesPrompt


logger = logging.getLogger(__name__)


SERVICE = "completion"


def openai_client_factory(
    config: Config,
    http_client: httpx.AsyncClient | None = None,
) -> openai.AsyncClient:
    # Retries are ours, see chef.retry.
    return openai.AsyncClient(
        api_key=config.openai_api_key,
        timeout=config.timeout,
        max_retries=0,
        http_client=http_client,
    )


class CompletionService:
    def __init__(
        self,
        config: Config | None = None,
        *,
        openai_client: openai.AsyncClient | None = None,
    ) -> None:
        self.config = Config() if config is None else config
        self.openai_client = (
            openai_client_factory(self.config)
            if openai_client is None
            else openai_client
        )

    def messages(self, ingredients: str) -> list[ChatCompletionMessageParam]:
        system_message: ChatCompletionSystemMessageParam = {
            "role": "system",
            "content": SYSTEM_PROMPT,
        }
        user_message: ChatCompletionUserMessageParam = {
            "role": "user",
            "content": str(RecommendDishesPrompt(ingredients, n=self.config.dish_count)),
        }
        return [system_message, user_message]

    async def complete(self, ingredients: str) -> str:
        logger.info("Requesting dishes for %r", ingredients)
        try:
            resp = await self.openai_client.chat.completions.create(
                model=self.config.core_model,
                messages=self.messages(ingredients),
                max_tokens=self.config.max_tokens,
            )
        except openai.APIError as e:
            raise UpstreamRequestFailed(SERVICE, str(e)) from e

        if not resp.choices:
            raise MalformedPayload(SERVICE, resp)
        return (resp.choices[0].message.content or "").strip()

    async def aclose(self) -> None:
        await self.openai_client.close()
