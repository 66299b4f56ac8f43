from typing import Sequence

import openai
from loguru import logger
from openai import OpenAI

from .errors import EmptyResponseError, ServiceStatusError, TransportError
from .models import ChatMessage
from .settings import DEFAULT_API_BASE


class ChatGenerator:
    def __init__(self, api_key: str, api_base: str = DEFAULT_API_BASE, client=None):
        # Initialize OpenAI client with configurable endpoint
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=api_base,
            max_retries=0
        )

    def complete(self, model: str, messages: Sequence[ChatMessage]) -> ChatMessage:
        """Generate a single non-streaming reply to ``messages``"""
        payload = [m.to_dict() for m in messages]
        logger.debug("Requesting completion from {} with {} messages", model, len(payload))
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=payload
            )
        except openai.APIConnectionError as e:
            raise TransportError(f"request failed: {e}") from e
        except openai.APIStatusError as e:
            raise ServiceStatusError(e.status_code, e.message) from e

        if not response.choices:
            raise EmptyResponseError()
        message = response.choices[0].message
        return ChatMessage(message.role or "assistant", message.content or "")
