from dataclasses import dataclass
import aisuite

from typing import Any, Dict, List


def message_to_dict(message: Any) -> Dict:
    """
    Normalizes the first choice's message into a plain dict.

    OpenAI-backed providers hand back pydantic models, while some aisuite
    providers build their own message objects or plain dicts.
    """
    if isinstance(message, dict):
        return message
    if hasattr(message, "model_dump"):
        # Unset values are excluded to keep the dict free of provider noise.
        return message.model_dump(exclude_unset=True)
    return {
        "role": getattr(message, "role", "assistant"),
        "content": getattr(message, "content", None),
    }


@dataclass
class LLMCompletionResponse:
    """The assistant message of a single chat completion."""

    assistant_message: Dict

    @property
    def content(self) -> str:
        """The reply text, or "" when the provider returned none (e.g. a refusal)."""
        content = self.assistant_message.get("content")
        if content is None:
            return ""
        return str(content)


class LLMClient:
    """
    uwu's only entry point to model providers. Every provider type from
    config.json is expressed as an aisuite provider config plus a
    "provider:model" id.
    """

    def __init__(self, provider_configs: Dict):
        """
        Args:
            provider_configs: aisuite provider configuration, keyed by the
                aisuite provider name (e.g. {"openai": {"api_key": ...}}).
        """
        self.client = aisuite.Client(provider_configs)

    @staticmethod
    def format_system_message(content: str) -> Dict:
        return {"role": "system", "content": content}

    @staticmethod
    def format_user_message(content: str) -> Dict:
        return {"role": "user", "content": content}

    def completion(
        self, model: str, messages: List[Dict], **kwargs
    ) -> LLMCompletionResponse:
        response = self.client.chat.completions.create(
            model=model, messages=messages, **kwargs
        )
        if not response.choices:
            return LLMCompletionResponse(assistant_message={})
        return LLMCompletionResponse(
            assistant_message=message_to_dict(response.choices[0].message)
        )
