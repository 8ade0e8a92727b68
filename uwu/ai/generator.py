from dataclasses import dataclass, field
from typing import Dict, List

from loguru import logger

from ..config import Config, PROVIDER_TYPES
from ..context import build_context_history, get_directory_listing, get_environment_context
from ..errors import ApiKeyNotConfiguredError, UnknownProviderError
from .llama_server import LlamaCppServerManager
from .llm import LLMClient
from .sanitizer import sanitize_response


SYSTEM_PROMPT_TEMPLATE = """
You live in a developer's CLI, helping them convert natural language into CLI commands.
Based on the description of the command given, generate the command. Output only the command and nothing else.
Make sure to escape characters when appropriate. The result of `{list_command}` is given with the command.
This may be helpful depending on the description given. Do not include any other text in your response, except for the command.
Do not wrap the command in quotes.

--- ENVIRONMENT CONTEXT ---
{environment_context}
--- END ENVIRONMENT CONTEXT ---

Result of `{list_command}` in working directory:
{listing}
{history_context}"""

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
GITHUB_MODELS_BASE_URL = "https://models.github.ai/inference"
GITHUB_DEFAULT_MODEL = "openai/gpt-4.1-nano"

LLAMA_CPP_DEFAULT_TEMPERATURE = 0.1
LLAMA_CPP_DEFAULT_MAX_TOKENS = 150
CLAUDE_MAX_TOKENS = 1024


@dataclass
class ProviderRequest:
    """Everything needed to issue one chat completion through aisuite."""

    provider_configs: Dict
    model: str
    messages: List[Dict]
    params: Dict = field(default_factory=dict)


def build_system_prompt(config: Config) -> str:
    list_command, listing = get_directory_listing()
    return SYSTEM_PROMPT_TEMPLATE.format(
        list_command=list_command,
        environment_context=get_environment_context(),
        listing=listing,
        history_context=build_context_history(config.context),
    )


def _description_message(command_description: str) -> str:
    return f"Command description: {command_description}"


def _chat_messages(system_prompt: str, command_description: str) -> List[Dict]:
    return [
        LLMClient.format_system_message(system_prompt),
        LLMClient.format_user_message(_description_message(command_description)),
    ]


def _openai_config(api_key: str, base_url: str = None) -> Dict:
    openai_config = {"api_key": api_key}
    if base_url:
        openai_config["base_url"] = base_url
    return {"openai": openai_config}


def build_provider_request(
    config: Config, system_prompt: str, command_description: str
) -> ProviderRequest:
    """
    Translates the uwu provider type into an aisuite request.

    All providers except Claude are reached through an OpenAI-compatible
    endpoint, so they share aisuite's "openai" provider with a different
    base URL.
    """
    provider_type = config.type
    if provider_type not in PROVIDER_TYPES:
        raise UnknownProviderError(provider_type)

    if provider_type in ("OpenAI", "Custom"):
        return ProviderRequest(
            provider_configs=_openai_config(config.api_key, config.base_url),
            model=f"openai:{config.model}",
            messages=_chat_messages(system_prompt, command_description),
        )

    if provider_type == "Claude":
        return ProviderRequest(
            provider_configs={"anthropic": {"api_key": config.api_key}},
            model=f"anthropic:{config.model}",
            messages=_chat_messages(system_prompt, command_description),
            params={"max_tokens": CLAUDE_MAX_TOKENS},
        )

    if provider_type == "Gemini":
        prompt = f"{system_prompt}\n\n{_description_message(command_description)}"
        return ProviderRequest(
            provider_configs=_openai_config(config.api_key, GEMINI_OPENAI_BASE_URL),
            model=f"openai:{config.model}",
            messages=[LLMClient.format_user_message(prompt)],
        )

    if provider_type == "GitHub":
        return ProviderRequest(
            provider_configs=_openai_config(
                config.api_key, config.base_url or GITHUB_MODELS_BASE_URL
            ),
            model=f"openai:{config.model or GITHUB_DEFAULT_MODEL}",
            messages=_chat_messages(system_prompt, command_description),
            params={"temperature": 1.0, "top_p": 1.0},
        )

    # LlamaCpp
    server = LlamaCppServerManager.get_instance()
    server.start_server(config)
    temperature = config.temperature
    if temperature is None:
        temperature = LLAMA_CPP_DEFAULT_TEMPERATURE
    return ProviderRequest(
        # llama-server ignores the key, but the OpenAI client insists on one.
        provider_configs=_openai_config("sk-no-key-required", server.base_url),
        model=f"openai:{config.model}",
        messages=_chat_messages(system_prompt, command_description),
        params={
            "temperature": temperature,
            "max_tokens": config.max_tokens or LLAMA_CPP_DEFAULT_MAX_TOKENS,
        },
    )


def generate_command(config: Config, command_description: str) -> str:
    """
    Asks the configured provider for a shell command and returns the
    sanitized single-line result (possibly empty).
    """
    # Fail before gathering any context.
    if config.type not in PROVIDER_TYPES:
        raise UnknownProviderError(config.type)
    if config.type != "LlamaCpp" and not config.api_key:
        raise ApiKeyNotConfiguredError(
            "API key not found.\n"
            "Please provide an API key in your config.json file or by setting "
            "the OPENAI_API_KEY environment variable."
        )

    system_prompt = build_system_prompt(config)
    request = build_provider_request(config, system_prompt, command_description)

    logger.debug("Querying provider={} model={}", config.type, request.model)
    llm = LLMClient(request.provider_configs)
    response = llm.completion(
        model=request.model, messages=request.messages, **request.params
    )

    raw = response.content
    logger.debug("Raw reply ({} chars): {!r}", len(raw), raw)
    return sanitize_response(raw)
