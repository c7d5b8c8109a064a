"""
Provider abstraction for different AI providers
Supports OpenAI and OpenRouter APIs
"""

from openai import OpenAI
from typing import Dict, Optional
from utils.config import (
    load_api_key, get_current_provider, get_provider_config,
    SUPPORTED_PROVIDERS, APP_TITLE, APP_URL, REQUEST_TIMEOUT
)


class ProviderError(Exception):
    """Base exception for provider-related errors"""
    pass


def _attribution_headers(provider: str) -> Optional[Dict[str, str]]:
    """App attribution headers, only sent to OpenRouter"""
    if provider == "openrouter":
        return {
            "HTTP-Referer": APP_URL,
            "X-Title": APP_TITLE,
        }
    return None


def create_client(provider: str = None, **kwargs) -> OpenAI:
    """
    Create an API client for the specified provider.
    OpenRouter is compatible with OpenAI's API, so we can use the same client.

    Args:
        provider: Provider name ("openai" or "openrouter"). If None, uses current provider.
        **kwargs: Additional parameters passed to the OpenAI client constructor

    Returns:
        OpenAI client configured for the specified provider

    Raises:
        ProviderError: If provider is not supported or API key is missing
    """
    if provider is None:
        provider = get_current_provider()

    if provider not in SUPPORTED_PROVIDERS:
        raise ProviderError(f"Unsupported provider: {provider}. Supported: {SUPPORTED_PROVIDERS}")

    api_key = load_api_key(provider)
    if not api_key:
        raise ProviderError(f"No API key found for provider: {provider}")

    config = get_provider_config(provider)

    client_kwargs = {"api_key": api_key, "timeout": REQUEST_TIMEOUT}
    if config.get("base_url"):
        client_kwargs["base_url"] = config["base_url"]

    headers = _attribution_headers(provider)
    if headers:
        client_kwargs["default_headers"] = headers

    # Merge any additional kwargs passed by caller
    client_kwargs.update(kwargs)

    return OpenAI(**client_kwargs)


def get_model_for_task(task: str, provider: str = None) -> str:
    """
    Get the appropriate model for a specific task ("chat" or "document").

    Raises:
        ProviderError: If task is not supported for the provider
    """
    if provider is None:
        provider = get_current_provider()

    config = get_provider_config(provider)

    if task not in config or task == "base_url":
        raise ProviderError(f"Task '{task}' not supported for provider '{provider}'")

    return config[task]


def validate_api_key(api_key: str, provider: str) -> bool:
    """
    Validate an API key for a specific provider by listing its models.

    Returns:
        True if API key is valid, False otherwise
    """
    try:
        config = get_provider_config(provider)

        client_kwargs = {"api_key": api_key}
        if config.get("base_url"):
            client_kwargs["base_url"] = config["base_url"]

        headers = _attribution_headers(provider)
        if headers:
            client_kwargs["default_headers"] = headers

        test_client = OpenAI(**client_kwargs)
        test_client.models.list()
        return True

    except Exception:
        return False


def get_provider_info(provider: str) -> Dict:
    """Get display information about a specific provider"""
    provider_info = {
        "openai": {
            "name": "OpenAI",
            "description": "Official OpenAI API with GPT models that read PDF and text syllabi",
            "api_key_prefix": "sk-",
            "signup_url": "https://platform.openai.com/api-keys",
            "pricing_url": "https://openai.com/pricing",
        },
        "openrouter": {
            "name": "OpenRouter",
            "description": "Access to multiple AI models including Claude, Gemini, and more",
            "api_key_prefix": "sk-or-",
            "signup_url": "https://openrouter.ai/keys",
            "pricing_url": "https://openrouter.ai/models",
        }
    }

    return provider_info.get(provider, {})


def get_api_call_params(
    model: str,
    messages: list,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    response_format: Optional[Dict] = None,
    **kwargs
) -> Dict:
    """
    Build chat completion parameters, leaving out anything that is None.

    Args:
        model: Model name to use
        messages: List of messages for the conversation
        temperature: Sampling temperature (0.0 to 2.0)
        max_tokens: Maximum tokens to generate
        response_format: Output format, e.g. {"type": "json_object"}
        **kwargs: Additional parameters

    Returns:
        Dictionary of API call parameters
    """
    params = {
        "model": model,
        "messages": messages
    }

    optional_params = {
        "temperature": temperature,
        "max_tokens": max_tokens,
        "response_format": response_format,
    }
    for key, value in optional_params.items():
        if value is not None:
            params[key] = value

    params.update(kwargs)

    return params


def list_available_models(provider: str = None) -> Dict:
    """Get the models configured for each task of a provider"""
    if provider is None:
        provider = get_current_provider()

    config = get_provider_config(provider)
    return {task: model for task, model in config.items() if task != "base_url"}
