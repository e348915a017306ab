"""
Translation gateway factory.

Creates the appropriate gateway based on configuration.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from translate_locales.gateway.base import TranslationGateway

if TYPE_CHECKING:
    from translate_locales.config import TranslationConfig


class GatewayType(str, Enum):
    """Available translation gateway types."""

    DEEPL = "deepl"
    OPENROUTER = "openrouter"


def _normalize(gateway_type: GatewayType | str) -> GatewayType:
    if isinstance(gateway_type, GatewayType):
        return gateway_type
    normalized = gateway_type.lower().replace("_", "-")
    try:
        return GatewayType(normalized)
    except ValueError:
        valid = [g.value for g in GatewayType]
        raise ValueError(
            f"Invalid gateway type: {normalized}. Valid options: {valid}"
        ) from None


def create_gateway(
    gateway_type: GatewayType | str,
    *,
    api_key: str | None = None,
    model: str = "default",
    **kwargs: Any,
) -> TranslationGateway:
    """
    Create a translation gateway instance.

    Args:
        gateway_type: Type of gateway to create (deepl or openrouter).
        api_key: Provider credential.
        model: Model name or alias (openrouter only).
        **kwargs: Additional gateway-specific options.

    Returns:
        TranslationGateway instance.

    Raises:
        ValueError: If gateway_type is invalid.
        TranslationError: If the credential is missing.

    Examples:
        gateway = create_gateway("deepl", api_key="...:fx")

        gateway = create_gateway(
            "openrouter",
            api_key="sk-or-...",
            model="deepseek",
        )
    """
    gateway_type = _normalize(gateway_type)

    if gateway_type == GatewayType.DEEPL:
        from translate_locales.gateway.deepl import DeepLGateway

        kwargs.pop("max_retries", None)
        return DeepLGateway(api_key=api_key, **kwargs)

    from translate_locales.gateway.llm import LLMGateway

    return LLMGateway(api_key=api_key, model=model, **kwargs)


def create_gateway_with_fallback(
    primary_gateway: GatewayType | str,
    fallback_gateway: GatewayType | str,
    *,
    primary_api_key: str | None = None,
    fallback_api_key: str | None = None,
    primary_model: str = "default",
    fallback_model: str = "default",
    **kwargs: Any,
) -> TranslationGateway:
    """
    Create a translation gateway with automatic fallback support.

    Example:
        # DeepL primary with an LLM fallback for unsupported locales
        gateway = create_gateway_with_fallback(
            primary_gateway="deepl",
            fallback_gateway="openrouter",
            primary_api_key="...",
            fallback_api_key="sk-or-...",
        )
    """
    from translate_locales.gateway.fallback import FallbackGateway

    primary = create_gateway(
        primary_gateway,
        api_key=primary_api_key,
        model=primary_model,
        **kwargs,
    )
    fallback = create_gateway(
        fallback_gateway,
        api_key=fallback_api_key,
        model=fallback_model,
        **kwargs,
    )
    return FallbackGateway(primary=primary, fallback=fallback)


def _api_key_for(config: TranslationConfig, gateway_type: GatewayType) -> str:
    if gateway_type == GatewayType.DEEPL:
        return config.deepl_api_key
    return config.openrouter_api_key


def create_gateway_from_config(config: TranslationConfig) -> TranslationGateway:
    """
    Build the gateway described by the translation section of the settings.

    Raises:
        TranslationError: If a configured provider has no credential.
    """
    primary = _normalize(config.provider.value)
    options = {"timeout": float(config.timeout_seconds), "max_retries": config.max_retries}

    if config.fallback_provider is None:
        return create_gateway(
            primary,
            api_key=_api_key_for(config, primary),
            model=config.model,
            **options,
        )

    fallback = _normalize(config.fallback_provider.value)
    return create_gateway_with_fallback(
        primary,
        fallback,
        primary_api_key=_api_key_for(config, primary),
        fallback_api_key=_api_key_for(config, fallback),
        primary_model=config.model,
        fallback_model=config.fallback_model or "default",
        **options,
    )
