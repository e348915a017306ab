"""
Translation gateway abstraction layer.

Supports multiple translation backends:
- DeepL (default): Machine translation via the DeepL REST API
- OpenRouter: Any chat model behind an OpenAI-compatible endpoint
"""

from translate_locales.gateway.base import (
    Formality,
    GatewayStats,
    TranslationGateway,
    TranslationSettings,
)
from translate_locales.gateway.factory import (
    GatewayType,
    create_gateway,
    create_gateway_from_config,
    create_gateway_with_fallback,
)

__all__ = [
    "Formality",
    "GatewayStats",
    "GatewayType",
    "TranslationGateway",
    "TranslationSettings",
    "create_gateway",
    "create_gateway_from_config",
    "create_gateway_with_fallback",
]
