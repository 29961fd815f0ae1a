"""AI routing for GitHub issues."""

from .agents import LLMProvider, PydanticAIProvider
from .models import RoutingResult
from .prompts import ROUTING_SYSTEM_PROMPT
from .router import Router, parse_routing_response

__all__ = [
    # Models
    "RoutingResult",
    # Providers
    "LLMProvider",
    "PydanticAIProvider",
    # Routing
    "Router",
    "parse_routing_response",
    # Prompts
    "ROUTING_SYSTEM_PROMPT",
]
