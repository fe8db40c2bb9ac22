"""Stand-in responses for the memory and router services."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RoutePlan:
    """Which vendor and model to run, with plans to fall back on."""

    vendor_id: str
    model_id: str
    fallback_plans: tuple[RoutePlan, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ContextData:
    """A user's conversation history and preferences."""

    conversation_history: tuple[str, ...]
    user_preferences: str


@dataclass(frozen=True)
class RouterServiceResponse:
    """A routing plan and the reason it was chosen."""

    optimized_plan: RoutePlan
    optimization_reason: str


def mock_user_id() -> str:
    """User id used during development."""
    return "mock_user_123"


def mock_context() -> ContextData:
    """Conversation context as the memory service would return it."""
    return ContextData(
        conversation_history=(
            "User: Hello, how are you?",
            "Assistant: I'm doing well, thank you for asking!",
            "User: Can you help me with a coding question?",
            "Assistant: Of course! I'd be happy to help with your coding question.",
        ),
        user_preferences="casual tone, detailed explanations, code examples preferred",
    )


def mock_router_response() -> RouterServiceResponse:
    """Routing decision as the router service would return it."""
    return RouterServiceResponse(
        optimized_plan=RoutePlan(vendor_id="openai", model_id="gpt-4"),
        optimization_reason="Selected gpt-4 for best quality",
    )