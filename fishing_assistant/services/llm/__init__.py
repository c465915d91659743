"""LLM gateway factory."""

from fishing_assistant.services.llm.base import BaseLLMGateway

_gateway: BaseLLMGateway | None = None


def get_llm_gateway() -> BaseLLMGateway:
    """Return the shared OpenAI gateway, creating it on first use."""
    global _gateway
    if _gateway is None:
        from fishing_assistant.services.llm.openai_gateway import OpenAIGateway
        _gateway = OpenAIGateway()
    return _gateway
