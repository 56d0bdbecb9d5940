from .service import (
    AnthropicChatClient,
    ChatAgent,
    GenerationResult,
    GenerationUnavailable,
    LLMClient,
    LLMReply,
    OpenAIChatClient,
    ToolCall,
    pick_llm,
)

__all__ = [
    "AnthropicChatClient",
    "ChatAgent",
    "GenerationResult",
    "GenerationUnavailable",
    "LLMClient",
    "LLMReply",
    "OpenAIChatClient",
    "ToolCall",
    "pick_llm",
]
