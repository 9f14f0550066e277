"""Domain entities for text-completion exchanges — framework-independent."""

from dataclasses import dataclass, field


@dataclass
class ChatMessage:
    """A single message in a completion request."""

    role: str  # "system" | "user" | "assistant"
    content: str = ""


@dataclass
class TokenUsage:
    """Token usage statistics from a completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class ChatCompletionResult:
    """Result from a text-completion call."""

    model: str
    content: str
    finish_reason: str = "stop"  # "stop" | "length" | "error"
    usage: TokenUsage = field(default_factory=TokenUsage)
    provider: str = ""
