"""
Automatic capability detection for models.
Infers what a model supports from its name alone.
"""

from dataclasses import dataclass, field
from typing import Optional

from ollama_agent.utils.logging import logger


@dataclass(frozen=True)
class CapabilitySet:
    """Feature flags for the selected model."""

    vision: bool = False
    tools: bool = False
    multimodal: bool = False
    streaming: bool = True

    def to_dict(self) -> dict:
        return {
            "vision": self.vision,
            "tools": self.tools,
            "multimodal": self.multimodal,
            "streaming": self.streaming,
        }


@dataclass(frozen=True)
class CapabilityKeywords:
    """Name fragments that mark a model as vision- or tool-capable."""

    vision: tuple[str, ...] = field(default=(
        "vision",
        "llava",
        "bakllava",
        "moondream",
        "minicpm-v",
    ))
    tools: tuple[str, ...] = field(default=(
        "functionary",
        "hermes",
        "mistral",
        "mixtral",
        "codellama",
        "llama3",
        "qwen",
    ))


DEFAULT_KEYWORDS = CapabilityKeywords()


class CapabilityDetector:
    """
    Detect model capabilities from the model name.

    Matching is a case-insensitive substring test; any hit in a list sets the
    flag, so several hits in the same list change nothing.
    """

    def __init__(self, keywords: Optional[CapabilityKeywords] = None):
        self.keywords = keywords or DEFAULT_KEYWORDS

    def detect(self, model_name: str) -> CapabilitySet:
        name = (model_name or "").lower()

        has_vision = any(k in name for k in self.keywords.vision)
        has_tools = any(k in name for k in self.keywords.tools)

        caps = CapabilitySet(
            vision=has_vision,
            tools=has_tools,
            # No separate signal exists for multimodality.
            multimodal=has_vision,
            streaming=True,
        )
        logger.debug(f"Detected capabilities for {model_name}: {caps.to_dict()}")
        return caps


# Singleton instance for convenience
_detector: Optional[CapabilityDetector] = None


def get_detector() -> CapabilityDetector:
    """Get the singleton CapabilityDetector instance."""
    global _detector
    if _detector is None:
        _detector = CapabilityDetector()
    return _detector


def detect_capabilities(model_name: str) -> CapabilitySet:
    """
    Convenience function for capability detection.

    Example:
        caps = detect_capabilities("llava:7b")
        # Returns: CapabilitySet(vision=True, tools=False, multimodal=True, streaming=True)
    """
    return get_detector().detect(model_name)
