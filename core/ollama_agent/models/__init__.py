"""Models module - Model listing and capability detection."""

from ollama_agent.models.capabilities import (
    CapabilityDetector,
    CapabilityKeywords,
    CapabilitySet,
    DEFAULT_KEYWORDS,
    detect_capabilities,
    get_detector,
)
from ollama_agent.models.registry import (
    MOCK_MODELS,
    ModelDescriptor,
    ModelDetails,
    ModelRegistry,
)

__all__ = [
    "CapabilityDetector",
    "CapabilityKeywords",
    "CapabilitySet",
    "DEFAULT_KEYWORDS",
    "detect_capabilities",
    "get_detector",
    "MOCK_MODELS",
    "ModelDescriptor",
    "ModelDetails",
    "ModelRegistry",
]
