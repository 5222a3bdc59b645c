"""
Registry of models offered by the backend.
Holds the live /api/tags listing, or the static fixture when the backend is unreachable.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from ollama_agent.utils.logging import logger


class ModelDetails(BaseModel):
    """Optional metadata Ollama reports per model."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    family: Optional[str] = None
    format: Optional[str] = None
    parameter_size: Optional[str] = None


class ModelDescriptor(BaseModel):
    """A model available on the backend. Immutable once fetched."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str  # Unique ID: "llama3.1:8b"
    size: int  # Bytes on disk
    digest: str
    modified_at: str
    details: Optional[ModelDetails] = None

    @property
    def size_gb(self) -> float:
        return round(self.size / 1e9, 1)


MOCK_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        name="llama3.1:8b",
        size=4661224676,
        digest="sha256:42182419e950",
        modified_at="2024-01-15T10:30:00Z",
        details=ModelDetails(family="llama", format="gguf", parameter_size="8B"),
    ),
    ModelDescriptor(
        name="llava:7b",
        size=4109793677,
        digest="sha256:8dd30f6b0cb1",
        modified_at="2024-01-14T15:45:00Z",
        details=ModelDetails(family="llava", format="gguf", parameter_size="7B"),
    ),
    ModelDescriptor(
        name="codellama:13b",
        size=7365960935,
        digest="sha256:9f438cb9cd581040003681",
        modified_at="2024-01-13T09:20:00Z",
        details=ModelDetails(family="llama", format="gguf", parameter_size="13B"),
    ),
    ModelDescriptor(
        name="mistral:7b",
        size=4109793677,
        digest="sha256:61e88e884507",
        modified_at="2024-01-12T14:10:00Z",
        details=ModelDetails(family="mistral", format="gguf", parameter_size="7B"),
    ),
)


class ModelRegistry:
    """
    Tracks the models the user can pick from.
    Contents are replaced wholesale on every connectivity probe.
    """

    def __init__(self, fixture: Optional[list[ModelDescriptor]] = None):
        self.fixture: list[ModelDescriptor] = list(fixture if fixture is not None else MOCK_MODELS)
        self.models: list[ModelDescriptor] = []

    def load_fixture(self) -> list[ModelDescriptor]:
        """Fall back to the static model list."""
        self.models = list(self.fixture)
        return self.models

    def load_payload(self, data: Any) -> list[ModelDescriptor]:
        """Load models from an /api/tags response body. A missing field means no models."""
        raw_models = data.get("models") if isinstance(data, dict) else None
        models = []
        for entry in raw_models or []:
            try:
                models.append(ModelDescriptor.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping malformed model entry: {e.error_count()} errors")
        self.models = models
        return self.models

    def get(self, name: str) -> Optional[ModelDescriptor]:
        """Get a model by name."""
        for model in self.models:
            if model.name == name:
                return model
        return None

    def names(self) -> list[str]:
        return [m.name for m in self.models]
