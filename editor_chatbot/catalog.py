"""Fixed catalog of the chat models offered in the model selector."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelDescriptor:
    """One selectable remote LLM."""

    id: str           # identifier understood by the completions API
    name: str         # short label shown in the selector
    description: str

    @property
    def label(self) -> str:
        """Text shown in the model selector."""
        return f"{self.name} - {self.description}"


DEFAULT_MODEL_ID = "meta-llama/llama-3.2-11b-vision-instruct"

AVAILABLE_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        id=DEFAULT_MODEL_ID,
        name="Llama 3.2 11B",
        description="Balanced performance and speed",
    ),
    ModelDescriptor(
        id="anthropic/claude-3-sonnet",
        name="Claude 3 Sonnet",
        description="High performance code assistant",
    ),
    ModelDescriptor(
        id="gpt-4-turbo",
        name="GPT-4 Turbo",
        description="Powerful general-purpose model",
    ),
    ModelDescriptor(
        id="gpt-3.5-turbo",
        name="GPT-3.5 Turbo",
        description="Fast and efficient",
    ),
)


def find_model(models, model_id: str) -> ModelDescriptor | None:
    """Return the catalog entry with *model_id*, or ``None``."""
    for model in models:
        if model.id == model_id:
            return model
    return None


def resolve_model_id(model_id: str | None) -> str:
    """Return *model_id*, or the default id when it is empty."""
    return model_id or DEFAULT_MODEL_ID
