"""PydanticAI-backed language model provider."""

from typing import Any, Protocol

from pydantic_ai import Agent


class LLMProvider(Protocol):
    """Anything that can answer a prompt under a system instruction."""

    def complete_with_system(self, system: str, prompt: str) -> str: ...


def validate_model_string(model: str) -> tuple[str, str]:
    """Validate and parse model string format.

    Args:
        model: Model identifier (e.g., 'openai:gpt-4o-mini')

    Returns:
        Tuple of (provider, model_name)

    Raises:
        ValueError: If model string format is invalid
    """
    if ":" not in model:
        raise ValueError(
            f"Invalid model format '{model}'. Expected format: provider:model\n\n"
            f"💡 Examples of valid model formats:\n"
            f"   openai:gpt-4o-mini\n"
            f"   anthropic:claude-3-5-sonnet-latest\n"
            f"   google-gla:gemini-2.0-flash"
        )

    provider, model_name = model.split(":", 1)
    if not provider or not model_name:
        raise ValueError(
            f"Invalid model format '{model}'. Both provider and model name must be "
            f"non-empty."
        )
    return provider.lower(), model_name


class PydanticAIProvider:
    """Plain-text completions through a pydantic-ai ``Agent``.

    A fresh agent is built per call since the system instruction differs
    between callers. Provider API keys are read by pydantic-ai from the
    environment (``OPENAI_API_KEY``, ``ANTHROPIC_API_KEY``, ...).
    """

    def __init__(
        self,
        model: str = "openai:gpt-4o-mini",
        temperature: float = 0.0,
        retries: int = 2,
    ):
        validate_model_string(model)
        self.model = model
        self.temperature = temperature
        self.retries = retries

    def complete_with_system(self, system: str, prompt: str) -> str:
        agent: Agent[None, str] = Agent(
            self.model,
            output_type=str,
            instructions=system,
            retries=self.retries,
        )
        settings: Any = {"temperature": self.temperature}
        result = agent.run_sync(prompt, model_settings=settings)
        return result.output
