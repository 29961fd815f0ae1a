"""AI intent routing: ask a language model which repository an issue belongs in."""

import logging

from pydantic import ValidationError

from ..config import RepositoryConfig
from ..errors import RoutingError
from ..github_client.models import GitHubIssue
from .agents import LLMProvider
from .models import RoutingResult
from .prompts import ROUTING_SYSTEM_PROMPT, format_routing_prompt

logger = logging.getLogger(__name__)


class Router:
    """Suggests a destination repository from configured descriptions."""

    def __init__(self, llm: LLMProvider, repositories: list[RepositoryConfig]):
        self.llm = llm
        self.repositories = repositories

    def destinations(self) -> list[str]:
        """Catalog lines for enabled repositories that describe themselves."""
        return [
            f"- {repo.full_name}: {repo.description}"
            for repo in self.repositories
            if repo.enabled and repo.description
        ]

    def route(self, issue: GitHubIssue) -> RoutingResult | None:
        """Analyze an issue and suggest which repository it belongs in.

        Returns:
            The parsed decision, or None when no repository has a description
            (nothing to choose from, so the model is not called)

        Raises:
            RoutingError: If the completion fails or its output cannot be parsed
        """
        destinations = self.destinations()
        if not destinations:
            return None

        prompt = format_routing_prompt(
            issue.full_repo, issue.title, issue.body, destinations
        )

        try:
            response = self.llm.complete_with_system(ROUTING_SYSTEM_PROMPT, prompt)
        except Exception as e:
            raise RoutingError(f"AI routing completion failed: {e}") from e

        return parse_routing_response(response)


def parse_routing_response(response: str) -> RoutingResult:
    """Extract the JSON decision from a model response.

    A markdown code fence around the JSON is tolerated.

    Raises:
        RoutingError: If the response is not a valid routing decision
    """
    text = response.strip()
    text = text.removeprefix("```json").removeprefix("```")
    text = text.removesuffix("```").strip()

    try:
        return RoutingResult.model_validate_json(text)
    except ValidationError as e:
        logger.debug(f"Failed to parse LLM response: {text}")
        raise RoutingError(f"failed to parse AI routing response: {e}") from e
