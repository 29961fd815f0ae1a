"""Configuration models and loading.

Configuration lives in a YAML file (``.github/simili.yaml`` by default) and is
validated into pydantic models. Secrets are never read from the file except
the optional vector store API key; tokens come from the environment.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError
from .github_client.models import parse_repo

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = (
    Path(".github/simili.yaml"),
    Path(".github/simili.yml"),
    Path("simili.yaml"),
)

# Reaction contents accepted by the GitHub reactions API
GITHUB_REACTIONS = {
    "+1",
    "-1",
    "laugh",
    "confused",
    "heart",
    "hooray",
    "rocket",
    "eyes",
}


class RuleMatch(BaseModel):
    """Predicate of a transfer rule. Empty fields do not constrain."""

    labels: list[str] = Field(default_factory=list)
    title_contains: list[str] = Field(default_factory=list)
    body_contains: list[str] = Field(default_factory=list)
    author: str = ""

    def is_empty(self) -> bool:
        return not (
            self.labels or self.title_contains or self.body_contains or self.author
        )


class TransferRule(BaseModel):
    """Route issues matching ``match`` to ``target`` (``org/repo``)."""

    target: str
    match: RuleMatch = Field(default_factory=RuleMatch)


class RepositoryConfig(BaseModel):
    org: str
    repo: str
    enabled: bool = True
    description: str = ""
    transfer_rules: list[TransferRule] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.org}/{self.repo}"


class DelayedActionsConfig(BaseModel):
    """Hold transfers and closes until expiry, or transfer optimistically."""

    enabled: bool = False
    delay_hours: int = 24
    optimistic_transfers: bool = False
    approve_reaction: str = "+1"
    cancel_reaction: str = "-1"


class DefaultsConfig(BaseModel):
    delayed_actions: DelayedActionsConfig = Field(default_factory=DelayedActionsConfig)


class RouterConfig(BaseModel):
    enabled: bool = False
    model: str = "openai:gpt-4o-mini"


class TriageConfig(BaseModel):
    router: RouterConfig = Field(default_factory=RouterConfig)


class VectorDBConfig(BaseModel):
    url: str = "http://localhost:6333"
    api_key: str | None = None
    collection_prefix: str = "simili"
    timeout: float = 30.0


class Config(BaseModel):
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    triage: TriageConfig = Field(default_factory=TriageConfig)
    vectordb: VectorDBConfig = Field(default_factory=VectorDBConfig)
    repositories: list[RepositoryConfig] = Field(default_factory=list)

    def get_repo_config(self, org: str, repo: str) -> RepositoryConfig | None:
        """Look up a repository by ``org/repo``, ignoring case."""
        wanted = f"{org}/{repo}".lower()
        for repo_config in self.repositories:
            if repo_config.full_name.lower() == wanted:
                return repo_config
        return None


def find_config_path(explicit: str | None = None) -> Path | None:
    """Resolve the configuration file to use.

    Order: explicit path, ``SIMILI_CONFIG`` env var, then the default
    locations relative to the working directory.
    """
    if explicit:
        return Path(explicit)

    env_path = os.getenv("SIMILI_CONFIG")
    if env_path:
        return Path(env_path)

    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.exists():
            return candidate
    return None


def load_config(path: Path) -> Config:
    """Load and parse a YAML configuration file.

    Raises:
        ConfigError: If the file is missing, not valid YAML or does not
            match the configuration schema
    """
    if not path.exists():
        raise ConfigError(f"Config file {path} does not exist")

    try:
        raw = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    try:
        config = Config.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    if config.vectordb.api_key is None:
        config.vectordb.api_key = os.getenv("QDRANT_API_KEY")

    logger.debug(f"Loaded config from {path}: {len(config.repositories)} repositories")
    return config


def validate_config(config: Config) -> list[str]:
    """Return a list of human-readable configuration problems."""
    problems: list[str] = []

    delayed = config.defaults.delayed_actions
    if delayed.enabled and delayed.delay_hours <= 0:
        problems.append(
            "defaults.delayed_actions.delay_hours must be positive when delayed "
            "actions are enabled"
        )
    for field_name in ("approve_reaction", "cancel_reaction"):
        value = getattr(delayed, field_name)
        if value not in GITHUB_REACTIONS:
            problems.append(
                f"defaults.delayed_actions.{field_name} '{value}' is not a GitHub "
                f"reaction (expected one of {sorted(GITHUB_REACTIONS)})"
            )
    if delayed.approve_reaction == delayed.cancel_reaction:
        problems.append(
            "defaults.delayed_actions approve_reaction and cancel_reaction must differ"
        )

    for repo_config in config.repositories:
        for index, rule in enumerate(repo_config.transfer_rules):
            where = f"{repo_config.full_name} transfer_rules[{index}]"
            try:
                parse_repo(rule.target)
            except ValueError:
                problems.append(f"{where}: target '{rule.target}' is not org/repo")
                continue
            if rule.target.lower() == repo_config.full_name.lower():
                problems.append(f"{where}: target is the repository itself")
            if rule.match.is_empty():
                problems.append(f"{where}: match has no conditions")

    return problems
