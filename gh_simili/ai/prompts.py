"""Prompts for AI issue routing."""

# Body characters sent to the model; bounds prompt cost on very long issues
MAX_BODY_CHARS = 3000

ROUTING_SYSTEM_PROMPT = """You are an expert GitHub issue router. Your task is to \
analyze the intent of an issue and decide which repository it belongs in.
Respond ONLY with a JSON object containing:
- "target_repo": The "org/repo" string of the destination, or the current repo if \
it belongs here.
- "confidence": A float from 0 to 1.
- "reason": A brief explanation of why this intent matches the repository \
description.

If the issue clearly belongs in its current repository, "target_repo" should match \
the current repo."""


def truncate_text(text: str | None, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def format_routing_prompt(
    current_repo: str, title: str, body: str | None, destinations: list[str]
) -> str:
    """Format the user prompt for a routing decision.

    Args:
        current_repo: ``org/repo`` the issue was filed in
        title: Issue title
        body: Issue body, truncated to ``MAX_BODY_CHARS``
        destinations: Catalog lines, one per candidate repository

    Returns:
        Formatted prompt string
    """
    catalog = "\n".join(destinations)
    return f"""Current Repository: {current_repo}

Issue Title: {title}

Issue Description:
{truncate_text(body, MAX_BODY_CHARS)}

Available Repositories and their purposes:
{catalog}

Analyze the issue intent. Does it belong in a different repository based on the \
descriptions? Return JSON only."""
