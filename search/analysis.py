"""
Search result analysis.

Turns the ranked projects into a markdown briefing for the freelancer using
the completion provider. The briefing is optional: callers fall back to
FALLBACK_ANALYSIS when generation fails.
"""

import logging
from typing import Any, Dict, List, Optional

from core.llm_provider import CompletionProvider, LLMRequest
from .errors import CompletionProviderFailed

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful assistant analyzing a freelancer's portfolio. The user will provide a client query or job post. Based on the matching projects found in the portfolio, provide a professional analysis to help the freelancer respond to the client.

Format your response as markdown with:

## Analysis
Brief analysis of what the client needs based on their query.

## Recommended Projects
For each relevant project (top 3-5), explain why it matches the client's requirements and how it demonstrates relevant experience.

## Summary
Overall assessment of how well the portfolio matches the client's needs, and any suggestions for the freelancer when responding to this inquiry."""

FALLBACK_ANALYSIS = (
    "## Analysis\n"
    "Unable to generate AI analysis. Please review the matching projects below.\n\n"
    "## Matching Projects\n"
    "The projects are sorted by relevance to your query."
)

EMPTY_COMPLETION = 'Unable to generate analysis.'


def _format_budget(project: Dict[str, Any]) -> str:
    budget = project.get('finalized_budget') or project.get('proposed_budget')
    if not budget:
        return '$N/A'
    if float(budget).is_integer():
        return f"${int(budget)}"
    return f"${budget}"


def build_projects_context(results: List[Any]) -> str:
    """
    Describe ranked results for the prompt.

    Args:
        results: SearchResult items (project dict + score), best first
    """
    blocks = []

    for rank, result in enumerate(results, start=1):
        p = result.project
        features = ', '.join(p.get('features') or [])
        blocks.append(
            f"{rank}. **{p.get('project_title')}** ({round(result.score * 100)}% match)\n"
            f"   - Category: {p.get('category')}\n"
            f"   - Platform: {p.get('platform')}\n"
            f"   - Description: {p.get('short_description')}\n"
            f"   - Features: {features}\n"
            f"   - Budget: {_format_budget(p)}"
        )

    return '\n\n'.join(blocks)


def build_user_prompt(query: str, projects_context: str) -> str:
    return (
        f'Client Query/Job Post:\n"{query}"\n\n'
        f'Matching Projects from Portfolio:\n{projects_context}'
    )


def generate_analysis(
    provider: Optional[CompletionProvider],
    query: str,
    results: List[Any],
    temperature: float = 0.7,
    max_tokens: int = 1500
) -> str:
    """
    Ask the completion provider for an analysis of the results.

    Returns:
        Generated markdown (or a short placeholder if the model returned nothing)

    Raises:
        CompletionProviderFailed: If no provider is available or the call fails
    """
    if provider is None:
        raise CompletionProviderFailed('No completion provider configured')

    request = LLMRequest(
        messages=[{
            'role': 'user',
            'content': build_user_prompt(query, build_projects_context(results)),
        }],
        system_prompt=SYSTEM_PROMPT,
        temperature=temperature,
        max_tokens=max_tokens,
    )

    try:
        response = provider.complete(request)
    except Exception as e:
        raise CompletionProviderFailed(f'Error generating AI analysis: {e}') from e

    return response.content or EMPTY_COMPLETION
