"""
Searchable text for project embeddings.

Builds the canonical text a project is embedded from. Labelled fields appear
in a fixed order, separated by a blank line; empty fields are left out.
"""

from typing import Any, Dict, List, Tuple

# (label, project key) in output order
TEXT_FIELDS: List[Tuple[str, str]] = [
    ('Project', 'project_title'),
    ('Tagline', 'tagline'),
    ('Description', 'short_description'),
    ('Proposal', 'proposal'),
    ('Category', 'category'),
    ('Platform', 'platform'),
]

LIST_FIELDS: List[Tuple[str, str]] = [
    ('Features', 'features'),
    ('Developers', 'developers'),
]


def create_searchable_text(project: Dict[str, Any]) -> str:
    """
    Concatenate a project's descriptive fields into one labelled string.

    Args:
        project: Project dict (missing keys are fine)

    Returns:
        e.g. "Project: Clinic booking\\n\\nCategory: Healthcare\\n\\nFeatures: Calendar, SMS"
    """
    parts = []

    for label, key in TEXT_FIELDS:
        value = project.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            parts.append(f"{label}: {value}")

    for label, key in LIST_FIELDS:
        names = [str(n).strip() for n in project.get(key) or [] if n and str(n).strip()]
        if names:
            parts.append(f"{label}: {', '.join(names)}")

    return '\n\n'.join(parts)
