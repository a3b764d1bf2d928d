"""
Tests for searchable text construction.
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from search.searchable_text import create_searchable_text


class TestCreateSearchableText:
    """Tests for create_searchable_text."""

    def test_full_project_in_label_order(self):
        """Labelled fields appear in a fixed order separated by blank lines."""
        project = {
            "project_title": "Clinic booking",
            "tagline": "Book in seconds",
            "short_description": "Appointment system",
            "proposal": "We will build it",
            "category": "Healthcare",
            "platform": "Web",
            "features": ["Calendar", "SMS"],
            "developers": ["Alice"],
        }

        text = create_searchable_text(project)

        assert text == (
            "Project: Clinic booking\n\n"
            "Tagline: Book in seconds\n\n"
            "Description: Appointment system\n\n"
            "Proposal: We will build it\n\n"
            "Category: Healthcare\n\n"
            "Platform: Web\n\n"
            "Features: Calendar, SMS\n\n"
            "Developers: Alice"
        )

    def test_empty_fields_are_omitted(self):
        """Missing, None and blank fields leave no trace."""
        project = {
            "project_title": "Clinic booking",
            "tagline": "   ",
            "short_description": None,
            "category": "Healthcare",
            "features": [],
        }

        text = create_searchable_text(project)

        assert text == "Project: Clinic booking\n\nCategory: Healthcare"
        assert "Tagline" not in text
        assert "Features" not in text

    def test_values_are_trimmed(self):
        text = create_searchable_text({"project_title": "  Shop  ", "features": [" Cart ", ""]})

        assert text == "Project: Shop\n\nFeatures: Cart"

    def test_empty_project(self):
        assert create_searchable_text({}) == ""

    @pytest.mark.parametrize("key,label", [
        ("project_title", "Project"),
        ("short_description", "Description"),
        ("platform", "Platform"),
    ])
    def test_single_field(self, key, label):
        assert create_searchable_text({key: "value"}) == f"{label}: value"

    def test_deterministic(self, project_factory):
        project = project_factory()

        assert create_searchable_text(project) == create_searchable_text(dict(project))
