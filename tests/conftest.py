import os

# Settings are read at import time; keep tests off real credentials and databases
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")
os.environ.setdefault("DEFAULT_PROVIDER", "anthropic")
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")

import pytest
from unittest.mock import Mock

from marketlens.config import Settings
from marketlens.models.project import BusinessContext, BusinessType
from marketlens.models.segment import Segment, SegmentationResult


EV_COMPLETION = """## Eco-Conscious Professionals
Value sustainability and tech.
**Demographics:**
- age: 30-45
**Pain Points:**
- High upfront cost"""


FOCUS_GROUP_COMPLETION = """Moderator: What comes to mind when you think about electric vehicles?

Sarah (34, Marketing Manager): Honestly, range anxiety.
I love the idea but I worry about long trips.

Michael (42, Engineer): The technology is solid. Charging infrastructure is the gap.

Moderator: What would make you buy one this year?

Sarah: A clear total-cost-of-ownership comparison.

Jennifer (29, Teacher): Incentives, definitely. The upfront price is too high for me."""


class MockAgent:
    """Stand-in for a PydanticAI agent: returns canned text or raises."""

    def __init__(self, output="", error=None):
        self.output = output
        self.error = error
        self.calls = []

    async def run(self, prompt, model_settings=None):
        self.calls.append(prompt)
        if self.error:
            raise self.error
        result = Mock()
        result.output = self.output
        return result


@pytest.fixture
def settings():
    """Isolated settings instance with test credentials."""
    return Settings(
        openai_api_key="test-openai-key",
        anthropic_api_key="test-anthropic-key",
        default_provider="anthropic",
        environment="test",
    )


@pytest.fixture
def ev_context():
    return BusinessContext(
        business_type=BusinessType.B2C,
        industry="Electric Vehicles",
        objective="Find buyers for a new EV model",
    )


@pytest.fixture
def sample_segment():
    return Segment(
        name="Eco-Conscious Professionals",
        description="Value sustainability and tech.",
        size="15%",
        demographics={"age": "30-45", "income": "$90k-$150k"},
        psychographics={"values": "Sustainability"},
        behaviors={"research_habit": "Reads long-form reviews"},
        pain_points=["High upfront cost"],
        motivations=["Lower emissions"],
        purchase_triggers=["Tax credit announcements"],
        marketing_strategies=["Total cost of ownership calculators"],
    )


@pytest.fixture
def sample_segmentation(sample_segment):
    return SegmentationResult(
        _id="65f000000000000000000002",
        project_id="65f000000000000000000001",
        segments=[sample_segment],
        raw_text=EV_COMPLETION,
        provider="anthropic",
        model_name="claude-sonnet-4-5",
    )


@pytest.fixture
def ev_completion():
    return EV_COMPLETION


@pytest.fixture
def focus_group_completion():
    return FOCUS_GROUP_COMPLETION


@pytest.fixture
def mock_agent_cls():
    return MockAgent
