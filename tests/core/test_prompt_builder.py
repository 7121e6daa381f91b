"""
Tests for prompt construction.
"""
from marketlens.core.prompt_builder import (
    SEGMENTATION_SYSTEM_PROMPT,
    TRUNCATION_MARKER,
    build_focus_group_prompt,
    build_focus_group_summary_prompt,
    build_segmentation_prompt,
    truncate_corpus,
)
from marketlens.models.project import BusinessContext, BusinessType, SegmentWeights


class TestSegmentationPrompt:

    def test_user_contains_business_fields_verbatim(self, ev_context):
        prompt = build_segmentation_prompt(ev_context)

        assert "Electric Vehicles" in prompt.user
        assert "Find buyers for a new EV model" in prompt.user
        assert "B2C" in prompt.user

    def test_is_deterministic(self, ev_context):
        corpus = "Survey: 62% of respondents cite charging access as the main barrier."

        first = build_segmentation_prompt(ev_context, corpus)
        second = build_segmentation_prompt(ev_context, corpus)

        assert first == second

    def test_system_fixes_markdown_contract(self, ev_context):
        prompt = build_segmentation_prompt(ev_context)

        assert prompt.system == SEGMENTATION_SYSTEM_PROMPT
        for header in ("**Demographics:**", "**Psychographics:**", "**Behaviors:**",
                       "**Pain Points:**", "**Motivations:**", "**Purchase Triggers:**",
                       "**Marketing Strategies:**"):
            assert header in prompt.system
        assert "## [Segment Name]" in prompt.system

    def test_weights_rendered(self):
        context = BusinessContext(
            business_type=BusinessType.B2B,
            industry="Logistics Software",
            weights=SegmentWeights(demographics=10, psychographics=20, behaviors=50, geography=20),
        )

        prompt = build_segmentation_prompt(context)

        assert "- Behaviors: 50%" in prompt.user
        assert "- Demographics: 10%" in prompt.user

    def test_missing_optional_fields_are_omitted(self):
        context = BusinessContext(business_type=BusinessType.B2B, industry="Dental Supplies")

        prompt = build_segmentation_prompt(context)

        assert "Objective:" not in prompt.user
        assert "Project Name:" not in prompt.user
        assert "None" not in prompt.user

    def test_empty_corpus_adds_no_research_section(self, ev_context):
        prompt = build_segmentation_prompt(ev_context, corpus_text="")

        assert "MARKET RESEARCH" not in prompt.user

    def test_corpus_is_prefix_truncated(self, ev_context):
        corpus = "a" * 50 + "b" * 50

        prompt = build_segmentation_prompt(ev_context, corpus, max_corpus_chars=50)

        assert "a" * 50 + "\n" + TRUNCATION_MARKER in prompt.user
        assert "a" * 50 + "b" not in prompt.user


class TestTruncateCorpus:

    def test_short_text_unchanged(self):
        assert truncate_corpus("hello", 100) == "hello"

    def test_long_text_marked(self):
        result = truncate_corpus("x" * 20, 10)

        assert result.startswith("x" * 10)
        assert result.endswith(TRUNCATION_MARKER)

    def test_non_positive_bound_disables_corpus(self):
        assert truncate_corpus("anything", 0) == ""

    def test_none_is_empty(self):
        assert truncate_corpus(None, 100) == ""


class TestFocusGroupPrompts:

    def test_focus_group_prompt_names_segment_and_question(self, ev_context, sample_segment):
        prompt = build_focus_group_prompt(ev_context, sample_segment, "Would you lease or buy?")

        assert "Eco-Conscious Professionals" in prompt.user
        assert "Would you lease or buy?" in prompt.user
        assert "age: 30-45" in prompt.user
        assert "Moderator:" in prompt.system

    def test_focus_group_prompt_without_question(self, ev_context, sample_segment):
        prompt = build_focus_group_prompt(ev_context, sample_segment)

        assert "DISCUSSION QUESTION" not in prompt.user

    def test_summary_prompt_bounds_transcript(self, ev_context, sample_segment):
        transcript = "Sarah: " + "z" * 500

        prompt = build_focus_group_summary_prompt(ev_context, sample_segment, transcript, max_transcript_chars=100)

        assert "z" * 93 in prompt.user
        assert "z" * 94 not in prompt.user
        assert "Electric Vehicles" in prompt.user
