"""
Prompt Builder
Deterministic construction of the (system, user) instruction pairs sent to the LLM gateway.

The markdown contract in SEGMENTATION_SYSTEM_PROMPT is what the segment parser is
written against: one `##` heading per segment followed by fixed-name subsections.
Change the two together.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from marketlens.models.project import BusinessContext
from marketlens.models.segment import Segment

DEFAULT_CORPUS_CHAR_LIMIT = 12000
DEFAULT_TRANSCRIPT_CHAR_LIMIT = 8000

TRUNCATION_MARKER = "[... research excerpt truncated ...]"


@dataclass(frozen=True)
class PromptPair:
    """A system instruction plus the user message it frames."""
    system: str
    user: str


SEGMENTATION_SYSTEM_PROMPT = """You are a market research expert who specializes in creating detailed, insightful market segmentations tailored to specific businesses and industries.

IMPORTANT: Every segment must be DIRECTLY RELEVANT to the specific business, industry and objective described by the user. DO NOT fall back to generic segments or default patterns (for example generic food, retail or "everyday consumer" segments) unless the business is explicitly about them.

Instructions:
1. Carefully analyze the business description, industry and objective.
2. Create AT LEAST 3 distinct market segments, ideally 4-6. Most businesses serve several customer types with different needs.
3. Make segments distinct, realistic and actionable, with specific, non-generic details.
4. Follow the EXACT markdown format below for every segment.

## [Segment Name]

A 1-2 sentence description of this segment.

**Demographics:**
- age: [age range]
- income: [income range]
- education: [education level]
- location: [geographic areas]
- gender: [gender distribution]
- family_status: [family composition]

**Psychographics:**
- values: [core values]
- interests: [key interests]
- lifestyle: [lifestyle characteristics]
- media_consumption: [media habits]
- attitudes: [attitudes toward the category or product]

**Behaviors:**
- purchase_frequency: [how often they buy]
- brand_loyalty: [loyalty characteristics]
- research_habit: [research behavior]
- spending_pattern: [spending behavior]
- decision_factors: [key decision drivers]
- shopping_channel: [preferred purchase channels]

**Pain Points:**
- [Pain point 1]
- [Pain point 2]
- [Pain point 3]

**Motivations:**
- [Motivation 1]
- [Motivation 2]
- [Motivation 3]

**Purchase Triggers:**
- [Trigger 1]
- [Trigger 2]
- [Trigger 3]

**Marketing Strategies:**
- [Strategy 1]
- [Strategy 2]
- [Strategy 3]

Use one `##` heading per segment and no other `##` headings, except an optional final `## Summary` section with 2-3 sentences comparing the segments. Keep the markdown formatting identical across segments."""


FOCUS_GROUP_SYSTEM_PROMPT = """You are a market research moderator skilled at simulating realistic focus groups.

Write the discussion as a transcript between one Moderator and 5-7 named participants who belong to the market segment described by the user. Give every participant a first name, an age and an occupation.

Formatting rules (follow them exactly):
- Every line of dialogue starts with the speaker label followed by a colon.
- The moderator is always labelled `Moderator:`.
- The first time a participant speaks, label them as `Name (Age, Occupation): text`.
- Afterwards you may label them as `Name (Age, Occupation): text` or `Name: text`.
- Separate turns with a blank line. Do not add headings, narration or stage directions.

Make the discussion natural: participants agree, disagree and build on each other's points, and their answers reflect the segment's characteristics, pain points and motivations."""


FOCUS_GROUP_SUMMARY_SYSTEM_PROMPT = """You are a senior market research analyst. Summarize focus group transcripts concisely and concretely for a business audience."""


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _business_lines(context: BusinessContext) -> list[str]:
    """Business fields rendered verbatim; missing optional fields are omitted."""
    lines = [
        f"- Business Type: {context.business_type.value}",
        f"- Industry: {_clean(context.industry)}",
        f"- Region: {_clean(context.region)}",
    ]
    if _clean(context.name):
        lines.append(f"- Project Name: {_clean(context.name)}")
    if _clean(context.description):
        lines.append(f"- Business Description: {_clean(context.description)}")
    if _clean(context.objective):
        lines.append(f"- Objective: {_clean(context.objective)}")
    return lines


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def truncate_corpus(corpus_text: Optional[str], max_chars: int) -> str:
    """
    Deterministic prefix truncation of research text.

    Returns the first `max_chars` characters (stripped) followed by a marker
    when anything was cut. A non-positive bound disables the corpus.
    """
    text = _clean(corpus_text)
    if not text or max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars].rstrip()}\n{TRUNCATION_MARKER}"


def build_segmentation_prompt(
    context: BusinessContext,
    corpus_text: Optional[str] = None,
    max_corpus_chars: int = DEFAULT_CORPUS_CHAR_LIMIT,
) -> PromptPair:
    """
    Build the segmentation prompt for a business context.

    Args:
        context: Business context entered by the user
        corpus_text: Concatenated text extracted from the project's documents
        max_corpus_chars: Prefix bound applied to corpus_text

    Returns:
        PromptPair whose system string fixes the markdown output contract
    """
    weights = context.weights
    sections = [
        "Create market segments for THIS EXACT business only.",
        "",
        "BUSINESS DETAILS:",
        *_business_lines(context),
        "",
        "SEGMENTATION WEIGHTING PREFERENCES (out of 100 total):",
        f"- Demographics: {_format_number(weights.demographics)}%",
        f"- Psychographics: {_format_number(weights.psychographics)}%",
        f"- Behaviors: {_format_number(weights.behaviors)}%",
        f"- Geography: {_format_number(weights.geography)}%",
    ]

    focus_terms = [term for term in (_clean(context.name), _clean(context.industry), _clean(context.objective)) if term]
    sections += [
        "",
        "REQUIREMENTS:",
        "1. Produce at least 3 (ideally 4-6) properly differentiated segments.",
        "2. Every segment must relate directly to the business and objective above.",
        "3. Do not use generic or default segment categories.",
    ]
    if focus_terms:
        sections += [
            "",
            "The segments must be specifically about: " + "; ".join(f'"{term}"' for term in focus_terms) + ".",
        ]

    corpus = truncate_corpus(corpus_text, max_corpus_chars)
    if corpus:
        sections += [
            "",
            "MARKET RESEARCH (incorporate insights from these uploaded documents):",
            corpus,
        ]

    return PromptPair(system=SEGMENTATION_SYSTEM_PROMPT, user="\n".join(sections))


def _segment_lines(segment: Segment) -> list[str]:
    lines = [f"Segment: {segment.name}"]
    if segment.description:
        lines.append(f"Description: {segment.description}")
    for label, mapping in (
        ("Demographics", segment.demographics),
        ("Psychographics", segment.psychographics),
        ("Behaviors", segment.behaviors),
    ):
        if mapping:
            lines.append(f"{label}:")
            lines.append(_bullets(f"{key}: {value}" for key, value in mapping.items()))
    for label, items in (
        ("Pain Points", segment.pain_points),
        ("Motivations", segment.motivations),
        ("Purchase Triggers", segment.purchase_triggers),
    ):
        if items:
            lines.append(f"{label}:")
            lines.append(_bullets(items))
    return lines


def build_focus_group_prompt(
    context: BusinessContext,
    segment: Segment,
    discussion_question: Optional[str] = None,
) -> PromptPair:
    """
    Build the focus-group simulation prompt for one segment.

    Args:
        context: Business context of the project
        segment: Segment whose members take part in the discussion
        discussion_question: Topic the moderator must open with (optional)

    Returns:
        PromptPair whose system string fixes the speaker-labelled transcript contract
    """
    sections = [
        f'Generate a realistic focus group transcript for the market segment "{segment.name}".',
        "",
        "BUSINESS CONTEXT:",
        *_business_lines(context),
        "",
        "SEGMENT DETAILS:",
        *_segment_lines(segment),
        "",
    ]

    question = _clean(discussion_question)
    if question:
        sections += [
            "DISCUSSION QUESTION (the moderator opens with it and follows up on the answers):",
            question,
            "",
        ]

    sections += [
        "Explore in natural dialogue:",
        "- Their needs and preferences",
        "- Pain points and frustrations",
        "- Purchase decision factors",
        "- Brand perceptions and loyalty drivers",
        "- Responses to potential marketing messages",
        "",
        f"The discussion must be directly relevant to {segment.name}"
        + (f" for {_clean(context.name)}." if _clean(context.name) else f" in the {_clean(context.industry)} industry."),
    ]

    return PromptPair(system=FOCUS_GROUP_SYSTEM_PROMPT, user="\n".join(sections))


def build_focus_group_summary_prompt(
    context: BusinessContext,
    segment: Segment,
    transcript_text: str,
    max_transcript_chars: int = DEFAULT_TRANSCRIPT_CHAR_LIMIT,
) -> PromptPair:
    """Build the prompt that condenses a focus-group transcript into a short summary."""
    transcript = _clean(transcript_text)[:max_transcript_chars]
    user = "\n".join([
        f'Summarize the following focus group transcript for the market segment "{segment.name}" '
        f"in the {_clean(context.industry)} industry.",
        "",
        "TRANSCRIPT:",
        transcript,
        "",
        "Provide a 4-5 sentence summary that highlights:",
        "1. Key insights about preferences, behaviors and motivations",
        "2. Pain points raised by multiple participants",
        "3. Marketing implications for the business",
        "4. Any surprising or unexpected findings",
    ])
    return PromptPair(system=FOCUS_GROUP_SUMMARY_SYSTEM_PROMPT, user=user)
