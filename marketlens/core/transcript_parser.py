"""
Transcript Parser
Turns a focus-group completion into participants and question/response exchanges.
"""
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from loguru import logger

from marketlens.models.focus_group import Exchange, Participant, Response
from marketlens.models.segment import ParseStrategy
from marketlens.utils.fallback_responses import get_fallback_transcript

# "Moderator", "Lead Moderator", "Focus Group Facilitator", "Dr. Lee (Moderator)"
_MODERATOR_ROLE = re.compile(r"\b(?:moderator|facilitator|host)\b", re.IGNORECASE)

# "Sarah (34, Marketing Manager): text"
_DETAILED_SPEAKER = re.compile(r"^(?P<name>[A-Z][^():]{0,40}?)\s*\((?P<details>[^)]*)\)\s*:\s*(?P<text>.*)$")
# "Sarah: text" - up to three capitalised words before the colon
_SIMPLE_SPEAKER = re.compile(r"^(?P<name>[A-Z][\w'.\-]*(?:\s+[A-Z][\w'.\-]*){0,2})\s*:\s*(?P<text>.*)$")
_LEADING_DASH = re.compile(r"^[-•]\s+")


@dataclass
class ParsedTranscript:
    participants: List[Participant]
    exchanges: List[Exchange]
    strategy: ParseStrategy


@dataclass
class _Turn:
    speaker: str
    details: str
    text: str


def is_moderator(name: str, details: str = "") -> bool:
    """True when the speaker name or its bracketed details name a moderator role."""
    return bool(_MODERATOR_ROLE.search(name) or _MODERATOR_ROLE.search(details))


def _normalize_line(line: str) -> str:
    return _LEADING_DASH.sub("", line.replace("**", "").strip())


def match_speaker(line: str) -> Optional[_Turn]:
    """Return the turn a speaker-labelled line opens, or None for continuations."""
    match = _DETAILED_SPEAKER.match(line)
    if match:
        return _Turn(match.group("name").strip(), match.group("details").strip(), match.group("text").strip())
    match = _SIMPLE_SPEAKER.match(line)
    if match:
        return _Turn(match.group("name").strip(), "", match.group("text").strip())
    return None


def split_turns(text: str) -> List[_Turn]:
    """
    Group lines into speaker turns.

    Lines without a speaker label are continuations and are appended to the
    current turn. Text before the first speaker label is ignored.

    A bare "Word: text" line directly under a participant's turn, with no
    blank line between, is only a new speaker when the word is a known
    speaker or a moderator, or the text after the colon starts with a
    capital. "Price: it is too high." stays part of the running answer.
    """
    turns: List[_Turn] = []
    speakers = set()
    after_blank = True
    for raw_line in text.splitlines():
        line = _normalize_line(raw_line)
        if not line:
            after_blank = True
            continue
        if line.startswith("#"):
            continue

        turn = match_speaker(line)
        if turn and turns and not _opens_turn(turn, turns[-1], speakers, after_blank):
            turn = None
        after_blank = False

        if turn:
            turns.append(turn)
            speakers.add(turn.speaker)
        elif turns:
            current = turns[-1]
            current.text = f"{current.text} {line}".strip()
    return turns


def _opens_turn(turn: _Turn, current: _Turn, speakers: set, after_blank: bool) -> bool:
    if turn.details or after_blank or turn.speaker in speakers:
        return True
    if is_moderator(turn.speaker) or is_moderator(current.speaker, current.details):
        return True
    return not turn.text[:1].islower()


def _assemble(turns: List[_Turn], segment_label: str) -> tuple[List[Participant], List[Exchange]]:
    participants: Dict[str, Participant] = {}
    exchanges: List[Exchange] = []
    question: Optional[str] = None
    responses: List[Response] = []

    for turn in turns:
        if is_moderator(turn.speaker, turn.details):
            if question is not None or responses:
                exchanges.append(Exchange(question=question or "", responses=responses))
            question, responses = turn.text, []
            continue

        if turn.speaker not in participants:
            participants[turn.speaker] = Participant(
                name=turn.speaker,
                segment_label=segment_label,
                demographics_note=turn.details,
            )
        elif turn.details and not participants[turn.speaker].demographics_note:
            participants[turn.speaker] = participants[turn.speaker].model_copy(
                update={"demographics_note": turn.details}
            )
        responses.append(Response(participant_name=turn.speaker, text=turn.text))

    if question is not None or responses:
        exchanges.append(Exchange(question=question or "", responses=responses))

    return list(participants.values()), exchanges


def parse_focus_group(text: str, segment_label: str = "") -> ParsedTranscript:
    """
    Parse a focus-group completion.

    Moderator turns open a new exchange; every other speaker becomes a
    response in the current exchange and a participant in order of first
    appearance. Falls back to a fixed synthetic transcript when the text
    yields no participants or no exchanges.

    Args:
        text: Raw completion text
        segment_label: Segment name attached to every participant

    Returns:
        ParsedTranscript, never empty
    """
    participants, exchanges = _assemble(split_turns(text or ""), segment_label)

    if participants and exchanges:
        logger.debug(f"Parsed transcript: {len(participants)} participants, {len(exchanges)} exchanges")
        return ParsedTranscript(participants, exchanges, ParseStrategy.PRIMARY)

    logger.warning("No speaker-labelled turns found, using synthetic transcript")
    participants, exchanges = get_fallback_transcript(segment_label)
    return ParsedTranscript(participants, exchanges, ParseStrategy.SYNTHETIC)
