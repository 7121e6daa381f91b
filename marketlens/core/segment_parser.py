"""
Segment Parser
Turns a segmentation completion (markdown-ish prose) into Segment records.

The primary strategy is a line scanner whose state is the open segment plus the
current subsection. Subsection headers are resolved through a keyword table.
Two weaker tiers run only when the scanner yields nothing, so the result is
never empty:

    primary   -> segments_from_headings -> synthetic_segment
"""
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Dict, List, Optional

from loguru import logger

from marketlens.models.segment import ParseStrategy, Segment
from marketlens.utils.fallback_responses import (
    FALLBACK_BEHAVIORS,
    FALLBACK_DEMOGRAPHICS,
    FALLBACK_MARKETING_STRATEGIES,
    FALLBACK_MOTIVATIONS,
    FALLBACK_PAIN_POINTS,
    FALLBACK_PSYCHOGRAPHICS,
    FALLBACK_PURCHASE_TRIGGERS,
    get_fallback_segment,
)

# Cosmetic placeholders assigned round-robin; they do not sum to 100%
SIZE_BUCKETS = ("15%", "20%", "25%", "30%", "35%", "40%", "45%")

MAX_DESCRIPTION_CHARS = 300
HEADING_FALLBACK_DESCRIPTION = "Market segment for the specified business"


class Subsection(StrEnum):
    DEMOGRAPHICS = "demographics"
    PSYCHOGRAPHICS = "psychographics"
    BEHAVIORS = "behaviors"
    PAIN_POINTS = "pain_points"
    MOTIVATIONS = "motivations"
    PURCHASE_TRIGGERS = "purchase_triggers"
    MARKETING_STRATEGIES = "marketing_strategies"
    SUMMARY = "summary"


MAPPING_SUBSECTIONS = frozenset({
    Subsection.DEMOGRAPHICS,
    Subsection.PSYCHOGRAPHICS,
    Subsection.BEHAVIORS,
})

LIST_SUBSECTIONS = frozenset({
    Subsection.PAIN_POINTS,
    Subsection.MOTIVATIONS,
    Subsection.PURCHASE_TRIGGERS,
    Subsection.MARKETING_STRATEGIES,
})

# Header text (markup stripped) must match one of these in full. First match wins.
_SUBSECTION_TABLE: tuple[tuple[Subsection, re.Pattern], ...] = tuple(
    (subsection, re.compile(pattern, re.IGNORECASE))
    for subsection, pattern in (
        (Subsection.DEMOGRAPHICS, r"(key )?demographics?( profile| characteristics| details)?"),
        (Subsection.PSYCHOGRAPHICS, r"(key )?psychographics?( profile| characteristics| details)?|values( (and|&) attitudes)?|attitudes"),
        (Subsection.BEHAVIORS, r"(key )?(buying |purchasing )?behaviou?rs?|behaviou?ral (patterns|characteristics|traits|profile)"),
        (Subsection.PAIN_POINTS, r"(key )?(pain points|challenges|frustrations)"),
        (Subsection.MOTIVATIONS, r"(key )?(motivations|drivers)|motivated by"),
        (Subsection.PURCHASE_TRIGGERS, r"(key )?(purchase|buying) triggers"),
        (Subsection.MARKETING_STRATEGIES, r"(recommended )?marketing (strategies|strategy|approach)"),
        (Subsection.SUMMARY, r"(executive )?summary|overview|conclusion"),
    )
)

_MARKUP = re.compile(r"[*_`#]+")
_LEADING_NUMBER = re.compile(r"^\d+[.)]\s*")
_TRAILING_PAREN = re.compile(r"\s*\([^)]*\)\s*$")
_BULLET = re.compile(r"^\s*(?:[-*•+]|\d+[.)])\s+(?P<item>.*)$")
_MARKER_BULLET = re.compile(r"^\s*[-*•+]\s+")
_MARKDOWN_HEADING = re.compile(r"^#{2,3}\s+(?P<name>.+)$")
_SEGMENT_LABEL = re.compile(r"^segment\s*(?:\d+|name)?\s*[:.)\-]\s*(?P<name>.*)$|^segment\s*\d+\s+(?P<rest>.+)$", re.IGNORECASE)
_TITLE_LINE = re.compile(r"^[A-Z][\w&'/\- ]+$")
_SMALL_WORDS = frozenset({"a", "an", "and", "or", "of", "the", "for", "with", "in", "on", "to", "&", "-"})
_DESCRIPTION_LABEL = re.compile(r"^description\s*:\s*", re.IGNORECASE)
_HEADING_ANYWHERE = re.compile(r"^#{2,}\s+(.+?)\s*$", re.MULTILINE)


@dataclass
class ParsedSegmentation:
    segments: List[Segment]
    summary: str
    strategy: ParseStrategy


@dataclass
class _SegmentDraft:
    """Mutable accumulator for the segment currently being scanned."""
    name: str
    description: str = ""
    demographics: Dict[str, str] = field(default_factory=dict)
    psychographics: Dict[str, str] = field(default_factory=dict)
    behaviors: Dict[str, str] = field(default_factory=dict)
    pain_points: List[str] = field(default_factory=list)
    motivations: List[str] = field(default_factory=list)
    purchase_triggers: List[str] = field(default_factory=list)
    marketing_strategies: List[str] = field(default_factory=list)

    def has_content(self) -> bool:
        return any((
            self.demographics, self.psychographics, self.behaviors,
            self.pain_points, self.motivations, self.purchase_triggers, self.marketing_strategies,
        ))

    def add_description(self, text: str) -> None:
        if len(self.description) >= MAX_DESCRIPTION_CHARS:
            return
        self.description = f"{self.description} {text}".strip()[:MAX_DESCRIPTION_CHARS]

    def add_item(self, subsection: Subsection, item: str) -> None:
        if subsection in MAPPING_SUBSECTIONS:
            add_mapping_item(getattr(self, subsection.value), item)
        elif subsection in LIST_SUBSECTIONS and item:
            getattr(self, subsection.value).append(item)

    def freeze(self, size: str) -> Segment:
        return Segment(
            name=self.name,
            description=self.description,
            size=size,
            demographics=self.demographics,
            psychographics=self.psychographics,
            behaviors=self.behaviors,
            pain_points=self.pain_points,
            motivations=self.motivations,
            purchase_triggers=self.purchase_triggers,
            marketing_strategies=self.marketing_strategies,
        )


def add_mapping_item(mapping: Dict[str, str], item: str) -> None:
    """
    Store a bullet from a mapping subsection.

    "key: value" splits on the first colon, "key - value" on the first
    spaced dash; anything else lands under a synthetic `item<N>` key.
    Pairs with an empty key or value are dropped.
    """
    for separator in (":", " - "):
        if separator in item:
            key, _, value = item.partition(separator)
            key, value = key.strip().lower(), value.strip()
            if key and value:
                mapping[key] = value
            return
    if item:
        mapping[f"item{len(mapping)}"] = item


def _header_text(line: str) -> str:
    text = _MARKUP.sub("", line).strip()
    text = _LEADING_NUMBER.sub("", text)
    text = _TRAILING_PAREN.sub("", text.rstrip(":").strip())
    return text.rstrip(":").strip()


def _lookup_subsection(text: str) -> Optional[Subsection]:
    for subsection, pattern in _SUBSECTION_TABLE:
        if pattern.fullmatch(text):
            return subsection
    return None


def match_subsection(line: str) -> Optional[tuple[Subsection, str]]:
    """
    Recognise a subsection header.

    Returns the subsection and any inline content after the header
    (e.g. "**Pain Points:** High cost" -> (PAIN_POINTS, "High cost")),
    or None when the line is not a header.
    """
    if _MARKER_BULLET.match(line):
        return None

    subsection = _lookup_subsection(_header_text(line))
    if subsection:
        return subsection, ""

    head, separator, rest = _MARKUP.sub("", line).partition(":")
    if separator and rest.strip():
        subsection = _lookup_subsection(_header_text(head))
        if subsection:
            return subsection, rest.strip()
    return None


def _is_title_case(text: str) -> bool:
    if not (5 < len(text) < 60) or not _TITLE_LINE.match(text):
        return False
    for word in text.split():
        if word.lower() in _SMALL_WORDS or not word[0].isalpha():
            continue
        if not word[0].isupper():
            return False
    return True


def match_segment_boundary(line: str, after_blank: bool) -> Optional[str]:
    """
    Return the segment name if the line opens a new segment.

    Heuristics, first match wins:
    1. A `##` or `###` markdown heading
    2. A line starting with "Segment" followed by a number or colon
    3. A short Title-Case line preceded by a blank line
    """
    stripped = line.strip()

    heading = _MARKDOWN_HEADING.match(stripped)
    if heading:
        return _clean_segment_name(heading.group("name"))
    if _BULLET.match(stripped):
        return None

    unmarked = _MARKUP.sub("", stripped).strip()
    label = _SEGMENT_LABEL.match(unmarked)
    if label:
        name = label.group("name") if label.group("name") is not None else label.group("rest")
        return _clean_segment_name(name or unmarked)

    # "**Media Habits:**" is a label inside a segment, never a segment name
    if after_blank and not unmarked.endswith(":") and _is_title_case(unmarked):
        return unmarked

    return None


def is_unknown_label(line: str) -> bool:
    """
    True for a bare label line ("**Media Habits:**", "Key Characteristics:")
    that is not a recognised subsection header or a description label.
    """
    if _BULLET.match(line):
        return False
    unmarked = _MARKUP.sub("", line).strip()
    if not unmarked.endswith(":") or ":" in unmarked[:-1]:
        return False
    return not _DESCRIPTION_LABEL.match(unmarked) and match_subsection(line) is None


def _clean_segment_name(raw: str) -> str:
    name = _MARKUP.sub("", raw).strip()
    name = re.sub(r"^segment\s*\d*\s*[:.)\-]\s*", "", name, flags=re.IGNORECASE)
    return name.rstrip(":").strip() or raw.strip()


def _bullet_item(line: str) -> Optional[str]:
    match = _BULLET.match(line)
    if not match:
        return None
    return match.group("item").replace("**", "").strip()


def _size_for(index: int) -> str:
    return SIZE_BUCKETS[index % len(SIZE_BUCKETS)]


class _SegmentScanner:
    """Finite-state scanner over completion lines."""

    def __init__(self):
        self.segments: List[Segment] = []
        self.summary_lines: List[str] = []
        self.current: Optional[_SegmentDraft] = None
        self.subsection: Optional[Subsection] = None
        # Inside an unrecognised labelled block whose lines belong nowhere
        self.skipping = False

    def scan(self, text: str) -> None:
        after_blank = True
        for line in text.splitlines():
            if not line.strip():
                after_blank = True
                continue
            self._feed(line, after_blank)
            after_blank = False
        self._close()

    def _feed(self, line: str, after_blank: bool) -> None:
        header = match_subsection(line)
        if header:
            self.subsection, inline = header
            self.skipping = False
            if inline:
                self._content(inline, inline)
            return

        name = match_segment_boundary(line, after_blank)
        if name:
            self._close()
            self.current = _SegmentDraft(name=name)
            self.subsection = None
            self.skipping = False
            return

        if self.current is not None and is_unknown_label(line):
            logger.debug(f"Skipping unrecognised block: {line.strip()}")
            self.subsection = None
            self.skipping = True
            return

        item = _bullet_item(line)
        self._content(line.strip(), item)

    def _content(self, text: str, item: Optional[str]) -> None:
        if self.subsection == Subsection.SUMMARY:
            self.summary_lines.append(item if item is not None else _MARKUP.sub("", text).strip())
            return
        if self.current is None or self.skipping:
            return
        if self.subsection is None:
            plain = item if item is not None else _MARKUP.sub("", text).strip()
            self.current.add_description(_DESCRIPTION_LABEL.sub("", plain))
        elif item is not None:
            self.current.add_item(self.subsection, item)

    def _close(self) -> None:
        draft, self.current = self.current, None
        if draft is None:
            return
        if not draft.has_content():
            logger.debug(f"Discarding empty segment: {draft.name}")
            return
        self.segments.append(draft.freeze(_size_for(len(self.segments))))


def _extract_field(span: str, key: str, default: str) -> str:
    match = re.search(rf"\b{key}\b[:\s-]+([^,\n]+)", span, re.IGNORECASE)
    if not match:
        return default
    value = _MARKUP.sub("", match.group(1)).strip()
    return value or default


def segments_from_headings(text: str) -> List[Segment]:
    """
    Fallback tier 1: one segment per `##` heading anywhere in the text.

    The span up to the next heading provides the description (its first
    line) and a light regex pass for common attributes; the rest is
    filled from the fallback template.
    """
    headings = [
        match for match in _HEADING_ANYWHERE.finditer(text)
        if _lookup_subsection(_header_text(match.group(1))) is None
    ]

    segments: List[Segment] = []
    for index, match in enumerate(headings):
        end = headings[index + 1].start() if index + 1 < len(headings) else len(text)
        span = text[match.end():end].strip()
        first_line = next((line.strip() for line in span.splitlines() if line.strip()), "")
        description = _MARKUP.sub("", first_line).strip()[:MAX_DESCRIPTION_CHARS] or HEADING_FALLBACK_DESCRIPTION

        segments.append(Segment(
            name=_clean_segment_name(match.group(1)),
            description=description,
            size=_size_for(index),
            demographics={
                key: _extract_field(span, key, default)
                for key, default in FALLBACK_DEMOGRAPHICS.items()
            },
            psychographics={
                key: _extract_field(span, key, default) if key != "lifestyle" else default
                for key, default in FALLBACK_PSYCHOGRAPHICS.items()
            },
            behaviors=dict(FALLBACK_BEHAVIORS),
            pain_points=list(FALLBACK_PAIN_POINTS),
            motivations=list(FALLBACK_MOTIVATIONS),
            purchase_triggers=list(FALLBACK_PURCHASE_TRIGGERS),
            marketing_strategies=list(FALLBACK_MARKETING_STRATEGIES),
        ))
    return segments


def synthetic_segment(text: str) -> Segment:
    """Fallback tier 2: a single generic segment quoting the completion."""
    return get_fallback_segment(text)


def parse_segmentation(text: str) -> ParsedSegmentation:
    """
    Parse a segmentation completion.

    Deterministic, and never returns an empty segment list.

    Args:
        text: Raw completion text

    Returns:
        ParsedSegmentation with the segments, the optional summary section
        and the tier that produced them
    """
    scanner = _SegmentScanner()
    scanner.scan(text or "")
    summary = "\n".join(scanner.summary_lines).strip()

    if scanner.segments:
        logger.debug(f"Parsed {len(scanner.segments)} segments")
        return ParsedSegmentation(scanner.segments, summary, ParseStrategy.PRIMARY)

    logger.warning("No segments found by line scanner, trying heading fallback")
    segments = segments_from_headings(text or "")
    if segments:
        return ParsedSegmentation(segments, summary, ParseStrategy.HEADINGS)

    logger.warning("No segment headings detected, using synthetic segment")
    return ParsedSegmentation([synthetic_segment(text or "")], summary, ParseStrategy.SYNTHETIC)
