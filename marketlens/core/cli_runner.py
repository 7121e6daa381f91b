"""
CLI Runner for the Generation Pipeline
Runs extraction → prompt → gateway → parser on local files without MongoDB.

Usage:
    python -m marketlens.core.cli_runner report.pdf --industry "Electric Vehicles" \
        --objective "Find buyers for a new EV model"
    python -m marketlens.core.cli_runner --industry "Coffee" --focus-group "Remote Workers"
"""
import argparse
import asyncio
import mimetypes
from pathlib import Path

from loguru import logger

from marketlens.config import get_settings
from marketlens.core.prompt_builder import build_focus_group_prompt, build_segmentation_prompt
from marketlens.core.segment_parser import parse_segmentation
from marketlens.core.transcript_parser import parse_focus_group
from marketlens.models.project import BusinessContext, BusinessType
from marketlens.services.text_extractor import DOCX_MIME, ExtractionFailed, TextExtractor, UnsupportedType
from marketlens.utils.llm_client import GenerationUnavailable, LLMGateway
from marketlens.utils.observability import configure_logging


def guess_mime_type(path: Path) -> str:
    if path.suffix.lower() == ".docx":
        return DOCX_MIME
    return mimetypes.guess_type(path.name)[0] or "application/octet-stream"


def read_corpus(paths: list[Path]) -> str:
    """Extract and join local research files; unreadable files are skipped with an error log."""
    extractor = TextExtractor()
    sections = []
    for path in paths:
        try:
            text = extractor.extract(path.read_bytes(), guess_mime_type(path))
        except (OSError, ExtractionFailed, UnsupportedType) as e:
            logger.error(f"❌ Skipping {path.name}: {e}")
            continue
        logger.info(f"📄 {path.name}: {len(text)} chars")
        sections.append(f"Document: {path.name}\n{text[:get_settings().document_summary_chars]}")
    return "\n\n".join(sections)


def print_segments(parsed) -> None:
    print(f"\n{'=' * 70}")
    print(f"📊 {len(parsed.segments)} segments (parser: {parsed.strategy})")
    print(f"{'=' * 70}")
    for segment in parsed.segments:
        print(f"\n## {segment.name} [{segment.size}]")
        print(f"   {segment.description}")
        for label, mapping in (
            ("Demographics", segment.demographics),
            ("Psychographics", segment.psychographics),
            ("Behaviors", segment.behaviors),
        ):
            if mapping:
                print(f"   {label}: " + "; ".join(f"{key}={value}" for key, value in mapping.items()))
        for label, items in (
            ("Pain points", segment.pain_points),
            ("Motivations", segment.motivations),
            ("Triggers", segment.purchase_triggers),
            ("Strategies", segment.marketing_strategies),
        ):
            if items:
                print(f"   {label}: " + "; ".join(items))
    if parsed.summary:
        print(f"\n📝 Summary: {parsed.summary}")


async def run(args: argparse.Namespace) -> int:
    configure_logging()

    context = BusinessContext(
        business_type=BusinessType(args.business_type),
        industry=args.industry,
        region=args.region,
        name=args.name,
        description=args.description,
        objective=args.objective,
    )
    gateway = LLMGateway()

    corpus = read_corpus([Path(p) for p in args.files])
    prompt = build_segmentation_prompt(context, corpus, max_corpus_chars=get_settings().corpus_char_limit)

    try:
        completion = await gateway.generate(prompt, provider=args.provider, model_name=args.model)
    except GenerationUnavailable as e:
        logger.error(f"❌ Generation unavailable: {e}")
        return 1

    print(f"\n⚡ {completion.provider}/{completion.model_name} in {completion.duration_ms:.0f}ms"
          + (" (fallback)" if completion.used_fallback else ""))
    parsed = parse_segmentation(completion.text)
    print_segments(parsed)

    if args.focus_group:
        segment = next(
            (s for s in parsed.segments if s.name.lower() == args.focus_group.lower()),
            parsed.segments[0],
        )
        try:
            transcript_completion = await gateway.generate(
                build_focus_group_prompt(context, segment, args.question),
                provider=args.provider,
                model_name=args.model,
            )
        except GenerationUnavailable as e:
            logger.error(f"❌ Focus group unavailable: {e}")
            return 1

        transcript = parse_focus_group(transcript_completion.text, segment_label=segment.name)
        print(f"\n{'=' * 70}")
        print(f"💬 Focus group: {segment.name} ({len(transcript.participants)} participants)")
        print(f"{'=' * 70}")
        for exchange in transcript.exchanges:
            print(f"\nModerator: {exchange.question}")
            for response in exchange.responses:
                print(f"   {response.participant_name}: {response.text}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate market segments from local research files")
    parser.add_argument("files", nargs="*", help="PDF, DOCX or TXT research documents")
    parser.add_argument("--industry", required=True)
    parser.add_argument("--business-type", choices=[t.value for t in BusinessType], default=BusinessType.B2C.value)
    parser.add_argument("--region", default="US")
    parser.add_argument("--name")
    parser.add_argument("--description")
    parser.add_argument("--objective")
    parser.add_argument("--provider", choices=["openai", "anthropic"])
    parser.add_argument("--model")
    parser.add_argument("--focus-group", metavar="SEGMENT", help="Also simulate a focus group for this segment")
    parser.add_argument("--question", help="Discussion question for the focus group")
    return parser


def main() -> int:
    return asyncio.run(run(build_parser().parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
