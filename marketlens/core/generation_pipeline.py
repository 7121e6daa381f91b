"""
Generation Pipeline
Coordinates one generation run per request.

Architecture:
    Documents → Corpus → Prompt Builder → LLM Gateway → Parser → single insert

A run either persists one complete result record or nothing. Vendor failure
marks the project as errored; cancellation restores the previous status.
"""
import asyncio
import time
from typing import List, Optional

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase

from marketlens.config import Settings, get_settings
from marketlens.core.prompt_builder import (
    build_focus_group_prompt,
    build_focus_group_summary_prompt,
    build_segmentation_prompt,
)
from marketlens.core.segment_parser import parse_segmentation
from marketlens.core.transcript_parser import parse_focus_group
from marketlens.models.focus_group import FocusGroupTranscript
from marketlens.models.project import Project, ProjectStatus
from marketlens.models.segment import Segment, SegmentationResult
from marketlens.repositories.documents import DocumentRepository
from marketlens.repositories.projects import ProjectRepository
from marketlens.repositories.results import FocusGroupRepository, SegmentationResultRepository
from marketlens.services.document_processor import DocumentProcessor
from marketlens.utils.fallback_responses import get_fallback_focus_group_summary
from marketlens.utils.llm_client import GenerationUnavailable, LLMGateway
from marketlens.utils.observability import log_pipeline_event


class ProjectNotFoundError(Exception):
    pass


class SegmentNotFoundError(Exception):
    """The project has no segmentation yet, or none with the requested segment."""
    pass


class ParseProducedNothing(Exception):
    """The parser returned an empty result despite its fallbacks."""
    pass


class GenerationPipeline:
    """
    Runs segmentation and focus-group generation for stored projects.

    Usage:
        >>> pipeline = GenerationPipeline.from_database(db)
        >>> result = await pipeline.generate_segmentation(project_id)
        >>> print([segment.name for segment in result.segments])
    """

    def __init__(
        self,
        projects: ProjectRepository,
        segmentations: SegmentationResultRepository,
        focus_groups: FocusGroupRepository,
        processor: DocumentProcessor,
        gateway: LLMGateway | None = None,
        settings: Settings | None = None,
    ):
        self.projects = projects
        self.segmentations = segmentations
        self.focus_groups = focus_groups
        self.processor = processor
        self.settings = settings or get_settings()
        self.gateway = gateway or LLMGateway(self.settings)

    @classmethod
    def from_database(
        cls,
        database: AsyncIOMotorDatabase,
        gateway: LLMGateway | None = None,
        settings: Settings | None = None,
    ) -> "GenerationPipeline":
        settings = settings or get_settings()
        return cls(
            projects=ProjectRepository(database),
            segmentations=SegmentationResultRepository(database),
            focus_groups=FocusGroupRepository(database),
            processor=DocumentProcessor(DocumentRepository(database), settings=settings),
            gateway=gateway,
            settings=settings,
        )

    async def _load_project(self, project_id: str) -> Project:
        project = await self.projects.find_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project not found: {project_id}")
        return project

    async def generate_segmentation(
        self,
        project_id: str,
        provider: Optional[str] = None,
        model_name: Optional[str] = None,
    ) -> SegmentationResult:
        """
        Generate and persist a new segmentation for a project.

        Args:
            project_id: Project to segment
            provider: Vendor override (defaults to the project's, then settings)
            model_name: Model override (defaults to the project's, then the vendor default)

        Returns:
            The inserted SegmentationResult

        Raises:
            ProjectNotFoundError: Unknown project
            GenerationUnavailable: Both vendors failed (project marked ERROR)
            ParseProducedNothing: Parser returned no segments (nothing persisted)
        """
        start_time = time.perf_counter()
        project = await self._load_project(project_id)
        previous_status = project.status
        provider = provider or project.llm_provider
        model_name = model_name or project.model_name

        await self.projects.set_status(project_id, ProjectStatus.PROCESSING)

        try:
            corpus = await self.processor.build_corpus(project_id)
            prompt = build_segmentation_prompt(
                project.context,
                corpus_text=corpus,
                max_corpus_chars=self.settings.corpus_char_limit,
            )
            completion = await self.gateway.generate(prompt, provider=provider, model_name=model_name)

            parsed = parse_segmentation(completion.text)
            if not parsed.segments:
                raise ParseProducedNothing(f"No segments parsed for project {project_id}")

            result = await self.segmentations.create(SegmentationResult(
                project_id=project_id,
                segments=parsed.segments,
                summary=parsed.summary,
                raw_text=completion.text,
                provider=completion.provider,
                model_name=completion.model_name,
                used_fallback=completion.used_fallback,
                parse_strategy=parsed.strategy,
            ))

        except asyncio.CancelledError:
            logger.warning(f"Segmentation cancelled for project {project_id}, restoring status {previous_status}")
            await self.projects.set_status(project_id, previous_status, project.error_message)
            raise

        except GenerationUnavailable as e:
            await self.projects.set_status(project_id, ProjectStatus.ERROR, error_message=str(e))
            log_pipeline_event(
                "segmentation_failed",
                project_id,
                duration_ms=(time.perf_counter() - start_time) * 1000,
                error=str(e),
            )
            raise

        except Exception as e:
            await self.projects.set_status(project_id, ProjectStatus.ERROR, error_message=str(e))
            logger.exception(f"Segmentation failed for project {project_id}: {e}")
            raise

        await self.projects.set_status(
            project_id,
            ProjectStatus.COMPLETED,
            latest_segmentation_id=result.id,
        )
        log_pipeline_event(
            "segmentation_generated",
            project_id,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            segment_count=len(result.segments),
            parse_strategy=result.parse_strategy.value,
            provider=result.provider,
            used_fallback=result.used_fallback,
        )
        return result

    async def resolve_segment(self, project_id: str, segment_name: str) -> tuple[SegmentationResult, Segment]:
        """Find a segment by name in the project's latest segmentation."""
        latest = await self.segmentations.latest_for_project(project_id)
        if latest is None:
            raise SegmentNotFoundError(f"Project {project_id} has no segmentation yet")

        segment = latest.find_segment(segment_name)
        if segment is None:
            raise SegmentNotFoundError(f"Segment not found: {segment_name}")
        return latest, segment

    async def _summarize_transcript(self, project: Project, segment: Segment, transcript_text: str, provider, model_name) -> str:
        prompt = build_focus_group_summary_prompt(
            project.context,
            segment,
            transcript_text,
            max_transcript_chars=self.settings.focus_group_summary_chars,
        )
        try:
            return (await self.gateway.complete(prompt, provider=provider, model_name=model_name)).strip()
        except GenerationUnavailable as e:
            logger.warning(f"🛟 Focus group summary unavailable, using fallback summary: {e}")
            return get_fallback_focus_group_summary(segment.name)

    async def generate_focus_group(
        self,
        project_id: str,
        segment_name: str,
        discussion_question: Optional[str] = None,
        provider: Optional[str] = None,
        model_name: Optional[str] = None,
    ) -> FocusGroupTranscript:
        """
        Simulate and persist a focus group for one segment.

        The project status is not touched; focus groups are side runs.

        Raises:
            ProjectNotFoundError: Unknown project
            SegmentNotFoundError: No segmentation, or no segment with that name
            GenerationUnavailable: Both vendors failed on the transcript call
            ParseProducedNothing: Parser returned no participants or exchanges
        """
        start_time = time.perf_counter()
        project = await self._load_project(project_id)
        segmentation, segment = await self.resolve_segment(project_id, segment_name)
        provider = provider or project.llm_provider
        model_name = model_name or project.model_name

        prompt = build_focus_group_prompt(project.context, segment, discussion_question)
        try:
            completion = await self.gateway.generate(prompt, provider=provider, model_name=model_name)
        except GenerationUnavailable as e:
            log_pipeline_event(
                "focus_group_failed",
                project_id,
                duration_ms=(time.perf_counter() - start_time) * 1000,
                segment_name=segment.name,
                error=str(e),
            )
            raise

        parsed = parse_focus_group(completion.text, segment_label=segment.name)
        if not parsed.participants or not parsed.exchanges:
            raise ParseProducedNothing(f"No transcript parsed for segment {segment.name}")

        summary = await self._summarize_transcript(project, segment, completion.text, provider, model_name)

        transcript = await self.focus_groups.create(FocusGroupTranscript(
            project_id=project_id,
            segmentation_id=segmentation.id,
            segment_name=segment.name,
            discussion_question=(discussion_question or "").strip(),
            participants=parsed.participants,
            exchanges=parsed.exchanges,
            summary=summary,
            raw_text=completion.text,
            provider=completion.provider,
            model_name=completion.model_name,
            used_fallback=completion.used_fallback,
            parse_strategy=parsed.strategy,
        ))

        log_pipeline_event(
            "focus_group_generated",
            project_id,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            segment_name=segment.name,
            participant_count=len(transcript.participants),
            exchange_count=len(transcript.exchanges),
            parse_strategy=transcript.parse_strategy.value,
        )
        return transcript

    async def list_segmentations(self, project_id: str) -> List[SegmentationResult]:
        await self._load_project(project_id)
        return await self.segmentations.list_for_project(project_id)

    async def list_focus_groups(self, project_id: str, segment_name: Optional[str] = None) -> List[FocusGroupTranscript]:
        await self._load_project(project_id)
        return await self.focus_groups.list_for_project(project_id, segment_name=segment_name)
