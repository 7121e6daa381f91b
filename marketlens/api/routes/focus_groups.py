"""
Focus Group Endpoints

Simulated focus groups for segments of the latest segmentation.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status

from marketlens.api.dependencies import get_pipeline
from marketlens.api.models.requests import FocusGroupRequest
from marketlens.core.generation_pipeline import GenerationPipeline

router = APIRouter(prefix="/projects/{project_id}/focus-groups", tags=["Focus Groups"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_focus_group(
    project_id: str,
    payload: FocusGroupRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    transcript = await pipeline.generate_focus_group(
        project_id,
        segment_name=payload.segment_name,
        discussion_question=payload.discussion_question,
        provider=payload.provider,
        model_name=payload.model_name,
    )
    return transcript.model_dump(mode="json")


@router.get("")
async def list_focus_groups(
    project_id: str,
    segment_name: Optional[str] = None,
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    transcripts = await pipeline.list_focus_groups(project_id, segment_name=segment_name)
    return [transcript.model_dump(mode="json") for transcript in transcripts]
