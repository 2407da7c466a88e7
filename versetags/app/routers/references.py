from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_pipeline
from ..schemas import (
    ParseTagRequest,
    ReferenceRead,
    RenderRequest,
    RenderResponse,
    ScanRequest,
    ScanResponse,
    TagPartsRead,
    TitleRequest,
    TitleResponse,
)
from ..utils.markdown import render_markdown
from ..utils.pipeline import Pipeline
from ..utils.tag_emitter import parse_tag

router = APIRouter(prefix="/references", tags=["references"])


@router.post("/scan", response_model=ScanResponse)
def scan_document(payload: ScanRequest, pipeline: Pipeline = Depends(get_pipeline)) -> ScanResponse:
    references = pipeline.references_for_document(payload.text, payload.filename)
    return ScanResponse(
        language=pipeline.language.code,
        references=[ReferenceRead.model_validate(ref) for ref in references],
        tags=pipeline.tags_for(references),
    )


@router.post("/title", response_model=TitleResponse)
def scan_title(payload: TitleRequest, pipeline: Pipeline = Depends(get_pipeline)) -> TitleResponse:
    reference = pipeline.scan_title(payload.filename)
    if reference is None:
        return TitleResponse()
    return TitleResponse(reference=ReferenceRead.model_validate(reference), tags=pipeline.tags_for([reference]))


@router.post("/parse-tag", response_model=TagPartsRead)
def parse_reference_tag(payload: ParseTagRequest, pipeline: Pipeline = Depends(get_pipeline)) -> TagPartsRead:
    parts = parse_tag(payload.tag, pipeline.tag_prefix, pipeline.display_resolver)
    if parts is None:
        raise HTTPException(status_code=422, detail=f"Not a reference tag: {payload.tag}")
    return TagPartsRead.model_validate(parts)


@router.post("/render", response_model=RenderResponse)
def render_document(payload: RenderRequest, pipeline: Pipeline = Depends(get_pipeline)) -> RenderResponse:
    return RenderResponse(html=render_markdown(payload.text, pipeline))
