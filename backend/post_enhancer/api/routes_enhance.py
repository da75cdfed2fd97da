"""Entry point for the publishing worker: ``POST /enhance``."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from ..dependencies import get_enhancer, require_shared_secret
from ..models.schemas import EnhanceAccepted, EnhanceRequest
from ..services.enhancer import PostEnhancer

router = APIRouter(dependencies=[Depends(require_shared_secret)])
logger = logging.getLogger(__name__)


@router.post("/enhance", response_model=EnhanceAccepted)
async def enhance_post(
    payload: EnhanceRequest,
    background_tasks: BackgroundTasks,
    enhancer: PostEnhancer = Depends(get_enhancer),
) -> EnhanceAccepted:
    """Acknowledge immediately; the pipeline runs after the response is sent."""
    logger.info("Enhancement requested for post %s (%s)", payload.post_id, payload.title)
    background_tasks.add_task(enhancer.enhance, payload)
    return EnhanceAccepted()
