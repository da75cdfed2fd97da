"""Ad hoc image generation for social posts (``POST /generate-image``)."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from ..config import Settings
from ..dependencies import get_job_waiter, get_settings, require_shared_secret
from ..exceptions import EnhancerError
from ..models.schemas import GenerateImageRequest, GenerateImageResponse
from ..services.job_waiter import JobWaiter

router = APIRouter(dependencies=[Depends(require_shared_secret)])
logger = logging.getLogger(__name__)

SOCIAL_ASPECT_RATIO = "1:1"


@router.post("/generate-image", response_model=GenerateImageResponse)
async def generate_image(
    payload: GenerateImageRequest,
    waiter: JobWaiter = Depends(get_job_waiter),
    settings: Settings = Depends(get_settings),
):
    if not payload.prompt and not payload.topic:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="prompt or topic required")

    prompt = payload.prompt or settings.SOCIAL_IMAGE_PROMPT_TEMPLATE.replace("{topic}", payload.topic)
    logger.info("Generating image for social post: %s", prompt[:100])

    try:
        url = await waiter.submit(prompt, SOCIAL_ASPECT_RATIO)
    except (EnhancerError, httpx.HTTPError) as e:
        logger.error("Image generation failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=GenerateImageResponse(
                success=False, error=str(e) or type(e).__name__
            ).model_dump(exclude_none=True),
        )

    logger.info("Image generated: %s", url)
    return GenerateImageResponse(success=True, url=url, prompt=prompt)
