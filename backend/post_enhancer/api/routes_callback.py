"""Webhook receiver for kie.ai task completion (``POST /kie-callback``).

The provider cannot send the shared secret, so this route is left open.  It
always acknowledges; a body that settles nothing is simply logged.
"""

from __future__ import annotations

import logging
from json import JSONDecodeError

from fastapi import APIRouter, Depends, Request

from ..dependencies import get_job_waiter
from ..services.job_waiter import CallbackJobWaiter, JobWaiter

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/kie-callback")
async def kie_callback(request: Request, waiter: JobWaiter = Depends(get_job_waiter)) -> dict:
    try:
        payload = await request.json()
    except (JSONDecodeError, UnicodeDecodeError):
        logger.warning("kie.ai callback with unparsable body ignored")
        return {"ok": True}

    if not isinstance(waiter, CallbackJobWaiter):
        logger.info("kie.ai callback ignored: waiter runs in polling mode")
        return {"ok": True}

    settled = waiter.handle_callback(payload)
    logger.debug("kie.ai callback settled a job: %s", settled)
    return {"ok": True}
