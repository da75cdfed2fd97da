"""Client for the kie.ai task-based image generation API."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings
from ..exceptions import SubmissionError
from ..models.job import TaskState, TaskStatus
from ..utils.http import response_json

logger = logging.getLogger(__name__)

CREATE_TASK_PATH = "/api/v1/jobs/createTask"
RECORD_INFO_PATH = "/api/v1/jobs/recordInfo"


def parse_result_urls(result_json: Any) -> List[str]:
    """Extract ``resultUrls`` from the provider's ``resultJson`` field.

    ``resultJson`` is a JSON *string* nested inside the JSON body.  An absent
    value yields an empty list; an unparsable one raises ``ValueError``.
    """

    if not result_json:
        return []
    decoded = json.loads(result_json) if isinstance(result_json, str) else result_json
    if not isinstance(decoded, dict):
        raise ValueError(f"resultJson is not an object: {type(decoded).__name__}")
    urls = decoded.get("resultUrls") or []
    if not isinstance(urls, list):
        raise ValueError("resultUrls is not a list")
    return [u for u in urls if isinstance(u, str) and u]


class KieImageGenerator:
    """Create image tasks and query their status."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._base_url = settings.KIE_BASE_URL
        self._model = settings.KIE_MODEL
        self._resolution = settings.KIE_RESOLUTION
        self._output_format = settings.KIE_OUTPUT_FORMAT
        self._headers = {
            "Authorization": f"Bearer {settings.KIE_API_KEY}",
            "Content-Type": "application/json",
        }

    async def create_task(
        self,
        prompt: str,
        aspect_ratio: str = "16:9",
        callback_url: Optional[str] = None,
    ) -> str:
        """Submit a generation task and return the provider's task id."""

        logger.info("Generating image: %s", prompt[:80])
        payload: Dict[str, Any] = {
            "model": self._model,
            "input": {
                "prompt": prompt,
                "aspect_ratio": aspect_ratio,
                "resolution": self._resolution,
                "output_format": self._output_format,
            },
        }
        if callback_url:
            payload["callBackUrl"] = callback_url

        try:
            resp = await self._client.post(
                f"{self._base_url}{CREATE_TASK_PATH}", json=payload, headers=self._headers
            )
            resp.raise_for_status()
            body = response_json(resp)
        except httpx.HTTPStatusError as e:
            logger.error("kie.ai createTask HTTP %s: %s", e.response.status_code, e.response.text[:500])
            raise SubmissionError(f"kie.ai: createTask failed with HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("kie.ai createTask request failed: %s", e)
            raise SubmissionError(f"kie.ai: createTask request failed: {str(e) or type(e).__name__}") from e
        except ValueError as e:
            raise SubmissionError(f"kie.ai: unreadable createTask response: {e}") from e

        task_id = (body.get("data") or {}).get("taskId") if isinstance(body, dict) else None
        if not task_id:
            raise SubmissionError(f"kie.ai: no taskId. Response: {json.dumps(body)[:500]}")

        logger.info("kie.ai task created: %s", task_id)
        return str(task_id)

    async def query_task(self, task_id: str) -> TaskStatus:
        """Fetch the current status of ``task_id``.

        Transport failures propagate as ``httpx.HTTPError``; malformed bodies
        as ``ValueError``.
        """

        resp = await self._client.get(
            f"{self._base_url}{RECORD_INFO_PATH}",
            params={"taskId": task_id},
            headers=self._headers,
        )
        resp.raise_for_status()
        body = response_json(resp)
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise ValueError(f"kie.ai: recordInfo response without data for task {task_id}")

        state = TaskState.parse(data.get("state"))
        result_urls = parse_result_urls(data.get("resultJson")) if state is TaskState.SUCCESS else []
        return TaskStatus(
            task_id=task_id,
            state=state,
            result_urls=result_urls,
            fail_msg=data.get("failMsg"),
        )
