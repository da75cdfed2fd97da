"""Service wiring and FastAPI dependencies.

:func:`build_services` constructs the object graph once per application;
route handlers reach it through the ``get_*`` dependencies so tests can swap
any piece via ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

import httpx
from fastapi import Request

from .config import Settings
from .exceptions import AuthError
from .services.enhancer import PostEnhancer
from .services.image_generator import KieImageGenerator
from .services.job_waiter import JobWaiter, build_job_waiter
from .services.notifier import TelegramNotifier
from .services.wordpress import WordPressClient
from .services.youtube import YouTubeClient
from .utils.http import build_http_client

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    http: httpx.AsyncClient
    job_waiter: JobWaiter
    enhancer: PostEnhancer

    async def aclose(self) -> None:
        await self.job_waiter.close()
        await self.http.aclose()


def build_services(settings: Settings) -> Services:
    http = build_http_client(settings)
    generator = KieImageGenerator(http, settings)
    job_waiter = build_job_waiter(settings, generator)
    enhancer = PostEnhancer(
        job_waiter=job_waiter,
        wordpress=WordPressClient(http, settings),
        youtube=YouTubeClient(http, settings),
        notifier=TelegramNotifier(http, settings),
        http=http,
        settings=settings,
    )
    logger.info("Services ready (waiter=%s)", type(job_waiter).__name__)
    return Services(settings=settings, http=http, job_waiter=job_waiter, enhancer=enhancer)


def get_settings(request: Request) -> Settings:
    return request.app.state.services.settings


def get_job_waiter(request: Request) -> JobWaiter:
    return request.app.state.services.job_waiter


def get_enhancer(request: Request) -> PostEnhancer:
    return request.app.state.services.enhancer


def require_shared_secret(request: Request) -> None:
    """Reject the request unless it carries the configured shared secret."""

    settings = get_settings(request)
    presented = request.headers.get(settings.AUTH_HEADER_NAME) or ""
    expected = settings.AUTH_TOKEN
    if not expected or not secrets.compare_digest(presented.encode(), expected.encode()):
        logger.warning("Rejected %s %s: bad or missing %s", request.method, request.url.path, settings.AUTH_HEADER_NAME)
        raise AuthError()
