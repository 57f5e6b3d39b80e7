"""Shared OpenAI client for the scene assistant."""
from __future__ import annotations

import atexit
from functools import lru_cache

import httpx
from openai import OpenAI

from motiongen.utils.config import settings


def _build_httpx_client(read_timeout: float) -> httpx.Client:
    client = httpx.Client(
        timeout=httpx.Timeout(connect=10.0, read=read_timeout, write=30.0, pool=30.0),
        limits=httpx.Limits(max_connections=4, max_keepalive_connections=2),
        follow_redirects=True,
    )
    atexit.register(client.close)
    return client


@lru_cache(maxsize=1)
def get_openai_client() -> OpenAI:
    """Return the process-wide client; raises ValueError when no API key is configured."""
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY is not set")
    client = OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url or None,
        http_client=_build_httpx_client(settings.openai_timeout),
    )
    atexit.register(client.close)
    return client
