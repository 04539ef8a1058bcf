"""Environment-based configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from cep_label.cache import CacheConfig
from cep_label.models import Margins, PageDescriptor, PAGE_FORMATS


DEFAULT_API_URL = "https://viacep.com.br/ws"


@dataclass
class Config:
    """Configuration values derived from environment variables."""
    # Registry / HTTP
    api_url: str
    req_timeout: float
    max_retries: int
    backoff_factor: float
    http_max: int

    # Lookups
    cache: CacheConfig
    range_limit: int

    # Labels
    page: PageDescriptor
    out_dir: Path


def _margin(name: str) -> float:
    return float(os.getenv(f"CEP_MARGIN_{name}", "20"))


async def initialize_environment() -> Config:
    """Load environment variables and build a :class:`Config` instance.

    A ``.env`` file in the working directory is honoured. Unknown page
    formats or orientations fall back to A4 portrait.
    """
    load_dotenv(find_dotenv(usecwd=True))

    page_format = os.getenv("CEP_PAGE_FORMAT", "a4").lower()
    if page_format not in PAGE_FORMATS:
        page_format = "a4"
    orientation = os.getenv("CEP_PAGE_ORIENTATION", "portrait").lower()
    if orientation not in ("portrait", "landscape"):
        orientation = "portrait"

    page = PageDescriptor(
        orientation=orientation,  # type: ignore[arg-type]
        unit="mm",
        format=page_format,
        margins=Margins(
            top=_margin("TOP"),
            right=_margin("RIGHT"),
            bottom=_margin("BOTTOM"),
            left=_margin("LEFT"),
        ),
    )

    return Config(
        api_url=os.getenv("CEP_API_URL", DEFAULT_API_URL),
        req_timeout=float(os.getenv("CEP_REQ_TIMEOUT", "10")),
        max_retries=int(os.getenv("CEP_MAX_RETRIES", "3")),
        backoff_factor=float(os.getenv("CEP_BACKOFF_FACTOR", "2.0")),
        http_max=int(os.getenv("CEP_HTTP_MAX", "10")),

        cache=CacheConfig(ttl_seconds=float(os.getenv("CEP_CACHE_TTL", "300"))),
        range_limit=max(1, int(os.getenv("CEP_RANGE_LIMIT", "10"))),

        page=page,
        out_dir=Path(os.getenv("CEP_OUT_DIR", ".")),
    )
