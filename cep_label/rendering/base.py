from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

import aiofiles

from cep_label.models import DrawInstruction, PageDescriptor

logger = logging.getLogger(__name__)


@runtime_checkable
class RenderBackend(Protocol):
    """
    Executes draw instructions, in order, on one page and serializes it.

    Implementations must not reorder or skip instructions.
    """

    extension: str

    def render(
        self, instructions: Sequence[DrawInstruction], page: PageDescriptor
    ) -> bytes: ...


async def save_document(path: Path, data: bytes) -> Path:
    """Write a rendered document to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "wb") as fd:
        await fd.write(data)
    logger.info("Wrote %s (%d bytes)", path, len(data))
    return path
