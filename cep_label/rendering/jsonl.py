"""Instruction dump backend: one JSON object per line."""

from __future__ import annotations

from dataclasses import asdict
from typing import Sequence

import orjson

from cep_label.models import DrawInstruction, PageDescriptor


class JsonLinesBackend:
    """
    Serializes the page descriptor followed by every instruction.

    Handy for snapshotting layouts and for feeding a renderer in another
    process.
    """

    extension = "jsonl"

    def render(
        self, instructions: Sequence[DrawInstruction], page: PageDescriptor
    ) -> bytes:
        header = {
            "page": {
                **asdict(page),
                "width": page.width,
                "height": page.height,
            }
        }
        lines = [orjson.dumps(header)]
        lines.extend(orjson.dumps(ins.as_dict()) for ins in instructions)
        return b"\n".join(lines) + b"\n"
