"""PDF backend built on the reportlab canvas."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, Sequence, Tuple

from reportlab.lib.colors import Color, HexColor, black
from reportlab.lib.units import mm
from reportlab.pdfgen.canvas import Canvas

from cep_label.models import (
    DrawInstruction,
    DrawRect,
    DrawText,
    FillRect,
    PageDescriptor,
    SetColor,
    SetFont,
)

logger = logging.getLogger(__name__)

# (family, style) -> standard PDF font
FONTS: Dict[Tuple[str, str], str] = {
    ("helvetica", "normal"): "Helvetica",
    ("helvetica", "bold"): "Helvetica-Bold",
    ("times", "normal"): "Times-Roman",
    ("times", "bold"): "Times-Bold",
    ("courier", "normal"): "Courier",
    ("courier", "bold"): "Courier-Bold",
}


@dataclass
class _PenState:
    # reportlab paints text with the fill colour, so both are tracked
    fill: Color = field(default_factory=lambda: black)
    text: Color = field(default_factory=lambda: black)


class PdfBackend:
    """
    Renders instructions on a single PDF page.

    Instruction geometry is in millimetres from the top-left corner; the
    canvas works in points from the bottom-left, so ``y`` is flipped.
    """

    extension = "pdf"

    def __init__(self, title: str = "Rótulo de endereçamento") -> None:
        self.title = title

    def render(
        self, instructions: Sequence[DrawInstruction], page: PageDescriptor
    ) -> bytes:
        buf = BytesIO()
        page_h = page.height * mm
        canvas = Canvas(buf, pagesize=(page.width * mm, page_h))
        canvas.setTitle(self.title)
        canvas.setFont(FONTS[("helvetica", "normal")], 10)
        state = _PenState()

        for ins in instructions:
            self._execute(canvas, state, ins, page_h)

        canvas.showPage()
        canvas.save()
        data = buf.getvalue()
        logger.debug("Rendered %d instructions into %d PDF bytes",
                     len(instructions), len(data))
        return data

    @staticmethod
    def _execute(
        canvas: Canvas, state: _PenState, ins: DrawInstruction, page_h: float
    ) -> None:
        if isinstance(ins, SetColor):
            color = HexColor(ins.color)
            if ins.target == "draw":
                canvas.setStrokeColor(color)
            elif ins.target == "fill":
                state.fill = color
            else:
                state.text = color
        elif isinstance(ins, DrawRect):
            canvas.setLineWidth(ins.line_width * mm)
            canvas.rect(ins.x * mm, page_h - (ins.y + ins.height) * mm,
                        ins.width * mm, ins.height * mm, stroke=1, fill=0)
        elif isinstance(ins, FillRect):
            canvas.setFillColor(state.fill)
            canvas.rect(ins.x * mm, page_h - (ins.y + ins.height) * mm,
                        ins.width * mm, ins.height * mm, stroke=0, fill=1)
        elif isinstance(ins, SetFont):
            font = FONTS.get((ins.family.lower(), ins.style), FONTS[("helvetica", ins.style)])
            canvas.setFont(font, ins.size)
        elif isinstance(ins, DrawText):
            canvas.setFillColor(state.text)
            canvas.drawString(ins.x * mm, page_h - ins.y * mm, ins.text)
        else:
            raise TypeError(f"Unsupported draw instruction: {ins!r}")
