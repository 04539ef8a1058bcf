"""Deterministic layout of a two-block shipping label.

Coordinates are millimetres with the origin at the top-left corner of the
page; text ``y`` values are baselines.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from cep_label.constants import (
    BANNER_TEXT_COLOR,
    BORDER_COLOR,
    PRIMARY_COLOR,
    RECIPIENT_TITLE,
    SENDER_TITLE,
    TEXT_COLOR,
)
from cep_label.models import (
    DrawInstruction,
    DrawRect,
    DrawText,
    FillRect,
    LabelParty,
    PageDescriptor,
    SetColor,
    SetFont,
)
from cep_label.normalization import format_code

logger = logging.getLogger(__name__)

FONT_FAMILY = "helvetica"

BLOCK_TOP = 50.0
BLOCK_HEIGHT = 60.0
GUTTER = 10.0
BORDER_WIDTH = 0.5
BANNER_HEIGHT = 15.0
TITLE_OFFSET_Y = 10.0
TITLE_FONT_SIZE = 12.0
TEXT_INSET = 5.0
FIRST_LINE_OFFSET = 25.0
LINE_PITCH = 5.0
BODY_FONT_SIZE = 10.0
FOOTER_FONT_SIZE = 8.0
FOOTER_OFFSET = 10.0


def street_line(street: str, number: str) -> str:
    """``"<street>, <number>"``; the number part is dropped when empty."""
    return f"{street}, {number}" if number else street


def city_line(city: str, region: str) -> str:
    """``"<city> - <region>"``; the region part is dropped when empty."""
    return f"{city} - {region}" if region else city


def party_lines(party: LabelParty) -> List[str]:
    """Body lines of one block after the name, in print order.

    Empty lines are left out so the block stays compact.
    """
    candidates = [
        street_line(party.street, party.number),
        party.complement,
        party.neighborhood,
        city_line(party.city, party.region),
        f"CEP: {format_code(party.postal_code)}" if party.postal_code else "",
    ]
    return [line for line in candidates if line]


def footer_text(generated_at: datetime) -> str:
    return f"Gerado em: {generated_at.strftime('%d/%m/%Y %H:%M:%S')}"


def _layout_block(
    x: float, y: float, width: float, title: str, party: LabelParty
) -> List[DrawInstruction]:
    out: List[DrawInstruction] = [
        # border
        SetColor("draw", BORDER_COLOR),
        DrawRect(x, y, width, BLOCK_HEIGHT, line_width=BORDER_WIDTH),
        # title banner
        SetColor("fill", PRIMARY_COLOR),
        FillRect(x, y, width, BANNER_HEIGHT),
        SetColor("text", BANNER_TEXT_COLOR),
        SetFont(FONT_FAMILY, "bold", TITLE_FONT_SIZE),
        DrawText(title, x + TEXT_INSET, y + TITLE_OFFSET_Y),
        # body
        SetColor("text", TEXT_COLOR),
        SetFont(FONT_FAMILY, "normal", BODY_FONT_SIZE),
    ]

    text_x = x + TEXT_INSET
    text_y = y + FIRST_LINE_OFFSET

    if party.name:
        out.append(SetFont(FONT_FAMILY, "bold", BODY_FONT_SIZE))
        out.append(DrawText(party.name, text_x, text_y))
        out.append(SetFont(FONT_FAMILY, "normal", BODY_FONT_SIZE))
        text_y += LINE_PITCH

    for line in party_lines(party):
        out.append(DrawText(line, text_x, text_y))
        text_y += LINE_PITCH

    return out


def layout_label(
    sender: LabelParty,
    recipient: LabelParty,
    page: Optional[PageDescriptor] = None,
    *,
    generated_at: Optional[datetime] = None,
) -> List[DrawInstruction]:
    """Return the ordered draw instructions for a sender/recipient label.

    Parameters
    ----------
    sender, recipient:
        Already validated parties; the engine does not check them.
    page:
        Page size and margins, A4 portrait with 20 mm margins by default.
    generated_at:
        Timestamp printed in the footer; the local current time if omitted.
    """
    page = page or PageDescriptor()
    generated_at = generated_at or datetime.now()

    margins = page.margins
    block_width = page.content_width / 2 - GUTTER / 2

    instructions: List[DrawInstruction] = []
    instructions += _layout_block(
        margins.left, BLOCK_TOP, block_width, SENDER_TITLE, sender)
    instructions += _layout_block(
        margins.left + block_width + GUTTER, BLOCK_TOP, block_width,
        RECIPIENT_TITLE, recipient)

    instructions += [
        SetColor("text", TEXT_COLOR),
        SetFont(FONT_FAMILY, "normal", FOOTER_FONT_SIZE),
        DrawText(footer_text(generated_at), margins.left, page.height - FOOTER_OFFSET),
    ]
    logger.debug("Laid out label with %d instructions", len(instructions))
    return instructions
