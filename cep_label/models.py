from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from cep_label.normalization import format_code

# Raw registry payload, keyed by ViaCEP wire names (cep, logradouro, ...).
RawRecord = Mapping[str, Any]

# -----------------------------
# Addresses
# -----------------------------


@dataclass(frozen=True, slots=True)
class Address:
    """
    Canonical address.

    • ``postal_code`` is the unformatted 8-digit code ("" when unknown).
    • Free-text fields are title-cased; ``region`` is the upper-cased UF.
    • Missing upstream fields are "" and never ``None``.
    """
    postal_code: str = ""
    street: str = ""
    complement: str = ""
    neighborhood: str = ""
    city: str = ""
    region: str = ""
    region_numeric_id: str = ""
    area_code: str = ""
    financial_region_id: str = ""
    state_tax_id: str = ""

    @property
    def display_code(self) -> str:
        """Postal code in ``DDDDD-DDD`` form."""
        return format_code(self.postal_code)

    def to_dict(self) -> Dict[str, str]:
        d = asdict(self)
        d["display_code"] = self.display_code
        return d


@dataclass(slots=True)
class LabelParty:
    """One sender or recipient block on a label."""
    name: str = ""
    postal_code: str = ""
    street: str = ""
    number: str = ""
    complement: str = ""
    neighborhood: str = ""
    city: str = ""
    region: str = ""

    @classmethod
    def from_address(cls, address: Address, name: str = "", number: str = "") -> "LabelParty":
        return cls(
            name=name,
            postal_code=address.postal_code,
            street=address.street,
            number=number,
            complement=address.complement,
            neighborhood=address.neighborhood,
            city=address.city,
            region=address.region,
        )


@dataclass(frozen=True, slots=True)
class RangeOutcome:
    """Result of looking up a single code inside a range lookup."""
    code: str
    address: Optional[Address] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.address is not None


# -----------------------------
# Page description
# -----------------------------

# Portrait sizes in millimetres.
PAGE_FORMATS: Dict[str, Tuple[float, float]] = {
    "a4": (210.0, 297.0),
    "a5": (148.0, 210.0),
    "letter": (215.9, 279.4),
}


@dataclass(frozen=True, slots=True)
class Margins:
    top: float = 20.0
    right: float = 20.0
    bottom: float = 20.0
    left: float = 20.0


@dataclass(frozen=True, slots=True)
class PageDescriptor:
    """Page handed to the layout engine and the rendering backend."""
    orientation: Literal["portrait", "landscape"] = "portrait"
    unit: Literal["mm"] = "mm"
    format: str = "a4"
    margins: Margins = field(default_factory=Margins)

    @property
    def size(self) -> Tuple[float, float]:
        try:
            width, height = PAGE_FORMATS[self.format.lower()]
        except KeyError:
            raise ValueError(f"Unknown page format: {self.format!r}") from None
        if self.orientation == "landscape":
            return height, width
        return width, height

    @property
    def width(self) -> float:
        return self.size[0]

    @property
    def height(self) -> float:
        return self.size[1]

    @property
    def content_width(self) -> float:
        return self.width - self.margins.left - self.margins.right


# -----------------------------
# Draw instructions
# -----------------------------


@dataclass(frozen=True, slots=True)
class DrawRect:
    x: float
    y: float
    width: float
    height: float
    line_width: float = 0.5
    kind: Literal["draw_rect"] = "draw_rect"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float
    kind: Literal["fill_rect"] = "fill_rect"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SetColor:
    """Select the colour used by subsequent stroke, fill or text operations."""
    target: Literal["draw", "fill", "text"]
    color: str
    kind: Literal["set_color"] = "set_color"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SetFont:
    family: str = "helvetica"
    style: Literal["normal", "bold"] = "normal"
    size: float = 10.0
    kind: Literal["set_font"] = "set_font"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DrawText:
    """Text whose baseline starts at (x, y)."""
    text: str
    x: float
    y: float
    kind: Literal["draw_text"] = "draw_text"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


DrawInstruction = Union[DrawRect, FillRect, SetColor, SetFont, DrawText]
