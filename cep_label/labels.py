"""Assemble label parties from user input and hand the layout to a backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from cep_label.errors import CepLabelError, LabelDataError
from cep_label.layout import layout_label
from cep_label.models import LabelParty, PageDescriptor
from cep_label.normalization import clean_text, is_valid_code
from cep_label.rendering.base import RenderBackend
from cep_label.resolver import AddressResolver, address_from_form

logger = logging.getLogger(__name__)

# Address fields copied from a lookup into a form the user left blank.
AUTOCOMPLETE_FIELDS = ("street", "complement", "neighborhood", "city", "region")


@dataclass(slots=True)
class PartyForm:
    """Raw, possibly partial, user input for one label party."""
    name: Optional[str] = None
    postal_code: Optional[str] = None
    street: Optional[str] = None
    number: Optional[str] = None
    complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None


async def build_party(
    form: PartyForm, resolver: Optional[AddressResolver] = None
) -> LabelParty:
    """Normalize ``form`` into a :class:`LabelParty`.

    With a resolver and a valid postal code, blank address fields are filled
    from the registry. Fields the user typed are never overwritten, and a
    failed lookup leaves the form as it was.
    """
    address = address_from_form(
        postal_code=form.postal_code,
        street=form.street,
        complement=form.complement,
        neighborhood=form.neighborhood,
        city=form.city,
        region=form.region,
    )

    if resolver is not None and is_valid_code(address.postal_code):
        try:
            found = await resolver.resolve_by_code(address.postal_code)
        except CepLabelError as exc:
            logger.warning("Could not auto-complete %s: %s", address.postal_code, exc)
        else:
            filled = {
                f: getattr(found, f) for f in AUTOCOMPLETE_FIELDS
                if not getattr(address, f)
            }
            address = replace(address, **filled)

    return LabelParty.from_address(
        address, name=clean_text(form.name), number=clean_text(form.number))


def label_filename(now: Optional[datetime] = None, extension: str = "pdf") -> str:
    """``rotulo-<epoch milliseconds>.<extension>``"""
    now = now or datetime.now()
    return f"rotulo-{round(now.timestamp() * 1000)}.{extension}"


def render_label(
    sender: LabelParty,
    recipient: LabelParty,
    backend: RenderBackend,
    page: Optional[PageDescriptor] = None,
    *,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """Lay out a label and render it with ``backend``.

    Raises
    ------
    LabelDataError
        Sender or recipient has no name.
    """
    missing = [role for role, party in (("sender", sender), ("recipient", recipient))
               if not party.name]
    if missing:
        raise LabelDataError(
            f"Name is required for: {', '.join(missing)}")

    page = page or PageDescriptor()
    instructions = layout_label(sender, recipient, page, generated_at=generated_at)
    return backend.render(instructions, page)
