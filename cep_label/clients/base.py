from __future__ import annotations

from typing import List, Protocol, Union, runtime_checkable

from cep_label.models import RawRecord


@runtime_checkable
class AddressLookupService(Protocol):
    """
    Minimal protocol for a postal-address registry.

    Implementations raise :class:`~cep_label.errors.NotFoundError` for a clean
    negative answer and :class:`~cep_label.errors.LookupConnectionError` for
    transport faults. Any retrying happens inside the implementation.
    """

    async def lookup_by_code(self, code: str) -> RawRecord: ...

    async def lookup_by_street(
        self, region: str, city: str, street: str
    ) -> Union[RawRecord, List[RawRecord]]: ...
