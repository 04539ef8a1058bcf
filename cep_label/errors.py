"""Error kinds surfaced by lookups, normalization and label rendering.

Callers tell the kinds apart by class:

* :class:`InvalidCodeError`, :class:`MissingParameterError` (and its
  :class:`InvalidRequestError` for requests the registry rejects) and
  :class:`InvalidRangeError` are input errors the caller can fix.
* :class:`NotFoundError` is a clean negative lookup, not a fault.
* :class:`LookupConnectionError` is a transport or timeout fault.
"""

from __future__ import annotations


class CepLabelError(Exception):
    """Base class for every error raised by :mod:`cep_label`."""


class InvalidCodeError(CepLabelError, ValueError):
    """A postal code does not have exactly 8 digits."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid postal code: {value!r}")


class MissingParameterError(CepLabelError, ValueError):
    """A required lookup parameter is empty."""


class LabelDataError(MissingParameterError):
    """Label parties are missing the data needed to lay out a label."""


class InvalidRequestError(MissingParameterError):
    """The registry rejected the request parameters (HTTP 4xx)."""


class InvalidRangeError(CepLabelError, ValueError):
    """A postal-code range has an invalid bound or is reversed."""


class NotFoundError(CepLabelError, LookupError):
    """The registry has no address for the requested postal code."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Postal code not found: {code}")


class LookupConnectionError(CepLabelError, ConnectionError):
    """The lookup service could not be reached or did not answer in time."""
