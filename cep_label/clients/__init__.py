from .base import AddressLookupService
from .viacep import ViaCEPAsyncClient

__all__ = ["AddressLookupService", "ViaCEPAsyncClient"]
