from .base import RenderBackend, save_document
from .jsonl import JsonLinesBackend
from .pdf import PdfBackend

__all__ = ["RenderBackend", "save_document", "JsonLinesBackend", "PdfBackend"]
