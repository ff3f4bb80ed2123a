"""Output generation for schedule views (text, PDF)."""

from staffcal.output.pdf_generator import PDFGenerator
from staffcal.output.text_generator import TextGenerator

__all__ = [
    "PDFGenerator",
    "TextGenerator",
]
