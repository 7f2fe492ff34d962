"""Thin wrapper around PyMuPDF used by every tool backend.

Page indices at this layer are 0-based, as in PyMuPDF.
"""

import logging
from typing import List

import pymupdf

logger = logging.getLogger(__name__)


def open_pdf(data: bytes) -> pymupdf.Document:
    """
    Load a PDF from raw bytes.

    Raises:
        ValueError: If the data is not a readable PDF or is password protected
    """
    try:
        doc = pymupdf.open(stream=data, filetype="pdf")
    except Exception:
        raise ValueError("Invalid or corrupted PDF file")

    if doc.needs_pass:
        doc.close()
        raise ValueError("Password protected PDF files are not supported")

    if doc.page_count == 0:
        doc.close()
        raise ValueError("PDF file has no pages")

    return doc


def page_count(data: bytes) -> int:
    doc = open_pdf(data)
    try:
        return doc.page_count
    finally:
        doc.close()


def copy_pages(source: pymupdf.Document, indices: List[int]) -> pymupdf.Document:
    """Copy the given pages, in the given order, into a new document."""
    target = pymupdf.open()
    for index in indices:
        target.insert_pdf(source, from_page=index, to_page=index)
    return target


def save_pdf(doc: pymupdf.Document, garbage: int = 3, **options) -> bytes:
    """Serialize a document, removing unused objects and compressing streams."""
    return doc.tobytes(garbage=garbage, deflate=True, **options)
