"""Stamping backend: watermarks, page numbers and protection markings."""

import logging
from datetime import date
from typing import Dict, Any, List, Tuple

import pymupdf

from .base import Backend
from .document_engine import open_pdf, save_pdf

logger = logging.getLogger(__name__)

FONT_NAME = "helv"  # Helvetica
PAGE_NUMBER_MARGIN = 30

PAGE_NUMBER_POSITIONS = (
    "bottom-center",
    "bottom-left",
    "bottom-right",
    "top-center",
    "top-left",
    "top-right",
)
PAGE_NUMBER_FORMATS = ("number", "page-of-total", "number-with-text")

# Keys pymupdf accepts back in set_metadata
_METADATA_KEYS = (
    "title", "author", "subject", "keywords",
    "creator", "producer", "creationDate", "modDate",
)


def format_page_number(page_num: int, total_pages: int, fmt: str, prefix: str) -> str:
    if fmt == "page-of-total":
        return f"{page_num} of {total_pages}"
    if fmt == "number-with-text":
        return f"{prefix}{page_num}"
    return f"{page_num}"


def page_number_origin(
    position: str,
    page_rect: pymupdf.Rect,
    text_width: float,
    font_size: float,
) -> pymupdf.Point:
    """
    Baseline start point for a page number label.

    Coordinates are PyMuPDF's: origin at the top-left, y growing downwards.
    """
    vertical, horizontal = position.split("-")

    if horizontal == "left":
        x = page_rect.x0 + PAGE_NUMBER_MARGIN
    elif horizontal == "right":
        x = page_rect.x1 - text_width - PAGE_NUMBER_MARGIN
    else:
        x = page_rect.x0 + (page_rect.width - text_width) / 2

    if vertical == "top":
        y = page_rect.y0 + PAGE_NUMBER_MARGIN + font_size
    else:
        y = page_rect.y1 - PAGE_NUMBER_MARGIN

    return pymupdf.Point(x, y)


def _parse_float(options: Dict[str, str], key: str, default: float) -> float:
    value = options.get(key, "")
    if value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid value for {key}: {value}")


def _parse_int(options: Dict[str, str], key: str, default: int) -> int:
    value = options.get(key, "")
    if value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid value for {key}: {value}")


class StampingBackend(Backend):
    """Backend for drawing text onto every page of a PDF."""

    SUPPORTED_OPERATIONS = ["add_watermark", "add_page_numbers", "protect_pdf"]

    def process(
        self,
        documents: List[bytes],
        operation: str,
        options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        self._check_operation(operation)
        data = self._single_document(documents)

        if operation == "add_watermark":
            stamp = self._watermark
        elif operation == "add_page_numbers":
            stamp = self._page_numbers
        else:
            stamp = self._protect

        doc = open_pdf(data)
        try:
            metadata = stamp(doc, options)
            output_data = save_pdf(doc)
        finally:
            doc.close()

        return output_data, "pdf", metadata

    def _watermark(self, doc: pymupdf.Document, options: Dict[str, str]) -> Dict[str, Any]:
        text = options.get("text", "CONFIDENTIAL")
        if not text.strip():
            raise ValueError("Please enter watermark text")

        opacity = _parse_float(options, "opacity", 0.3)
        if not 0 <= opacity <= 1:
            raise ValueError("Opacity must be between 0 and 1")
        font_size = _parse_float(options, "font_size", 60)
        if font_size <= 0:
            raise ValueError("Font size must be positive")

        text_width = pymupdf.get_text_length(text, fontname=FONT_NAME, fontsize=font_size)
        grey = (0.5, 0.5, 0.5)

        for page in doc:
            rect = page.rect
            center = pymupdf.Point(rect.x0 + rect.width / 2, rect.y0 + rect.height / 2)
            origin = pymupdf.Point(center.x - text_width / 2, center.y)
            page.insert_text(
                origin,
                text,
                fontsize=font_size,
                fontname=FONT_NAME,
                color=grey,
                fill=grey,
                fill_opacity=opacity,
                stroke_opacity=opacity,
                morph=(center, pymupdf.Matrix(45)),
            )

        logger.info(f"Watermarked {doc.page_count} pages")
        return {"pages_watermarked": str(doc.page_count), "opacity": str(opacity)}

    def _page_numbers(self, doc: pymupdf.Document, options: Dict[str, str]) -> Dict[str, Any]:
        position = options.get("position", "bottom-center")
        if position not in PAGE_NUMBER_POSITIONS:
            raise ValueError(f"Invalid position: {position}")
        fmt = options.get("format", "number")
        if fmt not in PAGE_NUMBER_FORMATS:
            raise ValueError(f"Invalid page number format: {fmt}")

        prefix = options.get("prefix", "Page ")
        font_size = _parse_int(options, "font_size", 12)
        if font_size <= 0:
            raise ValueError("Font size must be positive")
        start_number = _parse_int(options, "start_number", 1)

        total_pages = doc.page_count
        for index, page in enumerate(doc):
            label = format_page_number(index + start_number, total_pages, fmt, prefix)
            text_width = pymupdf.get_text_length(label, fontname=FONT_NAME, fontsize=font_size)
            page.insert_text(
                page_number_origin(position, page.rect, text_width, font_size),
                label,
                fontsize=font_size,
                fontname=FONT_NAME,
                color=(0, 0, 0),
            )

        return {"pages_numbered": str(total_pages), "position": position}

    def _protect(self, doc: pymupdf.Document, options: Dict[str, str]) -> Dict[str, Any]:
        """Add protection markings. This does not encrypt the document."""
        text = options.get("text", "PROTECTED")
        if not text.strip():
            raise ValueError("Please enter marking text")
        title = options.get("title", "") or (doc.metadata or {}).get("title", "")

        metadata = {
            key: value for key, value in (doc.metadata or {}).items()
            if key in _METADATA_KEYS
        }
        metadata.update({
            "title": title,
            "subject": f"Protected document - Created {date.today().isoformat()}",
            "keywords": "protected, confidential",
            "producer": "PDF Tools - Protection Indicators",
            "author": "PDF Tools",
        })
        doc.set_metadata(metadata)

        font_size = 18
        red = (0.7, 0.1, 0.1)
        text_width = pymupdf.get_text_length(text, fontname=FONT_NAME, fontsize=font_size)
        for page in doc:
            rect = page.rect
            page.insert_text(
                pymupdf.Point(rect.x0 + (rect.width - text_width) / 2, rect.y0 + 30),
                text,
                fontsize=font_size,
                fontname=FONT_NAME,
                color=red,
                fill=red,
                fill_opacity=0.4,
                stroke_opacity=0.4,
            )

        return {"pages_marked": str(doc.page_count), "encrypted": "false"}
