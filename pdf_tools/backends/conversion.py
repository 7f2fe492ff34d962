"""Conversion backend: images to PDF and PDF pages to images."""

import logging
from typing import Dict, Any, List, Optional, Tuple

import pymupdf

from .base import Backend
from .document_engine import open_pdf, save_pdf
from ..config import get_config
from ..converters.archive_builder import ArchiveBuilder
from ..utils.page_filter import parse_page_range, to_page_indices

logger = logging.getLogger(__name__)

IMAGE_FORMATS = ("png", "jpg")

# image_profile reports JPEG as "jpeg"
_PROFILE_FORMATS = {"png": "png", "jpeg": "jpg", "jpg": "jpg"}


def read_image_profile(data: bytes) -> Optional[Dict[str, Any]]:
    """
    Identify a PNG or JPEG image and read its pixel size.

    Returns:
        ``{"format", "width", "height"}`` with format "png" or "jpg", or None
        for anything PyMuPDF cannot identify as one of those.
    """
    try:
        profile = pymupdf.image_profile(data)
    except Exception as e:
        logger.debug(f"Could not read image profile: {e}")
        return None

    if not profile:
        return None
    image_format = _PROFILE_FORMATS.get(str(profile.get("ext", "")).lower())
    if image_format is None:
        return None
    return {"format": image_format, "width": profile["width"], "height": profile["height"]}


def detect_image_type(data: bytes) -> Optional[str]:
    """Return "png" or "jpg" for a supported image, or None."""
    profile = read_image_profile(data)
    return profile["format"] if profile else None


class ConversionBackend(Backend):
    """Backend for converting between images and PDF pages."""

    SUPPORTED_OPERATIONS = ["images_to_pdf", "pdf_to_images"]

    def __init__(self):
        self.archive_builder = ArchiveBuilder()

    def process(
        self,
        documents: List[bytes],
        operation: str,
        options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        self._check_operation(operation)

        if operation == "images_to_pdf":
            return self._images_to_pdf(documents)
        return self._pdf_to_images(self._single_document(documents), options)

    def _images_to_pdf(self, documents: List[bytes]) -> Tuple[bytes, str, Dict[str, Any]]:
        if not documents:
            raise ValueError("Please select at least one image")

        doc = pymupdf.open()
        skipped = 0
        try:
            for position, data in enumerate(documents, start=1):
                profile = read_image_profile(data)
                if profile is None:
                    logger.warning(f"Skipping file {position}: not a PNG or JPEG image")
                    skipped += 1
                    continue

                page = doc.new_page(width=profile["width"], height=profile["height"])
                page.insert_image(page.rect, stream=data)

            if doc.page_count == 0:
                raise ValueError("No supported images (PNG or JPEG) to convert")

            page_total = doc.page_count
            output_data = save_pdf(doc)
        finally:
            doc.close()

        return output_data, "pdf", {
            "images_converted": str(page_total),
            "images_skipped": str(skipped),
        }

    def _pdf_to_images(
        self, data: bytes, options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        image_format = options.get("format", "png").lower()
        if image_format == "jpeg":
            image_format = "jpg"
        if image_format not in IMAGE_FORMATS:
            raise ValueError(f"Invalid image format: {image_format}")

        config = get_config()
        scale_value = options.get("scale", "")
        try:
            scale = float(scale_value) if scale_value else config.processing.render_scale
        except ValueError:
            raise ValueError(f"Invalid render scale: {scale_value}")
        if scale <= 0:
            raise ValueError("Render scale must be positive")

        doc = open_pdf(data)
        try:
            total_pages = doc.page_count
            page_range = options.get("pages", "")
            if page_range:
                pages = parse_page_range(page_range, total_pages)
                if not pages:
                    raise ValueError("No pages selected. Please specify which pages to convert.")
            else:
                pages = list(range(1, total_pages + 1))

            matrix = pymupdf.Matrix(scale, scale)
            files = []
            for page_num, index in zip(pages, to_page_indices(pages)):
                pixmap = doc[index].get_pixmap(matrix=matrix)
                if image_format == "jpg":
                    image = pixmap.tobytes("jpg", jpg_quality=config.processing.jpeg_quality)
                else:
                    image = pixmap.tobytes("png")
                files.append((f"page-{page_num}.{image_format}", image))
        finally:
            doc.close()

        logger.info(f"Rendered {len(files)} of {total_pages} pages as {image_format}")
        output_data = self.archive_builder.assemble(files)
        return output_data, "zip", {
            "total_pages": str(total_pages),
            "images_created": str(len(files)),
            "format": image_format,
        }
