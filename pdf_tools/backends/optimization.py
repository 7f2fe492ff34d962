"""PDF size optimization backend using PyMuPDF."""

import logging
from typing import Dict, Any, List, Tuple

from .base import Backend
from .document_engine import open_pdf, save_pdf

logger = logging.getLogger(__name__)

# Save options per requested output quality; lower quality compresses harder
QUALITY_SAVE_OPTIONS = {
    "low": {"garbage": 4, "clean": True, "deflate_images": True, "deflate_fonts": True},
    "medium": {"garbage": 3, "deflate_images": True, "deflate_fonts": True},
    "high": {"garbage": 1},
}


class OptimizationBackend(Backend):
    """Backend for reducing PDF file size."""

    SUPPORTED_OPERATIONS = ["compress_pdf"]

    def process(
        self,
        documents: List[bytes],
        operation: str,
        options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        self._check_operation(operation)
        data = self._single_document(documents)

        quality = options.get("quality", "medium")
        if quality not in QUALITY_SAVE_OPTIONS:
            raise ValueError(f"Invalid quality: {quality}")

        doc = open_pdf(data)
        try:
            output_data = save_pdf(doc, **QUALITY_SAVE_OPTIONS[quality])
        finally:
            doc.close()

        original_size = len(data)
        compressed_size = len(output_data)
        savings = (1 - compressed_size / original_size) * 100

        logger.info(
            f"Compressed ({quality}): {original_size} -> {compressed_size} bytes "
            f"({savings:.1f}% saved)"
        )

        return output_data, "pdf", {
            "quality": quality,
            "original_size": str(original_size),
            "compressed_size": str(compressed_size),
            "savings_percent": f"{savings:.1f}",
        }
