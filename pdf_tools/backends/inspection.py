"""Document inspection backend using PyMuPDF."""

import json
import logging
from typing import Dict, Any, List, Tuple

from .base import Backend
from .document_engine import open_pdf

logger = logging.getLogger(__name__)


class InspectionBackend(Backend):
    """Backend for reporting page count and page geometry of a PDF."""

    SUPPORTED_OPERATIONS = ["document_info"]

    def process(
        self,
        documents: List[bytes],
        operation: str,
        options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        self._check_operation(operation)
        data = self._single_document(documents)

        doc = open_pdf(data)
        try:
            pages = []
            for page in doc:
                pages.append({
                    "page": page.number + 1,
                    "width": round(page.rect.width, 2),
                    "height": round(page.rect.height, 2),
                    "rotation": page.rotation,
                })
            document_metadata = {
                key: value for key, value in (doc.metadata or {}).items() if value
            }
        finally:
            doc.close()

        result = {
            "total_pages": len(pages),
            "size_bytes": len(data),
            "pages": pages,
            "metadata": document_metadata,
        }

        output_data = json.dumps(result, indent=2).encode("utf-8")
        metadata = {
            "total_pages": str(len(pages)),
        }

        return output_data, "json", metadata
