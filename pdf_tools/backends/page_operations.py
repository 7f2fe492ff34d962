"""Page-level operations: extract, remove, rearrange, split, merge, rotate."""

import logging
from typing import Dict, Any, List, Tuple

from .base import Backend
from .document_engine import open_pdf, copy_pages, save_pdf
from ..converters.archive_builder import ArchiveBuilder
from ..utils.page_filter import (
    OperationMode,
    parse_page_groups,
    parse_page_range,
    resolve_for_operation,
    selection_error,
    to_page_indices,
)
from ..utils.page_order import parse_page_order

logger = logging.getLogger(__name__)

VALID_ANGLES = (90, 180, 270)


class PageOperationsBackend(Backend):
    """Backend for copying, reordering and rotating PDF pages."""

    SUPPORTED_OPERATIONS = [
        "extract_pages",
        "remove_pages",
        "rearrange_pages",
        "split_pdf",
        "merge_pdf",
        "rotate_pdf",
    ]

    def __init__(self):
        self.archive_builder = ArchiveBuilder()

    def process(
        self,
        documents: List[bytes],
        operation: str,
        options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        self._check_operation(operation)

        if operation == "merge_pdf":
            return self._merge(documents)

        data = self._single_document(documents)
        if operation == "extract_pages":
            return self._select(data, options, OperationMode.EXTRACT)
        if operation == "remove_pages":
            return self._select(data, options, OperationMode.REMOVE)
        if operation == "rearrange_pages":
            return self._rearrange(data, options)
        if operation == "split_pdf":
            return self._split(data, options)
        return self._rotate(data, options)

    def _select(
        self, data: bytes, options: Dict[str, str], mode: OperationMode
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        """Keep the selected pages (extract) or all the others (remove)."""
        doc = open_pdf(data)
        try:
            total_pages = doc.page_count
            resolution = resolve_for_operation(options.get("pages", ""), total_pages, mode)

            error = selection_error(resolution)
            if error:
                raise ValueError(error)

            logger.info(
                f"{mode.value}: total_pages={total_pages}, "
                f"keeping={len(resolution.to_keep)}"
            )
            result = copy_pages(doc, to_page_indices(resolution.to_keep))
            try:
                output_data = save_pdf(result)
            finally:
                result.close()
        finally:
            doc.close()

        metadata = {
            "total_pages": str(total_pages),
            "pages_kept": str(len(resolution.to_keep)),
        }
        if mode is OperationMode.REMOVE:
            metadata["pages_removed"] = str(resolution.to_remove_count)
        else:
            metadata["pages_extracted"] = str(resolution.to_remove_count)

        return output_data, "pdf", metadata

    def _rearrange(
        self, data: bytes, options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        doc = open_pdf(data)
        try:
            total_pages = doc.page_count
            order = parse_page_order(options.get("order", ""), total_pages)
            result = copy_pages(doc, to_page_indices(order))
            try:
                output_data = save_pdf(result)
            finally:
                result.close()
        finally:
            doc.close()

        return output_data, "pdf", {
            "total_pages": str(total_pages),
            "pages_kept": str(len(order)),
        }

    def _split(
        self, data: bytes, options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        mode = options.get("mode", "single")
        if mode not in ("single", "range"):
            raise ValueError(f"Invalid split mode: {mode}")

        doc = open_pdf(data)
        try:
            total_pages = doc.page_count
            if mode == "single":
                groups = [[page] for page in range(1, total_pages + 1)]
                name_format = "page-{}.pdf"
            else:
                groups = parse_page_groups(options.get("pages", ""), total_pages)
                if not groups:
                    raise ValueError("No valid page ranges specified")
                name_format = "split-{}.pdf"

            files = []
            for number, group in enumerate(groups, start=1):
                # Single mode numbers files by page, range mode by group
                label = group[0] if mode == "single" else number
                part = copy_pages(doc, to_page_indices(group))
                try:
                    files.append((name_format.format(label), save_pdf(part)))
                finally:
                    part.close()
        finally:
            doc.close()

        logger.info(f"Split ({mode}) into {len(files)} files")
        output_data = self.archive_builder.assemble(files)
        return output_data, "zip", {
            "total_pages": str(total_pages),
            "files_created": str(len(files)),
        }

    def _merge(self, documents: List[bytes]) -> Tuple[bytes, str, Dict[str, Any]]:
        if len(documents) < 2:
            raise ValueError("Please select at least 2 PDF files to merge")

        sources = []
        try:
            for data in documents:
                sources.append(open_pdf(data))

            merged = copy_pages(sources[0], list(range(sources[0].page_count)))
            try:
                for source in sources[1:]:
                    merged.insert_pdf(source)
                total_pages = merged.page_count
                output_data = save_pdf(merged)
            finally:
                merged.close()
        finally:
            for source in sources:
                source.close()

        logger.info(f"Merged {len(documents)} files into {total_pages} pages")
        return output_data, "pdf", {
            "files_merged": str(len(documents)),
            "total_pages": str(total_pages),
        }

    def _rotate(
        self, data: bytes, options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        try:
            angle = int(options.get("angle", "90"))
        except ValueError:
            raise ValueError(f"Invalid rotation angle: {options.get('angle')}")
        if angle not in VALID_ANGLES:
            raise ValueError(f"Rotation angle must be one of {VALID_ANGLES}")

        doc = open_pdf(data)
        try:
            total_pages = doc.page_count
            page_range = options.get("pages", "")
            if page_range:
                pages = parse_page_range(page_range, total_pages)
                if not pages:
                    raise ValueError("No pages selected. Please specify which pages to rotate.")
            else:
                pages = list(range(1, total_pages + 1))

            for index in to_page_indices(pages):
                doc[index].set_rotation(angle)

            output_data = save_pdf(doc)
        finally:
            doc.close()

        return output_data, "pdf", {
            "angle": str(angle),
            "pages_rotated": str(len(pages)),
        }
