"""Base backend interface for PDF tool operations."""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Tuple


class Backend(ABC):
    """Abstract base class for PDF tool backends."""

    SUPPORTED_OPERATIONS: List[str] = []

    def supports(self, operation: str, format: str = "") -> bool:
        """
        Check if this backend can handle the specified operation.

        Args:
            operation: The operation name (e.g., "extract_pages", "merge_pdf")
            format: Optional format hint (e.g., "pdf")

        Returns:
            True if this backend supports the operation, False otherwise
        """
        return operation in self.SUPPORTED_OPERATIONS

    @abstractmethod
    def process(
        self,
        documents: List[bytes],
        operation: str,
        options: Dict[str, str]
    ) -> Tuple[bytes, str, Dict[str, Any]]:
        """
        Run the specified operation on the uploaded files.

        Args:
            documents: Raw bytes of each uploaded file, in upload order
            operation: Operation to perform
            options: Operation-specific options

        Returns:
            Tuple of (output_data, format, metadata)
            - output_data: Output file bytes
            - format: Output format (e.g., "pdf", "zip", "json")
            - metadata: Additional information about the processing

        Raises:
            ValueError: If operation is not supported or invalid options
            RuntimeError: If processing fails
        """
        pass

    def _check_operation(self, operation: str) -> None:
        if not self.supports(operation):
            raise ValueError(f"Operation '{operation}' not supported")

    @staticmethod
    def _single_document(documents: List[bytes]) -> bytes:
        if len(documents) != 1:
            raise ValueError(f"Expected exactly one file, got {len(documents)}")
        return documents[0]
