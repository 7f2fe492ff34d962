"""Catalog of the tools offered by the service."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .preferences import UserPreferences


class ToolCategory(str, Enum):
    ALL = "all"
    FAVORITES = "favorites"
    RECENT = "recent"
    CONVERT_TO_PDF = "convert-to-pdf"
    CONVERT_FROM_PDF = "convert-from-pdf"
    EDIT_PDF = "edit-pdf"
    ORGANIZE_PDF = "organize-pdf"
    OPTIMIZE_PDF = "optimize-pdf"


CATEGORY_LABELS: Dict[ToolCategory, str] = {
    ToolCategory.ALL: "All Tools",
    ToolCategory.FAVORITES: "Favorites",
    ToolCategory.RECENT: "Recently Used",
    ToolCategory.CONVERT_TO_PDF: "Convert to PDF",
    ToolCategory.CONVERT_FROM_PDF: "Convert from PDF",
    ToolCategory.EDIT_PDF: "Edit PDF",
    ToolCategory.ORGANIZE_PDF: "Organize PDF",
    ToolCategory.OPTIMIZE_PDF: "Optimize PDF",
}


@dataclass(frozen=True)
class Tool:
    """A single-purpose tool backed by one backend operation.

    The output is named either ``output_name`` or, when that is empty,
    the input file name with ``-<output_suffix>`` before the extension.
    """
    id: str
    name: str
    description: str
    icon: str
    operation: str
    categories: Tuple[ToolCategory, ...]
    output_suffix: str = ""
    output_name: str = ""
    preset_options: Dict[str, str] = field(default_factory=dict)
    multiple_files: bool = False

    def options_for(self, options: Dict[str, str]) -> Dict[str, str]:
        """User options with this tool's presets applied on top."""
        merged = dict(options)
        merged.update(self.preset_options)
        return merged

    def output_filename(self, input_name: str = "") -> str:
        if self.output_name:
            return self.output_name
        base = input_name or "document.pdf"
        if base.lower().endswith(".pdf"):
            base = base[:-4]
        return f"{base}-{self.output_suffix}.pdf"

    def to_dict(self, favorite: bool = False) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "categories": [category.value for category in self.categories],
            "multiple_files": self.multiple_files,
            "favorite": favorite,
        }


_ORGANIZE = (ToolCategory.ALL, ToolCategory.ORGANIZE_PDF)
_EDIT = (ToolCategory.ALL, ToolCategory.EDIT_PDF)
_TO_PDF = (ToolCategory.ALL, ToolCategory.CONVERT_TO_PDF)
_FROM_PDF = (ToolCategory.ALL, ToolCategory.CONVERT_FROM_PDF)

ALL_TOOLS: List[Tool] = [
    Tool(
        id="merge-pdf",
        name="Merge PDF",
        description="Combine multiple PDF files into a single document",
        icon="FilePlus2",
        operation="merge_pdf",
        categories=_ORGANIZE,
        output_name="merged.pdf",
        multiple_files=True,
    ),
    Tool(
        id="split-pdf",
        name="Split PDF",
        description="Split PDF files into multiple documents",
        icon="FileX2",
        operation="split_pdf",
        categories=_ORGANIZE,
        output_name="split.zip",
    ),
    Tool(
        id="compress-pdf",
        name="Compress PDF",
        description="Reduce PDF file size while maintaining quality",
        icon="Minimize2",
        operation="compress_pdf",
        categories=(ToolCategory.ALL, ToolCategory.OPTIMIZE_PDF),
        output_suffix="compressed",
    ),
    Tool(
        id="images-to-pdf",
        name="Images to PDF",
        description="Convert JPG and PNG images to PDF",
        icon="Image",
        operation="images_to_pdf",
        categories=_TO_PDF,
        output_name="images.pdf",
        multiple_files=True,
    ),
    Tool(
        id="pdf-to-images",
        name="PDF to Images",
        description="Convert PDF pages to JPG or PNG images",
        icon="ImageDown",
        operation="pdf_to_images",
        categories=_FROM_PDF,
        output_name="images.zip",
    ),
    Tool(
        id="rotate-pdf",
        name="Rotate PDF Pages",
        description="Rotate pages in PDF files to correct orientation",
        icon="RotateCw",
        operation="rotate_pdf",
        categories=_ORGANIZE,
        output_suffix="rotated",
    ),
    Tool(
        id="remove-pages",
        name="Remove PDF Pages",
        description="Delete unwanted pages from PDF files",
        icon="FileX",
        operation="remove_pages",
        categories=_ORGANIZE,
        output_suffix="removed-pages",
    ),
    Tool(
        id="extract-pages",
        name="Extract PDF Pages",
        description="Extract specific pages from PDF files",
        icon="FileOutput",
        operation="extract_pages",
        categories=_ORGANIZE,
        output_suffix="extracted",
    ),
    Tool(
        id="rearrange-pages",
        name="Rearrange PDF Pages",
        description="Reorder pages inside PDF files",
        icon="ArrowUpDown",
        operation="rearrange_pages",
        categories=_ORGANIZE,
        output_suffix="rearranged",
    ),
    Tool(
        id="add-watermark",
        name="Add Watermark",
        description="Add text watermarks to PDF files",
        icon="Type",
        operation="add_watermark",
        categories=_EDIT,
        output_suffix="watermarked",
    ),
    Tool(
        id="add-page-numbers",
        name="Add Page Numbers",
        description="Add page numbers to PDF documents",
        icon="Hash",
        operation="add_page_numbers",
        categories=_EDIT,
        output_suffix="numbered",
    ),
    Tool(
        id="protect-pdf",
        name="Protect PDF",
        description="Mark PDF files as protected with a banner and metadata",
        icon="Lock",
        operation="protect_pdf",
        categories=_EDIT,
        output_suffix="marked",
    ),
    Tool(
        id="jpg-to-pdf",
        name="JPG to PDF",
        description="Convert JPG images to PDF documents",
        icon="FileImage",
        operation="images_to_pdf",
        categories=_TO_PDF,
        output_name="images.pdf",
        multiple_files=True,
    ),
    Tool(
        id="png-to-pdf",
        name="PNG to PDF",
        description="Convert PNG images to PDF documents",
        icon="FileImage",
        operation="images_to_pdf",
        categories=_TO_PDF,
        output_name="images.pdf",
        multiple_files=True,
    ),
    Tool(
        id="pdf-to-jpg",
        name="PDF to JPG",
        description="Convert PDF pages to JPG images",
        icon="FileImage",
        operation="pdf_to_images",
        categories=_FROM_PDF,
        output_name="images.zip",
        preset_options={"format": "jpg"},
    ),
    Tool(
        id="pdf-to-png",
        name="PDF to PNG",
        description="Convert PDF pages to PNG images",
        icon="FileImage",
        operation="pdf_to_images",
        categories=_FROM_PDF,
        output_name="images.zip",
        preset_options={"format": "png"},
    ),
]

_TOOLS_BY_ID = {tool.id: tool for tool in ALL_TOOLS}


def get_tool(tool_id: str) -> Optional[Tool]:
    return _TOOLS_BY_ID.get(tool_id)


def filter_tools(
    category: ToolCategory = ToolCategory.ALL,
    query: str = "",
    preferences: Optional[UserPreferences] = None,
) -> List[Tool]:
    """
    List tools for a category tab, optionally narrowed by a search query.

    Args:
        category: Category to show; FAVORITES and RECENT are read from
                  ``preferences``
        query: Case-insensitive text matched against name and description
        preferences: Stored user preferences (defaults when omitted)

    Returns:
        Matching tools; RECENT is ordered most recent first, everything
        else keeps catalog order.
    """
    preferences = preferences or UserPreferences()
    tools = ALL_TOOLS

    if query:
        needle = query.lower()
        tools = [
            tool for tool in tools
            if needle in tool.name.lower() or needle in tool.description.lower()
        ]

    if category is ToolCategory.FAVORITES:
        tools = [tool for tool in tools if tool.id in preferences.favorites]
    elif category is ToolCategory.RECENT:
        recent = preferences.recently_used
        tools = sorted(
            (tool for tool in tools if tool.id in recent),
            key=lambda tool: recent.index(tool.id),
        )
    elif category is not ToolCategory.ALL:
        tools = [tool for tool in tools if category in tool.categories]

    return list(tools)
