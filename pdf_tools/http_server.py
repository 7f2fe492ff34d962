"""HTTP server for the PDF tools service using FastAPI."""

import asyncio
import base64
import json
import logging
import time
from typing import Dict, Any, List, Literal, Optional
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, UploadFile, File, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .backends.base import Backend
from .backends.conversion import ConversionBackend
from .backends.inspection import InspectionBackend
from .backends.optimization import OptimizationBackend
from .backends.page_operations import PageOperationsBackend
from .backends.stamping import StampingBackend
from .config import get_config
from .preferences import (
    PreferencesStore,
    UserPreferences,
    add_to_recently_used,
    is_favorite,
    set_theme,
    toggle_favorite,
)
from .tools_catalog import CATEGORY_LABELS, ToolCategory, filter_tools, get_tool
from .utils.page_filter import (
    OperationMode,
    format_page_list,
    resolve_for_operation,
    selection_error,
)
from .utils.page_order import (
    drop_page,
    format_page_order,
    initial_order,
    move_page,
    parse_page_order,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "zip": "application/zip",
    "json": "application/json",
}


# Pydantic models
class ProcessRequest(BaseModel):
    """Request body for POST /process (base64 mode)."""
    operation: str = Field(..., description="Backend operation, e.g. extract_pages, merge_pdf")
    documents: List[str] = Field(..., min_length=1, description="Base64-encoded input files")
    options: Dict[str, str] = Field(default_factory=dict)


class ResolveRequest(BaseModel):
    """Request body for POST /api/pages/resolve."""
    expression: str = Field("", description="Page range expression, e.g. '1, 3, 5-7'")
    total_pages: int = Field(..., ge=1, description="Page count of the loaded document")
    mode: OperationMode = OperationMode.EXTRACT


class ResolveResponse(BaseModel):
    """Live page selection preview."""
    selected: List[int]
    to_keep: List[int]
    to_remove_count: int
    formatted: str
    error: Optional[str] = None


class PageOrderRequest(BaseModel):
    """Request body for POST /api/pages/order."""
    total_pages: int = Field(..., ge=1, description="Page count of the loaded document")
    order: str = Field("", description="Current order, e.g. '3,1,2'; empty for the document order")
    action: Literal["reset", "up", "down", "remove"] = "reset"
    index: int = Field(0, description="Position in the order the action applies to")


class PageOrderResponse(BaseModel):
    order: List[int]
    formatted: str


class ThemeRequest(BaseModel):
    theme: Literal["light", "dark"]


class HealthResponse(BaseModel):
    """Response body for GET /health."""
    status: str = "ok"
    operations: List[str]
    version: str = VERSION


def _error(status_code: int, code: str, message: str, **details) -> HTTPException:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return HTTPException(status_code=status_code, detail={"success": False, "error": error})


def _attachment_header(filename: str) -> str:
    # Header values must be latin-1; non-ASCII names go in filename*
    fallback = filename.encode("ascii", "ignore").decode("ascii")
    fallback = fallback.replace('"', "").replace("\r", "").replace("\n", "") or "download"
    if fallback == filename:
        return f'attachment; filename="{fallback}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def create_app(preferences_store: Optional[PreferencesStore] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="PDF Tools Service",
        description="Merge, split, compress, rotate, stamp and convert PDF files using PyMuPDF",
        version=VERSION,
    )

    config = get_config()
    store = preferences_store or PreferencesStore(config.preferences.path)

    backends: List[Backend] = [
        PageOperationsBackend(),
        StampingBackend(),
        OptimizationBackend(),
        ConversionBackend(),
        InspectionBackend(),
    ]

    supported_operations = set()
    for backend in backends:
        supported_operations.update(backend.SUPPORTED_OPERATIONS)

    def find_backend(operation: str) -> Optional[Backend]:
        for backend in backends:
            if backend.supports(operation):
                return backend
        return None

    def check_size(data: bytes) -> None:
        max_mb = get_config().processing.max_file_size_mb
        if len(data) > max_mb * 1024 * 1024:
            raise _error(400, "FILE_TOO_LARGE", f"File exceeds {max_mb}MB limit")

    def record_recent(tool_id: str) -> UserPreferences:
        preferences = add_to_recently_used(
            store.load(), tool_id, limit=get_config().preferences.recent_tools_limit
        )
        store.save(preferences)
        return preferences

    async def run_backend(operation: str, documents: List[bytes], options: Dict[str, str]):
        backend = find_backend(operation)
        if backend is None:
            raise _error(
                400,
                "INVALID_OPERATION",
                f"Operation '{operation}' is not supported",
                supported_operations=sorted(supported_operations),
            )

        try:
            return await asyncio.to_thread(backend.process, documents, operation, options)
        except ValueError as e:
            raise _error(400, "VALIDATION_ERROR", str(e))
        except Exception as e:
            logger.exception(f"Processing error in {operation}: {e}")
            raise _error(500, "PROCESSING_FAILED", str(e))

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="ok",
            operations=sorted(supported_operations),
            version=VERSION,
        )

    @app.get("/ready")
    async def readiness_check():
        return {"status": "ready"}

    @app.get("/api/tools")
    def list_tools(category: ToolCategory = ToolCategory.ALL, q: str = ""):
        """List tools in a category tab, optionally filtered by a search query."""
        preferences = store.load()
        tools = filter_tools(category, q, preferences)
        return {
            "category": category.value,
            "label": CATEGORY_LABELS[category],
            "tools": [tool.to_dict(favorite=is_favorite(preferences, tool.id)) for tool in tools],
        }

    @app.post("/api/info")
    async def document_info(file: UploadFile = File(...)):
        """Report page count and page sizes of an uploaded PDF."""
        start_time = time.time()
        pdf_data = await file.read()
        check_size(pdf_data)

        logger.info(f"Info request: size={len(pdf_data)} bytes")
        output_data, _, metadata = await run_backend("document_info", [pdf_data], {})
        return {
            "success": True,
            "result": json.loads(output_data.decode("utf-8")),
            "metadata": metadata,
            "processing_time_ms": int((time.time() - start_time) * 1000),
        }

    @app.post("/api/pages/resolve", response_model=ResolveResponse)
    async def resolve_pages(request: ResolveRequest) -> ResolveResponse:
        """Preview which pages an expression selects, as the user types it."""
        resolution = resolve_for_operation(request.expression, request.total_pages, request.mode)
        return ResolveResponse(
            selected=resolution.selected,
            to_keep=resolution.to_keep,
            to_remove_count=resolution.to_remove_count,
            formatted=format_page_list(resolution.selected, collapse_ranges=True),
            error=selection_error(resolution),
        )

    @app.post("/api/pages/order", response_model=PageOrderResponse)
    async def edit_page_order(request: PageOrderRequest) -> PageOrderResponse:
        """Apply one editing step to the page order used by rearrange."""
        if request.action == "reset" or not request.order.strip():
            order = initial_order(request.total_pages)
        else:
            try:
                order = parse_page_order(request.order, request.total_pages)
            except ValueError as e:
                raise _error(400, "VALIDATION_ERROR", str(e))

        if request.action in ("up", "down"):
            order = move_page(order, request.index, request.action)
        elif request.action == "remove":
            order = drop_page(order, request.index)

        return PageOrderResponse(order=order, formatted=format_page_order(order))

    @app.post("/api/tools/{tool_id}")
    async def run_tool(tool_id: str, request: Request):
        """Run a tool on uploaded files and return the result as a download."""
        start_time = time.time()

        tool = get_tool(tool_id)
        if tool is None:
            raise _error(404, "UNKNOWN_TOOL", f"Tool '{tool_id}' does not exist")

        form = await request.form()
        uploads = [value for value in form.getlist("files") if not isinstance(value, str)]
        options = {key: value for key, value in form.multi_items() if isinstance(value, str)}

        if not uploads:
            raise _error(400, "VALIDATION_ERROR", "Please select a file")
        if len(uploads) > 1 and not tool.multiple_files:
            raise _error(400, "VALIDATION_ERROR", f"{tool.name} accepts a single file")

        documents = []
        for upload in uploads:
            data = await upload.read()
            check_size(data)
            documents.append(data)

        input_name = uploads[0].filename or ""
        options = tool.options_for(options)
        if tool.operation == "protect_pdf":
            options.setdefault("title", input_name)

        logger.info(
            f"Tool request: tool={tool_id}, files={len(documents)}, "
            f"size={sum(len(d) for d in documents)} bytes"
        )

        output_data, fmt, metadata = await run_backend(tool.operation, documents, options)
        await asyncio.to_thread(record_recent, tool.id)

        processing_time_ms = int((time.time() - start_time) * 1000)
        return Response(
            content=output_data,
            media_type=MEDIA_TYPES.get(fmt, "application/octet-stream"),
            headers={
                "Content-Disposition": _attachment_header(tool.output_filename(input_name)),
                "X-Processing-Time-Ms": str(processing_time_ms),
                "X-Tool-Metadata": json.dumps(metadata),
            },
        )

    @app.post("/process")
    async def process_document(request: ProcessRequest) -> Dict[str, Any]:
        """Run a backend operation on base64-encoded files."""
        start_time = time.time()

        documents = []
        for encoded in request.documents:
            try:
                document_data = base64.b64decode(encoded, validate=True)
            except Exception as e:
                raise _error(400, "INVALID_BASE64", str(e))
            check_size(document_data)
            documents.append(document_data)

        output_data, output_format, metadata = await run_backend(
            request.operation, documents, request.options
        )
        processing_time_ms = int((time.time() - start_time) * 1000)

        if output_format == "json":
            result: Any = json.loads(output_data.decode("utf-8"))
        else:
            result = base64.b64encode(output_data).decode("utf-8")

        return {
            "success": True,
            "result": result,
            "format": MEDIA_TYPES.get(output_format, "application/octet-stream"),
            "metadata": {str(k): str(v) for k, v in metadata.items()},
            "processing_time_ms": processing_time_ms,
        }

    @app.get("/api/preferences", response_model=UserPreferences)
    def get_preferences() -> UserPreferences:
        return store.load()

    @app.post("/api/preferences/favorites/{tool_id}", response_model=UserPreferences)
    def toggle_favorite_tool(tool_id: str) -> UserPreferences:
        if get_tool(tool_id) is None:
            raise _error(404, "UNKNOWN_TOOL", f"Tool '{tool_id}' does not exist")
        preferences = toggle_favorite(store.load(), tool_id)
        store.save(preferences)
        return preferences

    @app.post("/api/preferences/recent/{tool_id}", response_model=UserPreferences)
    def mark_recently_used(tool_id: str) -> UserPreferences:
        if get_tool(tool_id) is None:
            raise _error(404, "UNKNOWN_TOOL", f"Tool '{tool_id}' does not exist")
        return record_recent(tool_id)

    @app.put("/api/preferences/theme", response_model=UserPreferences)
    def update_theme(request: ThemeRequest) -> UserPreferences:
        preferences = set_theme(store.load(), request.theme)
        store.save(preferences)
        return preferences

    return app


# Create app instance for uvicorn
app = create_app()


def run_server():
    """Run the HTTP server."""
    import uvicorn
    config = get_config()
    logger.info(f"Starting HTTP server on {config.server.host}:{config.server.port}")
    uvicorn.run(
        "pdf_tools.http_server:app",
        host=config.server.host,
        port=config.server.port,
        log_level="info",
    )


if __name__ == "__main__":
    run_server()
