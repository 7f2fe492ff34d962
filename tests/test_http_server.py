"""Tests for HTTP server endpoints."""

import base64
import inspect
import io
import json
import zipfile

import pytest
import pymupdf

from fastapi.testclient import TestClient

from pdf_tools.http_server import create_app
from pdf_tools.preferences import PreferencesStore, UserPreferences


def create_test_pdf_bytes(num_pages=3):
    """Create a simple multi-page test PDF."""
    doc = pymupdf.open()
    for i in range(num_pages):
        page = doc.new_page(width=612, height=792)
        page.insert_text(pymupdf.Point(72, 72), f"Page {i + 1}", fontsize=12, fontname="helv")
    pdf_bytes = doc.tobytes()
    doc.close()
    return pdf_bytes


def pdf_page_count(pdf_bytes):
    doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")
    try:
        return doc.page_count
    finally:
        doc.close()


@pytest.fixture
def store(tmp_path):
    return PreferencesStore(str(tmp_path / "preferences.json"))


@pytest.fixture
def client(store):
    """Create test client."""
    app = create_app(preferences_store=store)
    return TestClient(app)


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert isinstance(data["operations"], list)
        assert "extract_pages" in data["operations"]
        assert "document_info" in data["operations"]

    def test_ready_check(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestToolsEndpoint:
    """Tests for GET /api/tools."""

    def test_list_all(self, client):
        response = client.get("/api/tools")
        assert response.status_code == 200
        ids = [tool["id"] for tool in response.json()["tools"]]
        assert "merge-pdf" in ids
        assert "extract-pages" in ids

    def test_list_category_with_query(self, client):
        response = client.get("/api/tools", params={"category": "organize-pdf", "q": "pages"})
        ids = [tool["id"] for tool in response.json()["tools"]]
        assert "extract-pages" in ids
        assert "merge-pdf" not in ids

    def test_unknown_category(self, client):
        response = client.get("/api/tools", params={"category": "nonsense"})
        assert response.status_code == 422

    def test_category_label(self, client):
        response = client.get("/api/tools", params={"category": "organize-pdf"})
        assert response.json()["label"] == "Organize PDF"

        response = client.get("/api/tools")
        assert response.json()["label"] == "All Tools"

    def test_favorite_flag(self, client):
        client.post("/api/preferences/favorites/compress-pdf")
        tools = client.get("/api/tools").json()["tools"]

        flags = {tool["id"]: tool["favorite"] for tool in tools}
        assert flags["compress-pdf"] is True
        assert flags["merge-pdf"] is False


class TestPageOrderEndpoint:
    """Tests for POST /api/pages/order."""

    def test_reset(self, client):
        response = client.post("/api/pages/order", json={"total_pages": 4, "order": "4,3"})

        assert response.status_code == 200
        assert response.json() == {"order": [1, 2, 3, 4], "formatted": "1,2,3,4"}

    def test_move_up(self, client):
        response = client.post("/api/pages/order", json={
            "total_pages": 3,
            "order": "1,2,3",
            "action": "up",
            "index": 2,
        })
        assert response.json() == {"order": [1, 3, 2], "formatted": "1,3,2"}

    def test_move_down_from_empty_order(self, client):
        response = client.post("/api/pages/order", json={
            "total_pages": 3,
            "action": "down",
            "index": 0,
        })
        assert response.json()["order"] == [2, 1, 3]

    def test_move_past_end_is_unchanged(self, client):
        response = client.post("/api/pages/order", json={
            "total_pages": 3,
            "order": "3,1,2",
            "action": "down",
            "index": 2,
        })
        assert response.json()["order"] == [3, 1, 2]

    def test_remove(self, client):
        response = client.post("/api/pages/order", json={
            "total_pages": 3,
            "order": "3,1,2",
            "action": "remove",
            "index": 1,
        })
        assert response.json() == {"order": [3, 2], "formatted": "3,2"}

    def test_last_page_is_kept(self, client):
        response = client.post("/api/pages/order", json={
            "total_pages": 3,
            "order": "2",
            "action": "remove",
            "index": 0,
        })
        assert response.json()["order"] == [2]

    def test_invalid_order(self, client):
        response = client.post("/api/pages/order", json={
            "total_pages": 3,
            "order": "1,1,2",
            "action": "up",
            "index": 1,
        })

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "VALIDATION_ERROR"

    def test_unknown_action(self, client):
        response = client.post("/api/pages/order", json={"total_pages": 3, "action": "shuffle"})
        assert response.status_code == 422

    def test_formatted_order_runs_rearrange(self, client):
        formatted = client.post("/api/pages/order", json={
            "total_pages": 3,
            "action": "up",
            "index": 2,
        }).json()["formatted"]

        response = client.post(
            "/api/tools/rearrange-pages",
            files={"files": ("a.pdf", create_test_pdf_bytes(3), "application/pdf")},
            data={"order": formatted},
        )
        assert response.status_code == 200
        assert pdf_page_count(response.content) == 3


class TestInfoEndpoint:
    """Tests for POST /api/info."""

    def test_info(self, client):
        response = client.post(
            "/api/info",
            files={"file": ("test.pdf", create_test_pdf_bytes(4), "application/pdf")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["result"]["total_pages"] == 4
        assert isinstance(data["processing_time_ms"], int)

    def test_info_invalid_pdf(self, client):
        response = client.post(
            "/api/info",
            files={"file": ("test.pdf", b"not a pdf", "application/pdf")},
        )
        assert response.status_code == 400

    def test_info_missing_file(self, client):
        response = client.post("/api/info")
        assert response.status_code == 422


class TestResolveEndpoint:
    """Tests for POST /api/pages/resolve."""

    def test_extract_preview(self, client):
        response = client.post("/api/pages/resolve", json={
            "expression": "1, 3, abc, 5-7, 99",
            "total_pages": 10,
            "mode": "extract",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["selected"] == [1, 3, 5, 6, 7]
        assert data["to_keep"] == [1, 3, 5, 6, 7]
        assert data["formatted"] == "1,3,5-7"
        assert data["error"] is None

    def test_remove_preview(self, client):
        response = client.post("/api/pages/resolve", json={
            "expression": "2,4",
            "total_pages": 5,
            "mode": "remove",
        })

        data = response.json()
        assert data["to_keep"] == [1, 3, 5]
        assert data["to_remove_count"] == 2

    def test_remove_all_preview_reports_error(self, client):
        response = client.post("/api/pages/resolve", json={
            "expression": "1-3",
            "total_pages": 3,
            "mode": "remove",
        })
        assert "Cannot remove all pages" in response.json()["error"]

    def test_unloaded_document_is_rejected(self, client):
        response = client.post("/api/pages/resolve", json={"expression": "1", "total_pages": 0})
        assert response.status_code == 422


class TestRunToolEndpoint:
    """Tests for POST /api/tools/{tool_id}."""

    def test_extract_pages_download(self, client):
        response = client.post(
            "/api/tools/extract-pages",
            files={"files": ("report.pdf", create_test_pdf_bytes(5), "application/pdf")},
            data={"pages": "1, 3-4"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="report-extracted.pdf"' in response.headers["content-disposition"]
        assert pdf_page_count(response.content) == 3
        assert json.loads(response.headers["x-tool-metadata"])["pages_kept"] == "3"

    def test_remove_all_pages_rejected(self, client):
        response = client.post(
            "/api/tools/remove-pages",
            files={"files": ("report.pdf", create_test_pdf_bytes(2), "application/pdf")},
            data={"pages": "1-2"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "VALIDATION_ERROR"

    def test_merge_multiple_files(self, client):
        response = client.post(
            "/api/tools/merge-pdf",
            files=[
                ("files", ("a.pdf", create_test_pdf_bytes(2), "application/pdf")),
                ("files", ("b.pdf", create_test_pdf_bytes(3), "application/pdf")),
            ],
        )

        assert response.status_code == 200
        assert 'filename="merged.pdf"' in response.headers["content-disposition"]
        assert pdf_page_count(response.content) == 5

    def test_single_file_tool_rejects_multiple_files(self, client):
        response = client.post(
            "/api/tools/rotate-pdf",
            files=[
                ("files", ("a.pdf", create_test_pdf_bytes(1), "application/pdf")),
                ("files", ("b.pdf", create_test_pdf_bytes(1), "application/pdf")),
            ],
        )
        assert response.status_code == 400

    def test_pdf_to_jpg_uses_preset(self, client):
        response = client.post(
            "/api/tools/pdf-to-jpg",
            files={"files": ("doc.pdf", create_test_pdf_bytes(2), "application/pdf")},
            data={"format": "png", "scale": "0.5"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            assert sorted(archive.namelist()) == ["page-1.jpg", "page-2.jpg"]

    def test_run_records_recent_tool(self, client, store):
        client.post(
            "/api/tools/rotate-pdf",
            files={"files": ("a.pdf", create_test_pdf_bytes(1), "application/pdf")},
            data={"angle": "90"},
        )
        assert store.load().recently_used == ["rotate-pdf"]

    def test_unknown_tool(self, client):
        response = client.post(
            "/api/tools/word-to-pdf",
            files={"files": ("a.pdf", create_test_pdf_bytes(1), "application/pdf")},
        )
        assert response.status_code == 404

    def test_missing_file(self, client):
        response = client.post("/api/tools/compress-pdf", data={"quality": "low"})
        assert response.status_code == 400

    def test_non_ascii_filename(self, client):
        response = client.post(
            "/api/tools/compress-pdf",
            files={"files": ("résumé.pdf", create_test_pdf_bytes(1), "application/pdf")},
        )

        assert response.status_code == 200
        assert "filename*=UTF-8''r%C3%A9sum%C3%A9-compressed.pdf" in response.headers["content-disposition"]


class TestProcessEndpoint:
    """Tests for POST /process (base64 mode)."""

    def test_process_remove_pages(self, client):
        encoded = base64.b64encode(create_test_pdf_bytes(4)).decode("utf-8")

        response = client.post("/process", json={
            "operation": "remove_pages",
            "documents": [encoded],
            "options": {"pages": "1"},
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["format"] == "application/pdf"
        assert pdf_page_count(base64.b64decode(data["result"])) == 3
        assert data["metadata"]["pages_removed"] == "1"

    def test_process_document_info(self, client):
        encoded = base64.b64encode(create_test_pdf_bytes(2)).decode("utf-8")

        response = client.post("/process", json={
            "operation": "document_info",
            "documents": [encoded],
        })

        assert response.status_code == 200
        assert response.json()["result"]["total_pages"] == 2

    def test_process_invalid_base64(self, client):
        response = client.post("/process", json={
            "operation": "extract_pages",
            "documents": ["not-valid-base64!!!"],
            "options": {},
        })
        assert response.status_code == 400

    def test_process_unsupported_operation(self, client):
        encoded = base64.b64encode(create_test_pdf_bytes(1)).decode("utf-8")

        response = client.post("/process", json={
            "operation": "nonexistent_op",
            "documents": [encoded],
        })

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "INVALID_OPERATION"

    def test_missing_documents(self, client):
        response = client.post("/process", json={"operation": "extract_pages", "documents": []})
        assert response.status_code == 422


class TestPreferencesEndpoints:
    """Tests for the preferences endpoints."""

    def test_defaults(self, client):
        response = client.get("/api/preferences")
        assert response.status_code == 200
        assert response.json() == UserPreferences().model_dump()

    def test_toggle_favorite(self, client, store):
        response = client.post("/api/preferences/favorites/merge-pdf")
        assert response.json()["favorites"] == ["merge-pdf"]
        assert store.load().favorites == ["merge-pdf"]

        response = client.post("/api/preferences/favorites/merge-pdf")
        assert response.json()["favorites"] == []

    def test_favorites_tab(self, client):
        client.post("/api/preferences/favorites/split-pdf")
        response = client.get("/api/tools", params={"category": "favorites"})
        assert [tool["id"] for tool in response.json()["tools"]] == ["split-pdf"]

    def test_recent_ordering(self, client):
        client.post("/api/preferences/recent/merge-pdf")
        client.post("/api/preferences/recent/split-pdf")
        response = client.get("/api/tools", params={"category": "recent"})
        assert [tool["id"] for tool in response.json()["tools"]] == ["split-pdf", "merge-pdf"]

    def test_unknown_tool_favorite(self, client):
        response = client.post("/api/preferences/favorites/unknown")
        assert response.status_code == 404

    def test_theme(self, client):
        response = client.put("/api/preferences/theme", json={"theme": "dark"})
        assert response.json()["theme"] == "dark"

        response = client.put("/api/preferences/theme", json={"theme": "blue"})
        assert response.status_code == 422

    def test_file_backed_handlers_run_in_threadpool(self, store):
        app = create_app(preferences_store=store)
        paths = {"/api/tools", "/api/preferences"}

        endpoints = [
            route.endpoint for route in app.routes
            if getattr(route, "path", "") in paths
            or getattr(route, "path", "").startswith("/api/preferences/")
        ]

        assert len(endpoints) == 5
        assert not any(inspect.iscoroutinefunction(endpoint) for endpoint in endpoints)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
