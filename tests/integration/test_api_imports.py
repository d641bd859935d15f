"""Tests for the bulk upload endpoint."""

import json

from httpx import AsyncClient

from app.utils.storage import LocalStorage
from tests.conftest import build_archive, metadata_csv

PDF = b"%PDF-1.4 sample"

ARCHIVE = build_archive(
    {
        "metadata.csv": metadata_csv(
            '"03-11-2025:\n2.00 PM",,,',
            ",133750,BBA3CJ201 - Domestic Logistic Management,42",
            ",133751,COM3MN202 - Cost Accounting,40",
            ",133752,ENG1FV101 - Reading Literature,12",
        ),
        "pdfs/133750_1762152327189.pdf": PDF,
        "pdfs/133751_1762152327190.pdf": PDF,
    }
)


async def _bulk_upload(
    client: AsyncClient,
    headers,
    content: bytes = ARCHIVE,
    filename: str = "papers.zip",
    **form: str,
):
    return await client.post(
        "/api/papers/bulk-upload",
        files={"file": (filename, content, "application/zip")},
        data=form,
        headers=headers,
    )


def _sse_events(body: str) -> list[dict]:
    frames = [frame for frame in body.split("\n\n") if frame.strip()]
    assert all(frame.startswith("data: ") for frame in frames)
    return [json.loads(frame[len("data: ") :]) for frame in frames]


class TestBulkUpload:
    async def test_summary_response(
        self, async_client: AsyncClient, api_headers, storage: LocalStorage
    ):
        response = await _bulk_upload(async_client, api_headers, program_type_id="2")

        assert response.status_code == 200
        body = response.json()
        assert (body["success"], body["failed"], body["skipped"]) == (2, 0, 1)
        assert body["successfulPapers"][0] == {
            "code": "133750",
            "title": "Domestic Logistic Management",
        }
        assert body["errors"] == [
            {"file": "133752 - Reading Literature", "error": "PDF document not found"}
        ]
        assert len(list(storage.root.iterdir())) == 2

        listing = (await async_client.get("/api/papers")).json()
        assert listing["total"] == 2
        assert {item["program_type_name"] for item in listing["items"]} == {"FYUGP"}
        assert {item["created_by"] for item in listing["items"]} == {"bulk-upload"}

    async def test_streamed_progress(self, async_client: AsyncClient, api_headers):
        response = await _bulk_upload(
            async_client, api_headers, stream_progress="true"
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"

        events = _sse_events(response.text)
        assert events[0] == {"type": "status", "message": "Creating temporary directory..."}
        assert [event["type"] for event in events].count("progress") == 3
        assert [event["type"] for event in events].count("skip") == 1

        final = events[-1]
        assert final["type"] == "complete"
        assert final["counts"] == {"success": 2, "failed": 0, "skipped": 1}
        assert len(final["successfulPapers"]) == 2

    async def test_rerun_skips_everything(self, async_client: AsyncClient, api_headers):
        await _bulk_upload(async_client, api_headers)

        body = (await _bulk_upload(async_client, api_headers)).json()

        assert (body["success"], body["failed"], body["skipped"]) == (0, 0, 3)

    async def test_requires_api_key(self, async_client: AsyncClient):
        response = await _bulk_upload(async_client, {})

        assert response.status_code == 401

    async def test_rejects_non_zip_name(self, async_client: AsyncClient, api_headers):
        response = await _bulk_upload(async_client, api_headers, filename="papers.rar")

        assert response.status_code == 400
        assert response.json()["allowed_types"] == [".zip"]

    async def test_rejects_oversize_archive(self, async_client: AsyncClient, api_headers):
        response = await _bulk_upload(
            async_client, api_headers, content=b"0" * (2 * 1024 * 1024 + 1)
        )

        assert response.status_code == 413

    async def test_unknown_program_type(self, async_client: AsyncClient, api_headers):
        response = await _bulk_upload(async_client, api_headers, program_type_id="999")

        assert response.status_code == 400
        assert response.json()["field"] == "program_type_id"

    async def test_corrupt_archive(self, async_client: AsyncClient, api_headers):
        response = await _bulk_upload(async_client, api_headers, content=b"not a zip")

        assert response.status_code == 422
        assert response.json()["error"] == "Import Failed"

    async def test_corrupt_archive_streams_error(
        self, async_client: AsyncClient, api_headers
    ):
        response = await _bulk_upload(
            async_client, api_headers, content=b"not a zip", stream_progress="true"
        )

        events = _sse_events(response.text)
        assert events[-1]["type"] == "error"
        assert "current" not in events[-1]

    async def test_archive_without_csv(self, async_client: AsyncClient, api_headers):
        content = build_archive({"133750_a.pdf": PDF})

        response = await _bulk_upload(async_client, api_headers, content=content)

        assert response.status_code == 422
        assert response.json()["message"] == "No CSV file found in ZIP archive"
