"""Tests for paper, lookup and download endpoints."""

from httpx import AsyncClient

from app.utils.storage import LocalStorage

PDF = b"%PDF-1.4 sample"


def _paper_form(**overrides) -> dict[str, str]:
    form = {
        "subject_name": "Domestic Logistic Management",
        "subject_code": "BBA3CJ201",
        "year_of_examination": "2025",
        "semester": "3",
        "paper_code": "133750",
        "department_id": "2",
    }
    form.update(overrides)
    return form


async def _upload(client: AsyncClient, headers, filename="Exam Paper.pdf", **overrides):
    return await client.post(
        "/api/papers",
        data=_paper_form(**overrides),
        files={"file": (filename, PDF, "application/pdf")},
        headers=headers,
    )


class TestLookupEndpoints:
    async def test_list_is_ordered_by_name(self, async_client: AsyncClient):
        response = await async_client.get("/api/program-types")

        assert response.status_code == 200
        assert [row["name"] for row in response.json()] == [
            "CBCSS-UG",
            "FYUGP",
            "Integrated PG",
        ]

    async def test_create_and_duplicate(self, async_client: AsyncClient, api_headers):
        created = await async_client.post(
            "/api/subject-types", json={"name": "Elective"}, headers=api_headers
        )
        duplicate = await async_client.post(
            "/api/subject-types", json={"name": "elective"}, headers=api_headers
        )

        assert created.status_code == 201
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "Conflict"

    async def test_empty_name_rejected(self, async_client: AsyncClient, api_headers):
        response = await async_client.post(
            "/api/departments", json={"name": ""}, headers=api_headers
        )

        assert response.status_code == 422
        assert response.json()["error"] == "Validation Error"


class TestPaperEndpoints:
    async def test_upload_returns_paper_with_lookup_names(
        self, async_client: AsyncClient, api_headers
    ):
        response = await _upload(async_client, api_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["subject_code"] == "BBA3CJ201"
        assert body["department_name"] == "Commerce"
        assert body["file_type"] == "pdf"
        assert body["original_filename"] == "Exam Paper.pdf"
        assert body["created_by"] == "admin"
        assert body["download_url"] == f"/download/{body['id']}"

    async def test_upload_rejects_wrong_type(self, async_client: AsyncClient, api_headers):
        response = await async_client.post(
            "/api/papers",
            data=_paper_form(),
            files={"file": ("notes.txt", b"text", "text/plain")},
            headers=api_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid File Type"

    async def test_upload_rejects_large_file(
        self, async_client: AsyncClient, api_headers, storage: LocalStorage
    ):
        response = await async_client.post(
            "/api/papers",
            data=_paper_form(),
            files={"file": ("big.pdf", b"0" * (1024 * 1024 + 1), "application/pdf")},
            headers=api_headers,
        )

        assert response.status_code == 413
        assert list(storage.root.iterdir()) == []

    async def test_upload_rejects_unknown_department(
        self, async_client: AsyncClient, api_headers
    ):
        response = await _upload(async_client, api_headers, department_id="999")

        assert response.status_code == 400
        assert response.json()["field"] == "department_id"

    async def test_upload_requires_key(self, async_client: AsyncClient):
        response = await _upload(async_client, {})

        assert response.status_code == 401

    async def test_list_get_update_delete(self, async_client: AsyncClient, api_headers):
        paper_id = (await _upload(async_client, api_headers)).json()["id"]
        await _upload(
            async_client,
            api_headers,
            subject_name="Cost Accounting",
            subject_code="COM3CJ202",
            year_of_examination="2024",
        )

        listing = await async_client.get("/api/papers", params={"year": 2025})
        assert listing.json()["total"] == 1
        assert listing.json()["items"][0]["id"] == paper_id

        fetched = await async_client.get(f"/api/papers/{paper_id}")
        assert fetched.json()["subject_name"] == "Domestic Logistic Management"

        updated = await async_client.patch(
            f"/api/papers/{paper_id}",
            json={"semester": 4, "department_id": 3, "description": "Reappear"},
            headers=api_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["semester"] == 4
        assert updated.json()["department_name"] == "Electronics"
        assert updated.json()["description"] == "Reappear"

        deleted = await async_client.delete(
            f"/api/papers/{paper_id}", headers=api_headers
        )
        assert deleted.status_code == 204
        assert (await async_client.get(f"/api/papers/{paper_id}")).status_code == 404

    async def test_update_rejects_unknown_program_type(
        self, async_client: AsyncClient, api_headers
    ):
        paper_id = (await _upload(async_client, api_headers)).json()["id"]

        response = await async_client.patch(
            f"/api/papers/{paper_id}",
            json={"program_type_id": 999},
            headers=api_headers,
        )

        assert response.status_code == 400

    async def test_update_validates_semester(self, async_client: AsyncClient, api_headers):
        paper_id = (await _upload(async_client, api_headers)).json()["id"]

        response = await async_client.patch(
            f"/api/papers/{paper_id}", json={"semester": 11}, headers=api_headers
        )

        assert response.status_code == 422

    async def test_missing_paper_is_404(self, async_client: AsyncClient):
        response = await async_client.get("/api/papers/999")

        assert response.status_code == 404
        assert response.json()["model"] == "QuestionPaper"


class TestDownload:
    async def test_download_sends_attachment(
        self, async_client: AsyncClient, api_headers
    ):
        paper_id = (await _upload(async_client, api_headers)).json()["id"]

        response = await async_client.get(f"/download/{paper_id}")

        assert response.status_code == 200
        assert response.content == PDF
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == (
            "attachment; filename=\"Exam%20Paper.pdf\"; "
            "filename*=UTF-8''Exam%20Paper.pdf"
        )
        assert response.headers["x-content-type-options"] == "nosniff"

    async def test_missing_stored_file_is_404(
        self, async_client: AsyncClient, api_headers, storage: LocalStorage
    ):
        body = (await _upload(async_client, api_headers)).json()
        storage.delete(LocalStorage.name_from_url(body["file_url"]))

        response = await async_client.get(f"/download/{body['id']}")

        assert response.status_code == 404

    async def test_unknown_paper_is_404(self, async_client: AsyncClient):
        response = await async_client.get("/download/999")

        assert response.status_code == 404
