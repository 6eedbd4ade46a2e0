"""
Unit tests for the HTTP API.
"""

import os
import shutil
import tempfile

from fastapi.testclient import TestClient

from legal_doc_auto.api import create_app
from legal_doc_auto.config.loader import AppConfig, StorageConfig
from legal_doc_auto.core.pipeline import build_services
from legal_doc_auto.storage.blob_store import SIGNING_SECRET_ENV
from legal_doc_auto.storage.repository import UserProfileRepository

SECRET = "test-signing-secret-0123456789abcdef"


class TestApi:
    """Test routes against a stub-backed pipeline."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        config = AppConfig(storage=StorageConfig(
            database_path=os.path.join(self.temp_dir, "test.db"),
            blob_root=os.path.join(self.temp_dir, "blobs"),
        ))
        self.services = build_services(config, env={SIGNING_SECRET_ENV: SECRET})
        self.services.templates.seed_default_templates()
        self.services.organizations.create("Doe", organization_id="org-1")
        UserProfileRepository(config.storage.database_path).create("user-1", "org-1")
        self.client = TestClient(create_app(
            self.services.pipeline,
            self.services.blob_store,
            self.services.identity_provider,
        ))

    def teardown_method(self):
        """Clean up test environment."""
        self.services.pipeline.router.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _generate(self, template_id="divorce-petition-ca", user_id="user-1", **body):
        headers = {"X-User-Id": user_id} if user_id else {}
        return self.client.post(
            "/api/generate-document",
            json={"template_id": template_id, "form_data": {"petitioner_name": "Jane Doe"}, **body},
            headers=headers,
        )

    def test_generate_document(self):
        response = self._generate()

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["document"]["title"] == "Petition for Dissolution of Marriage - Jane Doe"
        assert data["download_url"].startswith("/api/files/")
        assert data["pdf_url"].startswith("/api/files/")

        download = self.client.get(data["download_url"])
        assert download.status_code == 200
        assert download.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        )
        assert download.headers["content-disposition"].endswith('.docx"')

        pdf = self.client.get(data["pdf_url"])
        assert pdf.status_code == 200
        assert pdf.content.startswith(b"%PDF")

    def test_missing_user_header(self):
        response = self._generate(user_id=None)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "code": "UNAUTHORIZED"}

    def test_unknown_template(self):
        response = self._generate(template_id="no-such-template")

        assert response.status_code == 404
        assert response.json()["code"] == "TEMPLATE_NOT_FOUND"

    def test_limit_reached(self):
        for _ in range(3):
            assert self._generate().status_code == 200

        response = self._generate()

        assert response.status_code == 403
        assert response.json() == {
            "error": response.json()["error"],
            "code": "LIMIT_REACHED",
            "currentUsage": 3,
            "limit": 3,
            "tier": "trial",
        }

    def test_invalid_fields(self):
        response = self.client.post(
            "/api/generate-document",
            json={
                "template_id": "divorce-petition-ca",
                "form_data": {"marriage_date": "2020-01-01", "separation_date": "2019-01-01"},
            },
            headers={"X-User-Id": "user-1"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FIELDS"

    def test_invalid_download_token(self):
        response = self.client.get("/api/files/not-a-token")

        assert response.status_code == 403
        assert response.json()["code"] == "INVALID_REFERENCE"

    def test_download_missing_blob(self):
        token = self.services.blob_store.create_signed_reference("org-1/gone.pdf")

        response = self.client.get(f"/api/files/{token}")

        assert response.status_code == 404

    def test_list_templates(self):
        response = self.client.get("/api/templates")

        assert response.status_code == 200
        ids = {template["id"] for template in response.json()["templates"]}
        assert "child-support-ca" in ids
        assert len(ids) == 5

    def test_support_calculation(self):
        response = self.client.post("/api/support/calculate", json={
            "parent1_gross_income": 6500,
            "parent1_deductions": 1300,
            "parent1_timeshare": 20,
            "parent2_gross_income": 4500,
            "parent2_deductions": 900,
            "parent2_timeshare": 80,
            "number_of_children": 2,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["monthly_support"] == 1238
        assert data["paying_parent"] == "parent1"
        assert data["breakdown"]["total_net_income"] == 6600

    def test_support_calculation_validation(self):
        response = self.client.post("/api/support/calculate", json={
            "parent1_gross_income": 6500,
            "parent1_timeshare": 20,
            "parent2_gross_income": 4500,
            "parent2_timeshare": 70,
        })

        assert response.status_code == 400
        assert "Timeshare percentages must add up to exactly 100%" in response.json()["errors"]
