"""Tests for the FastAPI application."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from io import BytesIO
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from fastapi import status
from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from excel_creator.api import create_app
from excel_creator.output.xlsx_delivery import XLSX_CONTENT_TYPE
from excel_creator.services.grid_assembler import ExcelService
from tests.fixtures import load_sample_payload


@asynccontextmanager
async def create_test_client(
    patches: dict[str, Any] | None = None,
    raise_app_exceptions: bool = True,
) -> AsyncIterator[httpx.AsyncClient]:
    """Create an async test client for a fresh application.

    Args:
        patches: Optional dictionary of patch targets and values.
        raise_app_exceptions: Whether unhandled server errors propagate.
    """
    for target, value in (patches or {}).items():
        patch(target, value).start()
    try:
        app = create_app()
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(
                app=app, raise_app_exceptions=raise_app_exceptions
            ),
            base_url="http://test",
        ) as client:
            yield client
    finally:
        patch.stopall()


@pytest.fixture
async def client() -> AsyncIterator[httpx.AsyncClient]:
    """Create an async test client for the FastAPI application."""
    async with create_test_client() as ac:
        yield ac


def _worksheet(response: httpx.Response) -> Worksheet:
    return load_workbook(BytesIO(response.content)).active


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    async def test_health_check_returns_200(self, client: httpx.AsyncClient) -> None:
        """Test that health check returns 200 status code."""
        response = await client.get("/health")
        assert response.status_code == status.HTTP_200_OK

    async def test_health_check_response(self, client: httpx.AsyncClient) -> None:
        """Test that health check reports status, version and time."""
        response = await client.get("/health")
        data = response.json()

        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert isinstance(datetime.fromisoformat(data["timestamp"]), datetime)


class TestOpenAPIDocumentation:
    """Tests for OpenAPI documentation availability."""

    async def test_docs_endpoint_available(self, client: httpx.AsyncClient) -> None:
        """Test that Swagger UI docs are available at /docs."""
        response = await client.get("/docs")
        assert response.status_code == status.HTTP_200_OK

    async def test_openapi_json_available(self, client: httpx.AsyncClient) -> None:
        """Test that the schema documents the Excel endpoint."""
        response = await client.get("/openapi.json")
        data = response.json()

        assert data["info"]["title"] == "Excel Creator API"
        assert "/api/excel" in data["paths"]


class TestRequestId:
    """Tests for request ID propagation."""

    async def test_request_id_echoed(self, client: httpx.AsyncClient) -> None:
        """Test a client-supplied request ID is returned."""
        response = await client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    async def test_request_id_generated(self, client: httpx.AsyncClient) -> None:
        """Test a request ID is generated when none is sent."""
        response = await client.get("/health")

        uuid.UUID(response.headers["X-Request-ID"])


class TestCreateExcel:
    """Tests for POST /api/excel."""

    async def test_returns_xlsx_attachment(
        self, client: httpx.AsyncClient, employee_payload: dict[str, Any]
    ) -> None:
        """Test the response is a downloadable workbook."""
        response = await client.post("/api/excel", json=employee_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith(XLSX_CONTENT_TYPE)
        assert (
            response.headers["content-disposition"]
            == 'attachment; filename="employees.xlsx"'
        )
        assert response.content.startswith(b"PK")

    async def test_workbook_contents(
        self, client: httpx.AsyncClient, employee_payload: dict[str, Any]
    ) -> None:
        """Test every column type is coerced and laid out."""
        response = await client.post("/api/excel", json=employee_payload)
        ws = _worksheet(response)

        assert ws.title == "Employees"
        assert [c.value for c in ws[1]] == [
            "Name",
            "Hired",
            "Score",
            "Units",
            "Salary",
            "Active",
            "Total",
        ]
        assert ws["A2"].value == "Alice"
        assert ws["B2"].value == datetime(2024, 1, 15)
        assert ws["C2"].value == pytest.approx(0.855)
        assert ws["C2"].number_format == "0.00%"
        assert ws["D2"].value == 1200
        assert ws["E2"].value == pytest.approx(3500.75)
        assert ws["F2"].value is True
        assert ws["G2"].value == "=D2*E2"

        assert ws["B3"].value == "soon"
        assert ws["C3"].value == pytest.approx(0.125)
        assert ws["D3"].value == 1234
        assert ws["E3"].value == "abc"
        assert ws["F3"].value == "yes"
        assert ws["G3"].value == "=D3*E3"

        assert ws.freeze_panes == "B1"
        assert ws.auto_filter.ref == "A1:G3"

    async def test_sample_orders(self, client: httpx.AsyncClient) -> None:
        """Test a realistic payload with ragged rows and a conflict."""
        payload = load_sample_payload("orders.json")

        response = await client.post("/api/excel", json=payload)
        ws = _worksheet(response)

        assert response.status_code == status.HTTP_200_OK
        assert ws.title == "Orders"
        assert ws["B3"].value == datetime(2024, 3, 2, 14, 30)
        assert ws["D4"].value == "n/a"
        assert ws["G4"].value == "=C4*D4*(1-E4)"
        assert ws["G4"].comment is not None
        assert ws["G4"].comment.text.startswith("ERR: Both formula")
        assert ws["G5"].value == "=C5*D5*(1-E5)"
        assert ws["C6"].value == 2
        assert ws["H6"].value == "extra note"
        assert ws.auto_filter.ref == "A1:G6"

    async def test_empty_body_uses_defaults(self, client: httpx.AsyncClient) -> None:
        """Test an empty request produces an empty default sheet."""
        response = await client.post("/api/excel", json={})

        assert response.status_code == status.HTTP_200_OK
        assert (
            response.headers["content-disposition"]
            == 'attachment; filename="export.xlsx"'
        )
        assert _worksheet(response).title == "Sheet1"

    async def test_lowercase_column_type_accepted(
        self, client: httpx.AsyncClient
    ) -> None:
        """Test column types are matched without regard to case."""
        payload = {
            "data": [["1,500"]],
            "config": {"columns": [{"header": "Amount", "type": "integer"}]},
        }

        response = await client.post("/api/excel", json=payload)

        assert response.status_code == status.HTTP_200_OK
        assert _worksheet(response)["A2"].value == 1500

    async def test_non_ascii_file_name(self, client: httpx.AsyncClient) -> None:
        """Test non-ASCII names are sent RFC 5987 encoded."""
        payload = {"config": {"fileName": "Übersicht"}}

        response = await client.post("/api/excel", json=payload)

        assert (
            response.headers["content-disposition"]
            == "attachment; filename*=utf-8''%C3%9Cbersicht.xlsx"
        )

    async def test_unknown_column_type_returns_400(
        self, client: httpx.AsyncClient
    ) -> None:
        """Test an unknown type is rejected with validation details."""
        payload = {"config": {"columns": [{"header": "X", "type": "Currency"}]}}

        response = await client.post(
            "/api/excel", json=payload, headers={"X-Request-ID": "req-7"}
        )
        data = response.json()

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert data["error_code"] == "E1004"
        assert data["request_id"] == "req-7"
        assert any(
            "columns.0.type" in error for error in data["details"]["validation_errors"]
        )

    async def test_non_scalar_cell_returns_400(
        self, client: httpx.AsyncClient
    ) -> None:
        """Test nested values in the data grid are rejected."""
        response = await client.post("/api/excel", json={"data": [[{"a": 1}]]})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "E1004"

    async def test_malformed_json_returns_400(self, client: httpx.AsyncClient) -> None:
        """Test a body that is not JSON is rejected."""
        response = await client.post(
            "/api/excel",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_negative_freeze_returns_400(self, client: httpx.AsyncClient) -> None:
        """Test freezeColumns must not be negative."""
        response = await client.post(
            "/api/excel", json={"config": {"freezeColumns": -2}}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_invalid_sheet_name_returns_400(
        self, client: httpx.AsyncClient
    ) -> None:
        """Test sheet names Excel refuses are reported."""
        response = await client.post(
            "/api/excel", json={"config": {"sheetName": "Q1/Q2"}}
        )
        data = response.json()

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert data["error_code"] == "E2004"
        assert data["details"]["sheet_name"] == "Q1/Q2"

    async def test_bad_formula_returns_400(self, client: httpx.AsyncClient) -> None:
        """Test an unknown placeholder aborts the request."""
        payload = {
            "data": [[1]],
            "config": {
                "columns": [{"header": "T", "type": "Decimal", "formula": "={col}2"}]
            },
        }

        response = await client.post("/api/excel", json=payload)
        data = response.json()

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert data["error_code"] == "E2003"
        assert data["details"]["column_index"] == 0

    async def test_too_many_rows_returns_413(self) -> None:
        """Test requests above the row limit are rejected."""
        async with create_test_client(
            patches={"excel_creator.api.settings.max_rows": 2}
        ) as client:
            response = await client.post(
                "/api/excel", json={"data": [[1], [2], [3]]}
            )

        data = response.json()
        assert response.status_code == 413
        assert data["error_code"] == "E1002"
        assert data["details"] == {"row_count": 3, "max_rows": 2}

    async def test_unexpected_error_returns_500(self) -> None:
        """Test unexpected failures return a generic message."""
        with patch.object(ExcelService, "render", side_effect=RuntimeError("boom")):
            async with create_test_client(raise_app_exceptions=False) as client:
                response = await client.post("/api/excel", json={})

        data = response.json()
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert data["error_code"] == "E9001"
        assert "boom" not in data["detail"]
