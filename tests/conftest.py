from __future__ import annotations

import os
from typing import Any
from unittest.mock import patch

import pytest

from excel_creator.config import Settings
from excel_creator.excel_document import (
    ColumnSpec,
    ColumnType,
    SheetConfiguration,
)
from excel_creator.services.grid_assembler import ExcelService


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults only, independent of the environment."""
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None)


@pytest.fixture
def excel_service(test_settings: Settings) -> ExcelService:
    return ExcelService(test_settings)


@pytest.fixture
def sum_configuration() -> SheetConfiguration:
    """Two numeric columns and a computed total."""
    return SheetConfiguration(
        sheet_name="Totals",
        columns=(
            ColumnSpec("A", ColumnType.DECIMAL),
            ColumnSpec("B", ColumnType.DECIMAL),
            ColumnSpec("Sum", ColumnType.DECIMAL, formula_template="=A{row}+B{row}"),
        ),
    )


@pytest.fixture
def employee_payload() -> dict[str, Any]:
    """Request body with every column type and a formula column."""
    return {
        "data": [
            ["Alice", "2024-01-15", 85.5, 1200, 3500.75, True, None],
            ["Bob", "soon", "12.5", "1,234.9", "abc", "yes", None],
        ],
        "config": {
            "fileName": "employees",
            "sheetName": "Employees",
            "columns": [
                {"header": "Name", "type": "String"},
                {"header": "Hired", "type": "Date"},
                {"header": "Score", "type": "Percentage"},
                {"header": "Units", "type": "Integer"},
                {"header": "Salary", "type": "Money"},
                {"header": "Active", "type": "Boolean"},
                {"header": "Total", "type": "Decimal", "formula": "=D{row}*E{row}"},
            ],
            "freezeColumns": 1,
        },
    }
