"""Tests for the centralized exception classes."""

from excel_creator.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    ExcelCreatorError,
    FormulaTemplateError,
    GridTooLargeError,
    PayloadError,
    PayloadTooLargeError,
    SheetNameError,
    UnsupportedColumnTypeError,
    ValidationError,
    WorkbookWriteError,
)


class TestErrorCode:
    """Tests for ErrorCode enumeration."""

    def test_error_codes_are_unique(self) -> None:
        """All error codes should have unique values."""
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))

    def test_error_code_format(self) -> None:
        """Error codes should follow Exxxx format."""
        for code in ErrorCode:
            assert code.value.startswith("E")
            assert len(code.value) == 5
            assert code.value[1:].isdigit()

    def test_payload_errors_start_with_e1(self) -> None:
        """Payload error codes should start with E1."""
        payload_codes = [
            ErrorCode.INVALID_PAYLOAD,
            ErrorCode.PAYLOAD_TOO_LARGE,
            ErrorCode.GRID_TOO_LARGE,
            ErrorCode.REQUEST_VALIDATION_FAILED,
        ]
        for code in payload_codes:
            assert code.value.startswith("E1")

    def test_configuration_errors_start_with_e2(self) -> None:
        """Configuration error codes should start with E2."""
        configuration_codes = [
            ErrorCode.INVALID_CONFIGURATION,
            ErrorCode.UNSUPPORTED_COLUMN_TYPE,
            ErrorCode.INVALID_FORMULA_TEMPLATE,
            ErrorCode.INVALID_SHEET_NAME,
        ]
        for code in configuration_codes:
            assert code.value.startswith("E2")


class TestExcelCreatorError:
    """Tests for the base ExcelCreatorError class."""

    def test_basic_initialization(self) -> None:
        """Test basic error initialization."""
        error = ExcelCreatorError("Test error message")

        assert str(error) == "[E9001] Test error message"
        assert error.message == "Test error message"
        assert error.error_code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}
        assert error.http_status == 500
        assert error.get_http_status() == 500

    def test_to_dict(self) -> None:
        """Test conversion for API responses."""
        error = ExcelCreatorError(
            "Broken", error_code=ErrorCode.UNEXPECTED_ERROR, details={"k": 1}
        )

        assert error.to_dict() == {
            "error_code": "E9999",
            "message": "Broken",
            "details": {"k": 1},
        }

    def test_to_dict_without_details(self) -> None:
        """Test empty details are left out."""
        assert "details" not in ExcelCreatorError("Broken").to_dict()


class TestConfigurationErrors:
    """Tests for configuration error classes."""

    def test_configuration_error(self) -> None:
        """Test column index is recorded in details."""
        error = ConfigurationError("Bad column", column_index=4)

        assert isinstance(error, ExcelCreatorError)
        assert error.http_status == 400
        assert error.error_code == ErrorCode.INVALID_CONFIGURATION
        assert error.details == {"column_index": 4}

    def test_unsupported_column_type(self) -> None:
        """Test the offending type is named."""
        error = UnsupportedColumnTypeError("Currency", column_index=2)

        assert isinstance(error, ConfigurationError)
        assert error.error_code == ErrorCode.UNSUPPORTED_COLUMN_TYPE
        assert error.message == "Unsupported column type: 'Currency'"
        assert error.details == {"column_type": "Currency", "column_index": 2}
        assert error.http_status == 400

    def test_formula_template_error(self) -> None:
        """Test the formula is recorded in details."""
        error = FormulaTemplateError("Formula template is empty", template="=")

        assert error.error_code == ErrorCode.INVALID_FORMULA_TEMPLATE
        assert error.template == "="
        assert error.details["formula"] == "="

    def test_sheet_name_error(self) -> None:
        """Test the name and reason appear in the message."""
        error = SheetNameError("a/b", "name contains one of \\ / ? * : [ ]")

        assert error.error_code == ErrorCode.INVALID_SHEET_NAME
        assert "'a/b'" in error.message
        assert error.details["sheet_name"] == "a/b"
        assert error.sheet_name == "a/b"


class TestPayloadErrors:
    """Tests for payload error classes."""

    def test_payload_error(self) -> None:
        """Test the generic payload error."""
        error = PayloadError("Bad payload")

        assert error.error_code == ErrorCode.INVALID_PAYLOAD
        assert error.http_status == 400

    def test_payload_too_large(self) -> None:
        """Test row counts are recorded and status is 413."""
        error = PayloadTooLargeError(row_count=150, max_rows=100)

        assert isinstance(error, PayloadError)
        assert error.http_status == 413
        assert error.error_code == ErrorCode.PAYLOAD_TOO_LARGE
        assert "150" in error.message
        assert "100" in error.message
        assert error.details == {"row_count": 150, "max_rows": 100}

    def test_grid_too_large(self) -> None:
        """Test grid extents are recorded."""
        error = GridTooLargeError(rows=10, columns=20000)

        assert error.http_status == 400
        assert error.error_code == ErrorCode.GRID_TOO_LARGE
        assert error.rows == 10
        assert error.columns == 20000


class TestValidationError:
    """Tests for ValidationError class."""

    def test_with_errors(self) -> None:
        """Test field and error list are recorded."""
        error = ValidationError(
            "Invalid body", field="data", errors=["data.0.0: bad value"]
        )

        assert error.error_code == ErrorCode.REQUEST_VALIDATION_FAILED
        assert error.http_status == 400
        assert error.errors == ["data.0.0: bad value"]
        assert error.details == {
            "field": "data",
            "validation_errors": ["data.0.0: bad value"],
        }

    def test_without_errors(self) -> None:
        """Test details stay empty without extra information."""
        error = ValidationError("Invalid body")

        assert error.errors == []
        assert error.details == {}


class TestWorkbookWriteError:
    """Tests for WorkbookWriteError class."""

    def test_file_name_recorded(self) -> None:
        """Test the file name is recorded and status is 500."""
        error = WorkbookWriteError("Could not serialize", file_name="a.xlsx")

        assert error.http_status == 500
        assert error.error_code == ErrorCode.WORKBOOK_WRITE_FAILED
        assert error.details == {"file_name": "a.xlsx"}
