"""Services for the Excel creator."""

from excel_creator.services.cell_materializer import materialize, string_projection
from excel_creator.services.grid_assembler import ExcelService
from excel_creator.services.schema_resolver import SchemaResolver

__all__ = ["ExcelService", "SchemaResolver", "materialize", "string_projection"]
