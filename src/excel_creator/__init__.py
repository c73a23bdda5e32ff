"""Excel Creator - turns JSON rows and a column configuration into xlsx files."""

from excel_creator.api import app, create_app

__all__ = ["app", "create_app"]
__version__ = "0.1.0"


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from excel_creator.config import settings

    uvicorn.run(
        "excel_creator.api:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
