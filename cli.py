from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
from dotenv import load_dotenv

from settings import get_settings


def _configure_logging() -> None:
    level = getattr(logging, get_settings().log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def create_app() -> typer.Typer:
    load_dotenv("local.env")

    from nedb_storage.registry import STORAGE
    from nedb_storage.transfer import export_collection, import_collection

    app = typer.Typer(
        name="whaler-nedb",
        help="Move whaler storage collections between the filesystem and NeDB",
        no_args_is_help=True,
        add_completion=False,
    )

    @app.callback()
    def main_callback() -> None:
        _configure_logging()

    @app.command("nedb:import")
    def nedb_import(
        name: str = typer.Argument(..., help="Storage name"),
        import_path: Optional[str] = typer.Argument(None, help="Import path"),
    ) -> None:
        """Import from FS to NeDB."""
        report = asyncio.run(import_collection(name, import_path, storage=STORAGE))
        if report.empty:
            typer.echo(f"No data in `{name}`", err=True)
            return
        typer.echo(f"Data from `{report.source}` imported to `{report.destination}`")

    @app.command("nedb:export")
    def nedb_export(
        name: str = typer.Argument(..., help="Storage name"),
        export_path: Optional[str] = typer.Argument(None, help="Export path"),
    ) -> None:
        """Export from NeDB to FS."""
        report = asyncio.run(export_collection(name, export_path, storage=STORAGE))
        if report.empty:
            typer.echo(f"No data in `{name}`", err=True)
            return
        typer.echo(f"Data from `{report.source}` exported to `{report.destination}`")

    return app


app = create_app()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
