"""CLI for the ``political_fund_report`` package.

Commands read one organization's year from the database (``DATABASE_URL``,
loaded from a local ``.env`` by the root callback), assemble the report and
either write the Shift_JIS XML or print the validation findings.

Exit codes: ``0`` success, ``1`` input/encoding/contract failures, ``2``
validation errors (or warnings with ``--no-allow-warnings``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .assembler import AssemblyResult, assemble_report
from .config import ReportConfig
from .errors import ContractViolation, EncodingError, ReportValidationError
from .export import ExportResult, export_single_section_xml, export_xml
from .logging_setup import configure_logging
from .repository import SqlReportSource, load_report_inputs
from .validation import ValidationResult

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Assemble political-fund income/expenditure reports and export the filing XML.",
)

OrgIdOption = Annotated[str, typer.Option("--org-id", help="Political organization id.")]
YearOption = Annotated[int, typer.Option("--year", help="Financial year (e.g. 2025).")]
DatabaseUrlOption = Annotated[
    str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
]
OutputDirOption = Annotated[
    Path, typer.Option(file_okay=False, dir_okay=True, help="Directory the XML is written to.")
]
EncodingPolicyOption = Annotated[
    str | None,
    typer.Option(help="'strict' (reject non-Shift_JIS text) or 'replace' (write '?')."),
]
AllowWarningsOption = Annotated[
    bool, typer.Option(help="Export even when validation reported warnings.")
]


# ---- helpers -----------------------------------------------------------------


def _print_issues(validation: ValidationResult) -> None:
    if not validation.issues:
        console.print("[green]No validation issues.[/green]")
        return
    table = Table(title="Validation")
    table.add_column("severity")
    table.add_column("code")
    table.add_column("path")
    table.add_column("message")
    for issue in (*validation.errors, *validation.warnings):
        style = "red" if issue.severity == "error" else "yellow"
        table.add_row(f"[{style}]{issue.severity}[/{style}]", issue.code, issue.path, issue.message)
    console.print(table)


def _fail(message: str, code: int = 1) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(code)


def _assemble(
    org_id: str, year: int, database_url: str | None, config: ReportConfig
) -> AssemblyResult:
    from db.client import session_scope

    try:
        with session_scope(database_url=database_url) as session:
            inputs = load_report_inputs(SqlReportSource(session), org_id, year)
    except LookupError as e:
        raise _fail(str(e)) from e
    except ContractViolation as e:
        raise _fail(f"malformed data in database: {e}") from e
    return assemble_report(
        inputs.profile,
        inputs.transactions_by_category,
        config=config,
        prior_year_carryover=inputs.prior_year_carryover,
    )


def _gate(result: AssemblyResult, allow_warnings: bool) -> None:
    _print_issues(result.validation)
    if not result.validation.is_valid:
        raise _fail("validation failed; fix the errors above before exporting", 2)
    if result.validation.warnings and not allow_warnings:
        raise _fail("validation reported warnings (pass --allow-warnings to export anyway)", 2)


def _write(output_dir: Path, exported: ExportResult) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / exported.filename
    path.write_bytes(exported.data)
    console.print(f"[cyan]Wrote[/cyan] {path} ({len(exported.data)} bytes)")
    return path


def _config(encoding_policy: str | None) -> ReportConfig:
    try:
        return ReportConfig.from_env(encoding_policy=encoding_policy)
    except ValueError as e:
        raise _fail(str(e)) from e


# ---- commands ----------------------------------------------------------------


@app.command("export")
def export_cmd(
    org_id: OrgIdOption,
    year: YearOption,
    *,
    output_dir: OutputDirOption = Path("."),
    database_url: DatabaseUrlOption = None,
    encoding_policy: EncodingPolicyOption = None,
    allow_warnings: AllowWarningsOption = True,
) -> None:
    """Export the full report as ``SYUUSHI07_<org>_<year>.xml``."""

    config = _config(encoding_policy)
    result = _assemble(org_id, year, database_url, config)
    _gate(result, allow_warnings)
    try:
        exported = export_xml(result, config=config)
    except ReportValidationError as e:
        raise _fail(str(e), 2) from e
    except EncodingError as e:
        raise _fail(str(e)) from e
    _write(output_dir, exported)


@app.command("export-section")
def export_section_cmd(
    form_id: Annotated[str, typer.Argument(help="Form code, e.g. SYUUSHI07_06.")],
    org_id: OrgIdOption,
    year: YearOption,
    *,
    output_dir: OutputDirOption = Path("."),
    database_url: DatabaseUrlOption = None,
    encoding_policy: EncodingPolicyOption = None,
    allow_warnings: AllowWarningsOption = True,
) -> None:
    """Export a single form as ``<FORM_ID>_<org>_<year>.xml``."""

    config = _config(encoding_policy)
    result = _assemble(org_id, year, database_url, config)
    _gate(result, allow_warnings)
    try:
        exported = export_single_section_xml(form_id.strip().upper(), result, config=config)
    except ReportValidationError as e:
        raise _fail(str(e), 2) from e
    except (ContractViolation, EncodingError) as e:
        raise _fail(str(e)) from e
    _write(output_dir, exported)


@app.command("validate")
def validate_cmd(
    org_id: OrgIdOption,
    year: YearOption,
    *,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Print validation findings; exit 2 when there are errors."""

    result = _assemble(org_id, year, database_url, _config(None))
    _print_issues(result.validation)
    if not result.validation.is_valid:
        raise typer.Exit(2)


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
