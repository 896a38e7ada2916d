"""Public interface for the ``political_fund_report`` package.

Symbol re-exports only; the engine lives in the submodules:

- ``assembler``: ``assemble_report`` (aggregate + validate)
- ``summary``: totals, carryover and the presence flag
- ``export``: full and single-form XML export
- ``repository``: read interfaces and the SQLAlchemy source
"""

from .assembler import AssemblyResult, assemble_report
from .config import ReportConfig
from .errors import ContractViolation, EncodingError, ReportValidationError
from .export import ExportResult, export_single_section_xml, export_xml
from .models import Profile, ReportData, Section, SummaryData, Transaction
from .repository import ReportSource, SqlReportSource, load_report_inputs
from .summary import build_presence_flag, compute_expense_summary, compute_summary
from .validation import ValidationIssue, ValidationResult, validate_report

__all__ = [
    # API
    "assemble_report",
    "build_presence_flag",
    "compute_expense_summary",
    "compute_summary",
    "export_single_section_xml",
    "export_xml",
    "load_report_inputs",
    "validate_report",
    # Models / types
    "AssemblyResult",
    "ExportResult",
    "Profile",
    "ReportConfig",
    "ReportData",
    "ReportSource",
    "Section",
    "SqlReportSource",
    "SummaryData",
    "Transaction",
    "ValidationIssue",
    "ValidationResult",
    # Errors
    "ContractViolation",
    "EncodingError",
    "ReportValidationError",
]
