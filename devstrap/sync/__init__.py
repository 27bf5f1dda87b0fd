"""
Convergence of the machine toward the desired configuration.
"""

from .report import ErrorKind, ErrorReport, ReportEntry

__all__ = ["ErrorKind", "ErrorReport", "ReportEntry"]
