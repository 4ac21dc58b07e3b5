"""Reporting exports."""
from .base import ReportManager, Reporter
from .json_reporter import JsonReporter, build_payload
from .terminal import TerminalReporter, render_report

__all__ = [
    "ReportManager",
    "Reporter",
    "JsonReporter",
    "TerminalReporter",
    "build_payload",
    "render_report",
]
