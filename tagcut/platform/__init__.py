"""Operating-system boundary: process execution and file writes."""

from tagcut.platform.files import atomic_write_text
from tagcut.platform.process import CapturedProcess, ProcessError, run, run_with_input

__all__ = ["CapturedProcess", "ProcessError", "atomic_write_text", "run", "run_with_input"]
