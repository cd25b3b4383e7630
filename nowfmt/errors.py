# nowfmt/errors.py
from typing import Optional


class NowfmtError(Exception):
    pass


class _LocatedError(NowfmtError):
    """Error tied to a position in the template source (1-based, when known)."""

    def __init__(self, reason: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.line = line
        self.column = column

    def __str__(self) -> str:
        line = "?" if self.line is None else self.line
        column = "?" if self.column is None else self.column
        return f"{self.reason}\n(at line {line}, column {column})"


class TemplateError(_LocatedError):
    pass


class RenderError(_LocatedError):
    pass


class SnapshotError(NowfmtError):
    pass
