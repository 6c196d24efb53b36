"""Structured feedback produced while decoding and validating configuration.

Diagnostics are collected rather than raised so that a user sees every problem
in a component configuration in a single pass.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
import logging

from mashumaro import DataClassDictMixin
from mashumaro.config import BaseConfig

__all__ = [
    "Severity",
    "SourceRange",
    "Diagnostic",
    "Diagnostics",
    "error",
    "warning",
]

_LOGGER = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity of a diagnostic."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class SourceRange(DataClassDictMixin):
    """Location in a configuration file a diagnostic refers to."""

    filename: str
    line: int
    """1-based line number."""

    column: int
    """1-based column number."""

    def __str__(self) -> str:
        return f"{self.filename}:{self.line},{self.column}"


@dataclass(frozen=True)
class Diagnostic(DataClassDictMixin):
    """One unit of decode or validation feedback."""

    severity: Severity
    summary: str
    detail: str = ""
    subject: SourceRange | None = None

    def __str__(self) -> str:
        prefix = f"{self.subject}: " if self.subject else ""
        text = f"{prefix}{self.severity.value}: {self.summary}"
        if self.detail:
            text += f"; {self.detail}"
        return text

    class Config(BaseConfig):
        omit_none = True


def error(summary: str, detail: str = "", subject: SourceRange | None = None) -> Diagnostic:
    """Return an error diagnostic."""
    return Diagnostic(Severity.ERROR, summary, detail, subject)


def warning(
    summary: str, detail: str = "", subject: SourceRange | None = None
) -> Diagnostic:
    """Return a warning diagnostic."""
    return Diagnostic(Severity.WARNING, summary, detail, subject)


class Diagnostics(list[Diagnostic]):
    """An ordered collection of diagnostics."""

    def __init__(self, diagnostics: Iterable[Diagnostic] = ()) -> None:
        super().__init__(diagnostics)

    def has_errors(self) -> bool:
        """Return True if any diagnostic has error severity."""
        return any(diag.severity == Severity.ERROR for diag in self)

    def errors(self) -> list[Diagnostic]:
        """Return only the error diagnostics."""
        return [diag for diag in self if diag.severity == Severity.ERROR]

    def warnings(self) -> list[Diagnostic]:
        """Return only the warning diagnostics."""
        return [diag for diag in self if diag.severity == Severity.WARNING]

    def log(self, component: str) -> None:
        """Log every diagnostic at the level matching its severity."""
        for diag in self:
            if diag.severity == Severity.ERROR:
                _LOGGER.error("%s: %s", component, diag)
            else:
                _LOGGER.warning("%s: %s", component, diag)

    def __str__(self) -> str:
        return "\n".join(str(diag) for diag in self)
