from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import structlog

logger = structlog.getLogger(__name__)

Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    summary: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.summary}: {self.detail}" if self.detail else self.summary


class Diagnostics(list[Diagnostic]):
    """Errors and warnings collected while serving a resource call.

    Errors abort the current operation, warnings are reported and the operation goes on.
    """

    def add_error(self, summary: str, detail: str = "") -> None:
        logger.error(summary, detail=detail)
        self.append(Diagnostic("error", summary, detail))

    def add_warning(self, summary: str, detail: str = "") -> None:
        logger.warning(summary, detail=detail)
        self.append(Diagnostic("warning", summary, detail))

    def has_error(self) -> bool:
        return any(diag.severity == "error" for diag in self)

    @property
    def errors(self) -> list[Diagnostic]:
        return [diag for diag in self if diag.severity == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [diag for diag in self if diag.severity == "warning"]
