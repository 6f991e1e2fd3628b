from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from billmanager.pdf.host import PackageSpec


class TemplateError(Exception):
    """The invoice template is missing, unreadable or malformed."""


class PackageUnavailable(Exception):
    """A Typst package is not in the local cache and could not be fetched."""

    def __init__(self, spec: PackageSpec, url: str, destination: Path, reason: str = "") -> None:
        self.spec = spec
        self.url = url
        self.destination = destination
        self.reason = reason
        lines = [f"Package '{spec}' not found in cache."]
        if reason:
            lines.append(f"Reason: {reason}")
        lines += [
            "Please download it manually:",
            f"  1. Download from: {url}",
            f"  2. Extract to: {destination}",
        ]
        super().__init__("\n".join(lines))


class FontResolutionFailure(LookupError):
    """The compiler asked for a font index that was not enumerated."""

    def __init__(self, index: int, available: int) -> None:
        self.index = index
        self.available = available
        super().__init__(f"Font index {index} out of range ({available} fonts available)")


@dataclass(frozen=True)
class Diagnostic:
    message: str
    severity: str = "error"
    location: str | None = None
    hints: tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        text = f"{self.severity}: {self.message}"
        if self.location:
            text += f" ({self.location})"
        for hint in self.hints:
            text += f"\n  hint: {hint}"
        return text


class CompileError(Exception):
    """The compiler rejected the document. Carries every diagnostic it reported."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = list(diagnostics)
        summary = "\n".join(str(d) for d in self.diagnostics) or "unknown error"
        super().__init__(f"Typst compilation failed:\n{summary}")


class Stage(str, Enum):
    TEMPLATE = "template"
    HOST = "host"
    COMPILE = "compile"


class PdfGenerationError(Exception):
    """Wraps a failure of the invoice pipeline with the stage it happened in."""

    def __init__(self, stage: Stage, cause: Exception) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"PDF generation failed at {stage.value} stage: {cause}")
