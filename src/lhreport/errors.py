"""Exception taxonomy for report generation."""

from __future__ import annotations


class ReportError(Exception):
    """Base class for every failure surfaced to callers of the generator."""


class ValidationError(ReportError):
    """The audit payload is malformed or misses required fields.

    ``details`` carries one human-readable message per problem found.
    """

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class TemplateError(ReportError):
    """The report template is malformed (e.g. an unclosed repeat block)."""


class TemplateLoadError(TemplateError):
    """The report template file could not be read."""


class RenderError(ReportError):
    """The headless browser failed to launch, navigate or print the PDF."""


class AssetCopyError(ReportError):
    """Static assets could not be copied next to the working HTML.

    Non-fatal: the generator logs it and renders without styling assets.
    """
