"""Minimum-viability checks for a parsed document."""

from pydantic import BaseModel

from .base import ParsedDocument, parse_absolute_url


class ValidationReport(BaseModel):
    valid: bool
    errors: list[str]


def validate_document(doc: ParsedDocument) -> ValidationReport:
    """Check a parsed document and report every problem found.

    All checks run independently so callers can show every reason at once.
    """
    errors = []
    if not doc.base_url:
        errors.append("Missing base URL")
    if parse_absolute_url(doc.base_url) is None:
        errors.append("Invalid base URL format")
    if not doc.endpoints:
        errors.append("No endpoints found")
    return ValidationReport(valid=not errors, errors=errors)
