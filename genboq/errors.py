# genboq/errors.py
"""
Typed failures raised by the BOQ engines.

Room metrics and pricing never raise; everything that talks to the completion
oracle or enforces a domain rule raises one of these.
"""

from typing import List, Optional


class BoqGenerationError(Exception):
    """Base class: 'generation failed'."""

    def __init__(self, message: str = "generation failed"):
        super().__init__(message)
        self.message = message


class ConfigurationError(BoqGenerationError):
    """Missing credentials or a misconfigured oracle. Never retried."""


class OracleCommunicationError(BoqGenerationError):
    """Network failure, timeout or empty response from the completion oracle."""


class ResponseSchemaError(BoqGenerationError):
    """Malformed or incomplete structured response."""

    def __init__(self, message: str, raw_response: Optional[str] = None):
        super().__init__(message)
        self.raw_response = raw_response


class DomainInvariantError(BoqGenerationError):
    """A BOQ rule the engine cannot reconcile (quantity, mount ratio, edits)."""


class BrandLockViolation(DomainInvariantError):
    """An item in a brand-locked sub-category carries a different brand."""

    def __init__(self, message: str, offending_items: Optional[List] = None):
        super().__init__(message)
        self.offending_items = offending_items or []


class OperationInProgressError(Exception):
    """A generate/refine/validate call is already running for this room."""


class StaleResultError(Exception):
    """The room changed while an operation was in flight; its result is dropped."""
