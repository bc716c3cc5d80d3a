"""
Domain Exceptions for the budget importer.

Data-quality problems in a workbook are never raised; they are collected
as validation findings. Exceptions are reserved for contract violations:
- Missing workbook
- Misuse of the WBS tree
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# =============================================================================
# Input Contract Exceptions
# =============================================================================

class WorkbookContractError(DomainError):
    """Raised when the analyzer is handed something that is not a workbook."""

    def __init__(self, received: object = None):
        message = (
            "A workbook is required for analysis, "
            f"got {type(received).__name__}"
        )
        super().__init__(message, code="WORKBOOK_REQUIRED")
        self.received = received


# =============================================================================
# WBS Exceptions
# =============================================================================

class WBSStructureError(DomainError):
    """Raised when totals are attached to a node that rolls up its children."""

    def __init__(self, code: str):
        message = f"WBS node '{code}' has children; its totals are rolled up, not assigned"
        super().__init__(message, code="WBS_PARENT_TOTALS")
        self.wbs_code = code
