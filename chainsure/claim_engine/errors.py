"""Exception hierarchy for claim adjudication, settlement and the ledger client."""

from typing import Optional


class ChainSureError(Exception):
    """Base error. `status_code` is the HTTP status the API layer maps it to."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "error_type": type(self).__name__,
            **({"details": self.details} if self.details else {}),
        }


class InvalidClaimRequest(ChainSureError):
    """Missing policy/address/amount or non-positive amount. No external calls are made."""

    status_code = 400


class PolicyNotEligible(InvalidClaimRequest):
    """Policy unknown, not owned by the claimant, or expired by duration."""


class DuplicateClaim(ChainSureError):
    """A claim already exists (or is in flight) for this policy."""

    status_code = 409


class ConsentRequired(ChainSureError):
    status_code = 403


class NotFound(ChainSureError):
    status_code = 404


class ScoringUnavailable(ChainSureError):
    """External scoring failed; always recovered by the mock fallback."""

    status_code = 503


class LedgerError(ChainSureError):
    """Ledger read/write or treasury configuration failure."""

    status_code = 502


class SettlementFailure(LedgerError):
    """Transfer submission or confirmation failed after an APPROVED decision."""
