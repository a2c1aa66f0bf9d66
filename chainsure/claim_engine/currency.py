"""
Currency Conversion
-------------------
INR <-> ledger native units (octas). The same pair is used for claim payouts
and premium display, so a convert -> display -> convert round trip never drifts
by more than one flooring step.
"""

from chainsure.claim_engine.constants import UNIT_DECIMALS, RATE


def to_ledger_units(amount: int) -> int:
    """floor(amount * UNIT_DECIMALS / RATE). Floors so a payout never over-credits."""
    amount = int(amount)
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    return (amount * UNIT_DECIMALS) // RATE


def from_ledger_units(units: int) -> float:
    """Inverse of to_ledger_units, in home-currency units."""
    units = int(units)
    if units < 0:
        raise ValueError(f"Ledger amount must be non-negative, got {units}")
    return units * RATE / UNIT_DECIMALS


def format_apt(units: int) -> str:
    """Render octas as whole APT with 4 decimals (e.g. 500000 -> '0.0050')."""
    return f"{int(units) / UNIT_DECIMALS:.4f}"
