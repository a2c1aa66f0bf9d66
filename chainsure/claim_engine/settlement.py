"""
Settlement Orchestrator
-----------------------
Pays out approved claims from the treasury.

- No transfer required -> returns immediately, nothing attempted.
- Otherwise exactly one call to the ledger transfer primitive; any failure is
  returned as `error`, never raised. The APPROVED decision stands either way.
- No idempotency here: the claim ledger's one-claim-per-policy reservation is
  what prevents a second payout.
"""

from typing import Optional

from chainsure.models.claim import Decision, SettlementResult
from chainsure.ledger.aptos_client import LedgerClient
from chainsure.claim_engine.currency import format_apt
from chainsure.claim_engine.errors import ChainSureError
from chainsure.utils.logger import logger, log_event


class SettlementOrchestrator:

    def __init__(self, ledger: LedgerClient):
        self.ledger = ledger

    async def settle(self, claimant_address: str, decision: Decision, policy_id: Optional[str] = None) -> SettlementResult:
        if not decision.requires_transfer:
            return SettlementResult()

        amount = decision.transfer_amount
        try:
            tx_hash = await self.ledger.transfer_native(claimant_address, amount)
        except ChainSureError as e:
            log_event(
                "settlement_failed",
                level="error",
                user_address=claimant_address,
                policy_id=policy_id,
                amount_octas=amount,
                error=e.message,
            )
            return SettlementResult(attempted=True, error=e.message)
        except Exception as e:
            logger.exception(f"❌ Unexpected settlement error for {claimant_address}")
            return SettlementResult(attempted=True, error=f"Settlement failed: {e}")

        log_event(
            "settlement_complete",
            user_address=claimant_address,
            policy_id=policy_id,
            amount_octas=amount,
            amount_apt=format_apt(amount),
            tx_hash=tx_hash,
        )
        return SettlementResult(attempted=True, transaction_hash=tx_hash)
