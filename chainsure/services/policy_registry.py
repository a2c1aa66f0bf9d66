"""
Policy Registry
---------------
Read model over the ledger's policy registry and purchase records.

The ledger is authoritative for which policies exist and who bought them.
Whether a purchase is still Active is derived here from purchase date plus
duration, because the stored on-ledger status flag is never flipped to expired.
Claim state comes from the local claim ledger and is merged in `reconcile`.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from chainsure.models.policy import (
    LedgerPolicy,
    LedgerUserPolicy,
    PolicyView,
    UserPolicyStatus,
    UserPolicyView,
    policy_type_label,
)
from chainsure.ledger.aptos_client import LedgerClient
from chainsure.claim_engine.claim_ledger import ClaimLedger
from chainsure.claim_engine.constants import USER_POLICY_STATUS_ACTIVE, USER_POLICY_STATUS_CANCELLED
from chainsure.claim_engine.currency import format_apt, to_ledger_units
from chainsure.claim_engine.errors import PolicyNotEligible
from chainsure.utils.cache import RedisCache
from chainsure.utils.logger import logger

POLICIES_CACHE_KEY = "ledger:policies"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_status(
    user_policy: LedgerUserPolicy,
    policy: Optional[LedgerPolicy],
    now: datetime,
) -> Tuple[UserPolicyStatus, Optional[datetime]]:
    """
    Active/Expired by `purchase_date + duration_days` against `now`.
    Falls back to the ledger flag only when the policy terms are unknown.
    """
    if user_policy.status == USER_POLICY_STATUS_CANCELLED:
        return UserPolicyStatus.CANCELLED, None

    if policy is None:
        status = UserPolicyStatus.ACTIVE if user_policy.status == USER_POLICY_STATUS_ACTIVE else UserPolicyStatus.EXPIRED
        return status, None

    purchased = datetime.fromtimestamp(user_policy.purchase_date, tz=timezone.utc)
    expires_at = purchased + timedelta(days=policy.duration_days)
    return (UserPolicyStatus.EXPIRED if now > expires_at else UserPolicyStatus.ACTIVE), expires_at


def reconcile(
    user_policies: List[LedgerUserPolicy],
    policies: List[LedgerPolicy],
    claims: ClaimLedger,
    now: datetime,
) -> List[UserPolicyView]:
    """Merge ledger purchases (authoritative) with local claim state (advisory)."""
    by_id = {p.policy_id: p for p in policies}
    views = []
    for up in user_policies:
        policy = by_id.get(up.policy_id)
        status, expires_at = derive_status(up, policy, now)
        claim = claims.get(up.policy_id, up.user_address)
        views.append(UserPolicyView(
            id=up.id,
            policy_id=up.policy_id,
            user_address=up.user_address,
            purchase_date=datetime.fromtimestamp(up.purchase_date, tz=timezone.utc),
            expires_at=expires_at,
            status=status,
            premium_paid=up.premium_paid,
            policy=policy,
            has_claim=claim is not None,
            claim=claim,
        ))
    return views


class PolicyRegistry:

    def __init__(
        self,
        ledger: LedgerClient,
        cache: Optional[RedisCache] = None,
        cache_ttl: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger = ledger
        self.cache = cache or RedisCache()
        self.cache_ttl = cache_ttl
        self.clock = clock

    async def all_policies(self) -> List[LedgerPolicy]:
        cached = self.cache.get(POLICIES_CACHE_KEY)
        if cached is not None:
            return [LedgerPolicy.model_validate(p) for p in cached]

        policies = await self.ledger.get_all_policies()
        self.cache.set(POLICIES_CACHE_KEY, [p.model_dump() for p in policies], expire=self.cache_ttl)
        logger.debug(f"Loaded {len(policies)} policies from ledger.")
        return policies

    async def get_policy(self, policy_id: str) -> Optional[LedgerPolicy]:
        for policy in await self.all_policies():
            if policy.policy_id == str(policy_id):
                return policy
        return None

    async def policy_views(self) -> List[PolicyView]:
        views = []
        for policy in await self.all_policies():
            monthly_octas = to_ledger_units(policy.monthly_premium)
            views.append(PolicyView(
                policy=policy,
                type_label=policy_type_label(policy.policy_type),
                monthly_premium_octas=monthly_octas,
                monthly_premium_apt=format_apt(monthly_octas),
                yearly_premium_octas=to_ledger_units(policy.yearly_premium),
            ))
        return views

    async def user_policies(self, address: str, claims: ClaimLedger) -> List[UserPolicyView]:
        user_policies = await self.ledger.get_user_policies(address)
        if not user_policies:
            return []
        return reconcile(user_policies, await self.all_policies(), claims, self.clock())

    async def resolve_claimable(self, policy_id: str, address: str) -> Tuple[LedgerUserPolicy, LedgerPolicy]:
        """The caller's purchase of `policy_id` and its terms; PolicyNotEligible otherwise."""
        purchases = [up for up in await self.ledger.get_user_policies(address) if up.policy_id == str(policy_id)]
        if not purchases:
            raise PolicyNotEligible("Policy not found for this wallet", {"policy_id": str(policy_id)})

        policy = await self.get_policy(policy_id)
        if policy is None:
            raise PolicyNotEligible("Policy terms not found on ledger", {"policy_id": str(policy_id)})

        now = self.clock()
        for purchase in purchases:
            status, _ = derive_status(purchase, policy, now)
            if status == UserPolicyStatus.ACTIVE:
                return purchase, policy
        raise PolicyNotEligible(
            "Policy expired. Claims cannot be made on expired policies.",
            {"policy_id": str(policy_id)},
        )
