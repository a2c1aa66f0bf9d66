"""
Ledger Client
-------------
Read/write primitives against the Aptos devnet and the insurance portal module.

Reads (view functions): all policies, policies for an address, user role, init flag.
Write: one native-coin transfer from the treasury (admin) account, preceded by a
best-effort faucet top-up. Policy creation, purchase and role registration are
signed by the user's wallet and never pass through this service.
"""

import json
import re
from pathlib import Path
from typing import Any, List, Optional

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import FaucetClient, RestClient

from chainsure.config import config
from chainsure.models.policy import LedgerPolicy, LedgerUserPolicy
from chainsure.claim_engine.constants import ADMIN_KEY_HEX_LENGTH, DEFAULT_TOPUP_OCTAS, ROLE_UNREGISTERED
from chainsure.claim_engine.currency import format_apt
from chainsure.claim_engine.errors import LedgerError, SettlementFailure
from chainsure.utils.logger import logger

_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")


def normalize_admin_key(raw_key: Optional[str]) -> str:
    """Strip whitespace and any 0x prefix, require 64 hex chars, return with 0x."""
    key = re.sub(r"\s+", "", raw_key or "")
    if key.startswith("0x"):
        key = key[2:]
    if not key:
        raise LedgerError("Admin private key not configured. Set ADMIN_PRIVATE_KEY_HEX or ADMIN_KEY_FILE.")
    if len(key) != ADMIN_KEY_HEX_LENGTH:
        raise LedgerError(f"Invalid private key length: {len(key)}. Expected {ADMIN_KEY_HEX_LENGTH} hex characters.")
    if not _HEX_RE.match(key):
        raise LedgerError("Private key contains invalid hex characters.")
    return "0x" + key


def read_admin_key(key_hex: Optional[str] = None, key_file: Optional[str] = None) -> str:
    """Environment value first, then the key file."""
    if not key_hex and key_file:
        try:
            key_hex = Path(key_file).read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.error(f"❌ Failed to read admin key file {key_file}: {e}")
    return normalize_admin_key(key_hex)


# =========================================================
# 🧩 Interface
# =========================================================
class LedgerClient:
    """Operations the claim service needs from the ledger."""

    async def get_all_policies(self) -> List[LedgerPolicy]:
        raise NotImplementedError

    async def get_user_policies(self, address: str) -> List[LedgerUserPolicy]:
        raise NotImplementedError

    async def get_user_role(self, address: str) -> int:
        raise NotImplementedError

    async def is_initialized(self) -> bool:
        raise NotImplementedError

    async def transfer_native(self, recipient: str, amount_octas: int) -> str:
        """Transfer from the treasury; returns the confirmed transaction hash."""
        raise NotImplementedError

    @property
    def treasury_address(self) -> str:
        raise NotImplementedError

    async def close(self) -> None:
        return None


# =========================================================
# ⛓️ Aptos Implementation
# =========================================================
class AptosLedgerClient(LedgerClient):

    def __init__(
        self,
        node_url: str,
        faucet_url: Optional[str],
        contract_address: str,
        admin_key_hex: Optional[str] = None,
        admin_key_file: Optional[str] = None,
        topup_octas: int = DEFAULT_TOPUP_OCTAS,
    ):
        self.rest = RestClient(node_url)
        self.faucet = FaucetClient(faucet_url, self.rest) if faucet_url else None
        self.contract_address = contract_address
        self.topup_octas = topup_octas
        self._admin_key_hex = admin_key_hex
        self._admin_key_file = admin_key_file
        self._treasury: Optional[Account] = None

    # ---------------- Treasury ---------------- #
    def treasury_account(self) -> Account:
        if self._treasury is None:
            self._treasury = Account.load_key(read_admin_key(self._admin_key_hex, self._admin_key_file))
        return self._treasury

    @property
    def treasury_address(self) -> str:
        return str(self.treasury_account().address())

    # ---------------- Views ---------------- #
    async def _view(self, module: str, function: str, arguments: Optional[List[str]] = None) -> List[Any]:
        fn = f"{self.contract_address}::{module}::{function}"
        try:
            result = await self.rest.view(fn, [], arguments or [])
        except Exception as e:
            raise LedgerError(f"View call {fn} failed: {e}") from e
        if isinstance(result, (bytes, str)):
            result = json.loads(result)
        return result or []

    async def get_all_policies(self) -> List[LedgerPolicy]:
        result = await self._view("insurance_portal", "get_all_policies")
        return [LedgerPolicy.model_validate(p) for p in (result[0] if result else [])]

    async def get_user_policies(self, address: str) -> List[LedgerUserPolicy]:
        result = await self._view("insurance_portal", "get_my_policies", [address])
        return [LedgerUserPolicy.model_validate(p) for p in (result[0] if result else [])]

    async def get_user_role(self, address: str) -> int:
        try:
            result = await self._view("insurance_portal", "get_user_role", [address])
            return int(result[0])
        except (LedgerError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"⚠️ Role lookup failed for {address}, treating as unregistered: {e}")
            return ROLE_UNREGISTERED

    async def is_initialized(self) -> bool:
        try:
            result = await self._view("insurance_portal", "is_initialized")
            return bool(result[0])
        except (LedgerError, IndexError) as e:
            logger.warning(f"⚠️ Portal initialization check failed: {e}")
            return False

    # ---------------- Transfer ---------------- #
    async def _top_up_treasury(self, treasury: Account) -> bool:
        if not self.faucet or self.topup_octas <= 0:
            return False
        try:
            await self.faucet.fund_account(treasury.address(), self.topup_octas)
            logger.info(f"✅ Treasury funded via faucet ({format_apt(self.topup_octas)} APT)")
            return True
        except Exception as e:
            logger.warning(f"⚠️ Faucet top-up failed, continuing with existing balance: {e}")
            return False

    async def _log_balance(self, label: str, address: AccountAddress) -> None:
        try:
            balance = await self.rest.account_balance(address)
            logger.info(f"💳 {label} balance: {format_apt(balance)} APT")
        except Exception as e:
            logger.debug(f"Balance lookup skipped for {label}: {e}")

    async def transfer_native(self, recipient: str, amount_octas: int) -> str:
        treasury = self.treasury_account()
        await self._top_up_treasury(treasury)
        await self._log_balance("Treasury", treasury.address())

        try:
            recipient_address = AccountAddress.from_str_relaxed(recipient.strip())
            logger.info(f"📤 Submitting transfer of {format_apt(amount_octas)} APT to {recipient}")
            txn_hash = await self.rest.bcs_transfer(treasury, recipient_address, int(amount_octas))
            logger.info(f"⏳ Waiting for confirmation of {txn_hash}")
            await self.rest.wait_for_transaction(txn_hash)
        except Exception as e:
            raise SettlementFailure(f"Transfer to {recipient} failed: {e}") from e

        await self._log_balance("Recipient", recipient_address)
        return txn_hash

    async def close(self) -> None:
        await self.rest.close()


def build_ledger_client() -> AptosLedgerClient:
    return AptosLedgerClient(
        node_url=config.APTOS_NODE_URL,
        faucet_url=config.APTOS_FAUCET_URL,
        contract_address=config.CONTRACT_ADDRESS,
        admin_key_hex=config.ADMIN_PRIVATE_KEY_HEX,
        admin_key_file=config.ADMIN_KEY_FILE,
        topup_octas=config.TREASURY_TOPUP_OCTAS,
    )
