"""
Claim Engine Constants
----------------------
Centralized constants shared by scoring, decisioning, settlement and the policy read model.
"""

# 💱 Ledger currency (Aptos): 1 APT = 10^8 octas
UNIT_DECIMALS = 100_000_000
# Home-currency (INR) units per whole ledger unit, as used for premiums and payouts
RATE = 1_000_000

# ⚖️ Adjudication thresholds (inclusive upper bounds)
APPROVE_MAX_SCORE = 30
PENDING_MAX_SCORE = 70

# 🎭 Mock scoring
MOCK_AMOUNT_CEILING = 100_000
MOCK_WEIGHTS = (0.3, 0.4, 0.3)
# (amount coefficient, random coefficient) per sub-model
MOCK_SUBSCORE_COEFFICIENTS = ((40, 30), (35, 25), (30, 20))

# 🏦 Treasury
DEFAULT_TOPUP_OCTAS = 200_000_000
ADMIN_KEY_HEX_LENGTH = 64

# 👤 On-ledger roles
ROLE_UNREGISTERED = 0
ROLE_POLICYHOLDER = 1
ROLE_ADMIN = 2

# 📄 On-ledger status flags
POLICY_STATUS_ACTIVE = 1
POLICY_STATUS_INACTIVE = 2
USER_POLICY_STATUS_ACTIVE = 1
USER_POLICY_STATUS_EXPIRED = 2
USER_POLICY_STATUS_CANCELLED = 3

SECONDS_PER_DAY = 24 * 60 * 60

# 🆔 ABHA ids are XX-XXXX-XXXX-XXXX
ABHA_ID_PATTERN = r"^\d{2}-\d{4}-\d{4}-\d{4}$"
# Aptos account addresses: 0x + 1..64 hex chars
ACCOUNT_ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{1,64}$"
