"""
Configuration management for the ChainSure claims backend.
----------------------------------------------------------
- Loads environment variables from `.env` (for local) or runtime environment (devnet/prod).
- Centralized access for the fraud-scoring service, ledger node, treasury key and claim store.
- Includes computed flags for scoring, durable storage and AWS runtime detection.
"""

import os
import json
import secrets
from typing import Optional, List
from dotenv import load_dotenv

# Load .env only in local/dev mode
if os.getenv("ENV", "local") == "local":
    load_dotenv()


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> List[str]:
    return [v.strip() for v in str(value).split(",") if v.strip()]


class Config:
    """Central configuration object for all service-level environment variables."""

    # =========================================================
    # 🧩 Helper
    # =========================================================
    @staticmethod
    def _from_env(key: str, default=None, cast=None):
        """Load environment variable with optional casting."""
        value = os.getenv(key, default)
        if cast and value is not None:
            try:
                return cast(value)
            except (TypeError, ValueError):
                return default
        return value

    # =========================================================
    # 🚀 APP SETTINGS
    # =========================================================
    ENV: str = _from_env.__func__("ENV", "local")  # local/dev/test/prod
    DEBUG: bool = _from_env.__func__("DEBUG", "True", _as_bool)
    LOG_LEVEL: str = _from_env.__func__("LOG_LEVEL", "INFO").upper()
    LOG_FILE: Optional[str] = _from_env.__func__("LOG_FILE")
    CLOUDWATCH_LOG_GROUP: Optional[str] = _from_env.__func__("CLOUDWATCH_LOG_GROUP")
    AWS_REGION: str = _from_env.__func__("AWS_REGION", "ap-south-1")
    API_HOST: str = _from_env.__func__("API_HOST", "0.0.0.0")
    API_PORT: int = _from_env.__func__("API_PORT", 8000, int)
    ALLOWED_ORIGINS: List[str] = _from_env.__func__("ALLOWED_ORIGINS", "*", _as_list)

    # =========================================================
    # 🧠 FRAUD SCORING SERVICE
    # =========================================================
    FRAUD_API_URL: Optional[str] = _from_env.__func__("FRAUD_API_URL")
    FRAUD_API_TIMEOUT: float = _from_env.__func__("FRAUD_API_TIMEOUT", 15, float)

    # =========================================================
    # ⛓️ LEDGER (Aptos devnet)
    # =========================================================
    APTOS_NODE_URL: str = _from_env.__func__("APTOS_NODE_URL", "https://fullnode.devnet.aptoslabs.com/v1")
    APTOS_FAUCET_URL: str = _from_env.__func__("APTOS_FAUCET_URL", "https://faucet.devnet.aptoslabs.com")
    CONTRACT_ADDRESS: str = _from_env.__func__(
        "CONTRACT_ADDRESS",
        "0x7db1a4673c2c6a1c3031c16410ee916af2b3fcd809ba5b92ce920bcca202679f",
    )
    ADMIN_PRIVATE_KEY_HEX: Optional[str] = _from_env.__func__("ADMIN_PRIVATE_KEY_HEX")
    ADMIN_KEY_FILE: Optional[str] = _from_env.__func__("ADMIN_KEY_FILE")
    TREASURY_TOPUP_OCTAS: int = _from_env.__func__("TREASURY_TOPUP_OCTAS", 200_000_000, int)

    # =========================================================
    # 🗄️ CLAIM STORE & CACHE
    # =========================================================
    DB_URL: str = _from_env.__func__("DB_URL", "sqlite:///./chainsure.db")
    CLAIM_STORE: str = _from_env.__func__("CLAIM_STORE", "memory").lower()  # memory/db
    REDIS_URL: Optional[str] = _from_env.__func__("REDIS_URL")
    POLICY_CACHE_TTL: int = _from_env.__func__("POLICY_CACHE_TTL", 30, int)
    ENFORCE_POLICY_CHECKS: bool = _from_env.__func__("ENFORCE_POLICY_CHECKS", "True", _as_bool)

    # =========================================================
    # 🔐 SESSION TOKENS
    # =========================================================
    JWT_SECRET: str = _from_env.__func__("JWT_SECRET") or secrets.token_hex(32)
    JWT_ALGORITHM: str = _from_env.__func__("JWT_ALGORITHM", "HS256")
    JWT_EXPIRY_MINUTES: int = _from_env.__func__("JWT_EXPIRY_MINUTES", 30, int)

    # =========================================================
    # ✅ Computed Properties
    # =========================================================
    @property
    def is_scoring_enabled(self) -> bool:
        """True when an external fraud-scoring service is configured."""
        return bool(self.FRAUD_API_URL)

    @property
    def is_durable_store(self) -> bool:
        """Claims are written to the database instead of the session cache."""
        return self.CLAIM_STORE == "db"

    @property
    def is_test_env(self) -> bool:
        return self.ENV.lower() in ("test", "testing")

    @property
    def is_aws_runtime(self) -> bool:
        """Detect AWS runtime environment."""
        env_vars = ["AWS_EXECUTION_ENV", "ECS_CONTAINER_METADATA_URI", "LAMBDA_TASK_ROOT"]
        return any(os.getenv(v) for v in env_vars)

    # =========================================================
    # 📋 Config Summary
    # =========================================================
    @staticmethod
    def _redact(value: Optional[str]) -> Optional[str]:
        """Redact sensitive info for display."""
        if not value:
            return None
        if len(value) <= 6:
            return "***"
        return f"{value[:3]}***{value[-3:]}"

    def summary(self) -> dict:
        return {
            "ENV": self.ENV,
            "DEBUG": self.DEBUG,
            "FRAUD_API_URL": self.FRAUD_API_URL,
            "APTOS_NODE_URL": self.APTOS_NODE_URL,
            "CONTRACT_ADDRESS": self.CONTRACT_ADDRESS,
            "ADMIN_PRIVATE_KEY_HEX": self._redact(self.ADMIN_PRIVATE_KEY_HEX),
            "JWT_SECRET": self._redact(self.JWT_SECRET),
            "CLAIM_STORE": self.CLAIM_STORE,
            "DB_URL": self.DB_URL,
            "REDIS_URL": self.REDIS_URL,
            "SCORING_ENABLED": self.is_scoring_enabled,
            "ENFORCE_POLICY_CHECKS": self.ENFORCE_POLICY_CHECKS,
            "AWS_RUNTIME": self.is_aws_runtime,
        }

    def print_summary(self) -> None:
        """Pretty-print configuration summary (safe for logs)."""
        print("\n🔧 Active Configuration:")
        print(json.dumps(self.summary(), indent=4))


# =========================================================
# Instantiate Global Config
# =========================================================
config = Config()

if __name__ == "__main__":
    config.print_summary()
