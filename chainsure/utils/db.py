"""
Database Utility
----------------
Durable claim store (CLAIM_STORE=db). SQLite by default, any SQLAlchemy URL works.
One row per (user_address, policy_id): the unique constraint backs the
one-claim-per-policy rule across restarts.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    insert,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from chainsure.config import config
from chainsure.models.claim import Claim
from chainsure.claim_engine.errors import DuplicateClaim
from chainsure.utils.logger import logger
from chainsure.utils.security import canonical_address

# =========================================================
# 🧱 Schema
# =========================================================
metadata = MetaData()

claims_table = Table(
    "claims",
    metadata,
    Column("claim_id", String(128), primary_key=True),
    Column("policy_id", String(64), nullable=False),
    Column("user_address", String(80), nullable=False, index=True),
    Column("claim_amount", Integer, nullable=False),
    Column("aggregate_score", Integer, nullable=False),
    Column("status", String(16), nullable=False),
    Column("risk_level", String(16), nullable=False),
    Column("score_source", String(16), nullable=False),
    Column("transfer_amount", Integer, nullable=False, default=0),
    Column("transaction_hash", String(128)),
    Column("settlement_error", Text),
    Column("claimed_at", DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)),
    UniqueConstraint("user_address", "policy_id", name="uq_claims_user_policy"),
)


# =========================================================
# ⚙️ Engine / Sessions
# =========================================================
def create_db_engine(url: Optional[str] = None) -> Engine:
    url = url or config.DB_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {"connect_timeout": 10}
    engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
    logger.info(f"✅ Database engine initialized: {url}")
    return engine


def init_db(engine: Engine) -> None:
    """Create tables if missing."""
    metadata.create_all(engine)
    logger.info("✅ Claim tables ready.")


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# =========================================================
# 💾 Claim Utilities
# =========================================================
def save_claim_to_db(claim: Claim, db: Session) -> None:
    row = claim.model_dump(mode="python")
    row["user_address"] = canonical_address(claim.user_address)
    row["status"] = claim.status.value
    row["risk_level"] = claim.risk_level.value
    row["score_source"] = claim.score_source.value
    try:
        db.execute(insert(claims_table).values(**row))
        db.commit()
        logger.debug(f"💾 Claim saved {claim.claim_id} for {claim.user_address}")
    except IntegrityError as e:
        db.rollback()
        raise DuplicateClaim(
            "You can only make one claim per policy. This policy already has a claim.",
            {"policy_id": claim.policy_id},
        ) from e
    except Exception:
        db.rollback()
        raise


def _row_to_claim(row) -> Claim:
    return Claim.model_validate(dict(row._mapping))


def get_claim_from_db(db: Session, user_address: str, policy_id: str) -> Optional[Claim]:
    stmt = select(claims_table).where(
        claims_table.c.user_address == canonical_address(user_address),
        claims_table.c.policy_id == str(policy_id),
    )
    row = db.execute(stmt).first()
    return _row_to_claim(row) if row else None


def list_claims_from_db(db: Session, user_address: Optional[str] = None) -> List[Claim]:
    stmt = select(claims_table).order_by(claims_table.c.claimed_at)
    if user_address:
        stmt = stmt.where(claims_table.c.user_address == canonical_address(user_address))
    return [_row_to_claim(row) for row in db.execute(stmt).fetchall()]
