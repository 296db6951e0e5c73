"""SQLAlchemy 2.0 ORM models for the notifier.

Tables fall into three groups:
  - event sources written upstream: sales, auto_renew_updates
  - side collections joined at resolution time: metadata, email_groups
  - notifier bookkeeping: processed, ar_processed, pass_leases

Event and side-collection columns are nullable: the upstream writer owns them.
Shape is enforced when a joined record is decoded (see schemas.events).
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Float, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Shared base
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


# ===========================================================================
# Event sources
# ===========================================================================


class Sale(Base):
    """sales — one row per domain purchase."""

    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tx_id: Mapped[Optional[str]] = mapped_column(Text, index=True)
    meta_id: Mapped[Optional[str]] = mapped_column(Text, index=True)
    domain: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Optional[float]] = mapped_column(Float)
    payer: Mapped[Optional[str]] = mapped_column(Text)
    timestamp: Mapped[Optional[int]] = mapped_column(BigInteger)
    expiry: Mapped[Optional[int]] = mapped_column(BigInteger)
    auto: Mapped[Optional[bool]] = mapped_column(Boolean)
    sponsor: Mapped[Optional[str]] = mapped_column(Text)
    sponsor_commission: Mapped[Optional[float]] = mapped_column(Float)


class AutoRenewUpdate(Base):
    """auto_renew_updates — one row per auto-renewal toggle."""

    __tablename__ = "auto_renew_updates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tx_id: Mapped[Optional[str]] = mapped_column(Text, index=True)
    meta_id: Mapped[Optional[str]] = mapped_column(Text, index=True)
    domain: Mapped[Optional[str]] = mapped_column(Text)
    renewer: Mapped[Optional[str]] = mapped_column(Text)
    allowance: Mapped[Optional[str]] = mapped_column(Text)


# ===========================================================================
# Side collections
# ===========================================================================


class EventMetadata(Base):
    """metadata — buyer contact details, shared with events by meta_id."""

    __tablename__ = "metadata"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meta_id: Mapped[Optional[str]] = mapped_column(Text, index=True)
    email: Mapped[Optional[str]] = mapped_column(Text)
    tax_state: Mapped[Optional[str]] = mapped_column(Text)
    salt: Mapped[Optional[str]] = mapped_column(Text)


class EmailGroup(Base):
    """email_groups — mailing-list tags attached to a transaction."""

    __tablename__ = "email_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tx_id: Mapped[Optional[str]] = mapped_column(Text, index=True)
    group: Mapped[Optional[str]] = mapped_column(Text)


# ===========================================================================
# Notifier bookkeeping
# ===========================================================================


class ProcessedSale(Base):
    """processed — sale events already visited, keyed by meta_id."""

    __tablename__ = "processed"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meta_id: Mapped[str] = mapped_column(Text, index=True, nullable=False)


class ProcessedRenewal(Base):
    """ar_processed — renewal toggles already visited, keyed by tx_id."""

    __tablename__ = "ar_processed"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tx_id: Mapped[str] = mapped_column(Text, index=True, nullable=False)


class PassLease(Base):
    """pass_leases — at most one live holder per pass name."""

    __tablename__ = "pass_leases"

    name: Mapped[str] = mapped_column(Text, primary_key=True)
    holder: Mapped[str] = mapped_column(Text, nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
