"""SQLAlchemy ORM models for accounts, realized transfers and recurring definitions"""

from sqlalchemy import Column, String, BigInteger, Integer, DateTime, Date, ForeignKey, Text, Enum
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from transfer_gateway.domain.models import Category, Direction

Base = declarative_base()


class Account(Base):
    """Client account holding the authoritative balance"""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_number = Column(String(34), nullable=False, unique=True, index=True)
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transfers = relationship("TransferRecord", back_populates="owner")
    recurring_definitions = relationship("RecurringDefinition", back_populates="owner")


class TransferRecord(Base):
    """One leg of a realized transfer, owned by the account it was booked on"""

    __tablename__ = "transfer_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Ledger records go only by explicit delete, never along with their account
    owner_id = Column(Integer, ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    transfer_date = Column(DateTime, nullable=False, index=True)
    category = Column(Enum(Category, native_enum=False, length=20), nullable=False)
    direction = Column(Enum(Direction, native_enum=False, length=10), nullable=False)
    counterparty_name = Column(Text, nullable=False)
    counterparty_account_number = Column(String(34), nullable=False)
    title = Column(Text, nullable=False)

    owner = relationship("Account", back_populates="transfers")


class RecurringDefinition(Base):
    """Standing transfer order re-realized every month"""

    __tablename__ = "recurring_definitions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # SET NULL keeps the definition around so the scheduler can detect and drop it
    owner_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    receiver_name = Column(Text, nullable=False)
    destination_account_number = Column(String(34), nullable=False)
    category = Column(Enum(Category, native_enum=False, length=20), nullable=False)
    title = Column(Text, nullable=False)
    next_due_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    owner = relationship("Account", back_populates="recurring_definitions")
