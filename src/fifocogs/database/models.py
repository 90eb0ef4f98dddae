"""SQLAlchemy models for the fifocogs ledger store."""

from datetime import datetime, UTC
from decimal import Decimal
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Boolean,
    JSON,
    Table,
    TypeDecorator,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class DecimalString(TypeDecorator):
    """Stores Decimal values as text so no precision is lost."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


account_groups = Table(
    "account_groups",
    Base.metadata,
    Column("account_id", Integer, ForeignKey("accounts.id"), primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id"), primary_key=True),
)


class Book(Base):
    """Ledger book model."""

    __tablename__ = "books"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    fraction_digits = Column(Integer, default=2, nullable=False)
    date_pattern = Column(String, default="yyyy-MM-dd", nullable=False)
    collection = Column(String, nullable=True)
    properties = Column(JSON, default=dict, nullable=False)
    pending_tasks = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="book", cascade="all, delete-orphan")
    groups = relationship("Group", back_populates="book", cascade="all, delete-orphan")


class Group(Base):
    """Account group model with hierarchical structure."""

    __tablename__ = "groups"

    id = Column(Integer, primary_key=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False)
    name = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("groups.id"), nullable=True)
    properties = Column(JSON, default=dict, nullable=False)
    hidden = Column(Boolean, default=False, nullable=False)

    __table_args__ = (UniqueConstraint("book_id", "name", name="uq_book_group_name"),)

    # Relationships
    book = relationship("Book", back_populates="groups")
    parent = relationship("Group", remote_side=[id], backref="children")


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    properties = Column(JSON, default=dict, nullable=False)
    archived = Column(Boolean, default=False, nullable=False)

    __table_args__ = (UniqueConstraint("book_id", "name", name="uq_book_account_name"),)

    # Relationships
    book = relationship("Book", back_populates="accounts")
    groups = relationship("Group", secondary=account_groups, order_by="Group.id")


class Record(Base):
    """Ledger record model."""

    __tablename__ = "records"

    id = Column(Integer, primary_key=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(DecimalString, nullable=False)
    credit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    debit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    description = Column(String, default="", nullable=False)
    properties = Column(JSON, default=dict, nullable=False)
    checked = Column(Boolean, default=False, nullable=False)
    locked = Column(Boolean, default=False, nullable=False)
    posted = Column(Boolean, default=True, nullable=False)
    trashed = Column(Boolean, default=False, nullable=False)
    agent_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    credit_account = relationship("Account", foreign_keys=[credit_account_id])
    debit_account = relationship("Account", foreign_keys=[debit_account_id])
    remote_ids = relationship(
        "RecordRemoteId",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="RecordRemoteId.id",
    )


class RecordRemoteId(Base):
    """External cross-reference identifier of a record."""

    __tablename__ = "record_remote_ids"

    id = Column(Integer, primary_key=True)
    record_id = Column(Integer, ForeignKey("records.id"), nullable=False)
    remote_id = Column(String, nullable=False, index=True)

    # Relationships
    record = relationship("Record", back_populates="remote_ids")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
