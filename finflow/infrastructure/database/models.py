"""SQLAlchemy ORM models for the six finance tables"""

from sqlalchemy import Column, String, Integer, Numeric, DateTime, Date, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from finflow.utils.date_utils import utcnow

Base = declarative_base()

# Money columns: 12 digits, 2 decimal places, returned as Decimal
Money = Numeric(12, 2, asdecimal=True)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)


class User(TimestampMixin, Base):
    """Identity synced from the external identity provider"""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(320), unique=True, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    profile_image_url = Column(Text, nullable=True)
    company_name = Column(String(255), nullable=True)
    kyc_status = Column(String(32), nullable=False, default="pending")

    loan_applications = relationship("LoanApplication", back_populates="user")
    invoices = relationship("Invoice", back_populates="user")


class LoanApplication(TimestampMixin, Base):
    """Business loan application, built up over a three-step wizard"""

    __tablename__ = "loan_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Money, nullable=False, default=0)
    tenure_months = Column(Integer, nullable=False, default=0)
    purpose = Column(String(255), nullable=False, default="")
    status = Column(String(32), nullable=False, default="draft", index=True)
    current_step = Column(Integer, nullable=False, default=1)
    documents = Column(JSON, nullable=False, default=list)  # [{"name": ..., "size": ...}]

    user = relationship("User", back_populates="loan_applications")


class Invoice(TimestampMixin, Base):
    __tablename__ = "invoices"
    # Ids of deleted invoices are never handed out again on SQLite
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    invoice_number = Column(String(64), nullable=False, unique=True, index=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(320), nullable=True)
    client_address = Column(Text, nullable=True)
    amount = Column(Money, nullable=False)
    status = Column(String(32), nullable=False, default="pending", index=True)
    due_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    items = Column(JSON, nullable=True)
    tax_rate = Column(Numeric(5, 2, asdecimal=True), nullable=True)

    user = relationship("User", back_populates="invoices")
    # Deleting an invoice detaches its payments (invoice_id -> NULL) rather than removing them
    upi_payments = relationship("UpiPayment", back_populates="invoice")


class UpiPayment(TimestampMixin, Base):
    """UPI collect request; link and QR code are fixed at creation"""

    __tablename__ = "upi_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Money, nullable=False)
    description = Column(Text, nullable=True)
    payment_link = Column(Text, nullable=False)
    qr_code = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default="pending")

    invoice = relationship("Invoice", back_populates="upi_payments")


class GstFiling(TimestampMixin, Base):
    """Periodic GST / TDS return with a statutory due date"""

    __tablename__ = "gst_filings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    filing_type = Column(String(64), nullable=False)  # GSTR-1, GSTR-3B, TDS Return, ...
    period = Column(String(7), nullable=False)  # YYYY-MM
    due_date = Column(Date, nullable=False, index=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    filed_at = Column(DateTime(timezone=True), nullable=True)


class KycDocument(TimestampMixin, Base):
    __tablename__ = "kyc_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    document_type = Column(String(64), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_url = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default="pending")
