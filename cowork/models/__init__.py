"""
SQLAlchemy Models for the Coworking Portal
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Date, Numeric, JSON,
    ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
import enum

from cowork.core.database import Base


# ==================== ENUMS ====================

class UserRole(enum.Enum):
    CUSTOMER = "CUSTOMER"
    STAFF = "STAFF"
    TEAM_LEAD = "TEAM_LEAD"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class AccountStatus(enum.Enum):
    ACTIVE = "Active"
    LOCKED = "Locked"
    SUSPENDED = "Suspended"


class AccountType(enum.Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class TransactionType(enum.Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class DocumentStatus(enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PayrollStatus(enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class BookingStatus(enum.Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


class MovementType(enum.Enum):
    IN = "in"
    OUT = "out"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"
    CONSUMPTION = "consumption"


class TransferStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ComplaintStatus(enum.Enum):
    OPEN = "Open"
    IN_PROCESS = "In Process"
    ON_HOLD = "On Hold"
    TESTING = "Testing"
    RESOLVED = "Resolved"


class TaskStatus(enum.Enum):
    OPEN = "Open"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    OVERDUE = "Overdue"


class ContractStatus(enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class TimeEntryStatus(enum.Enum):
    CHECKED_IN = "Checked In"
    CHECKED_OUT = "Checked Out"


# ==================== CORE MODELS ====================

class Branch(Base):
    """Coworking branch/location"""
    __tablename__ = 'branches'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    building_name = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    users = relationship("User", back_populates="branch")
    customers = relationship("Customer", back_populates="branch")
    accounts = relationship("Account", back_populates="branch")
    meeting_rooms = relationship("MeetingRoom", back_populates="branch")


class User(Base):
    """Portal user: customers, staff, team leads, managers, admins"""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)
    account_status = Column(String(20), default=AccountStatus.ACTIVE.value)
    is_active = Column(Boolean, default=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='SET NULL'), nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    branch = relationship("Branch", back_populates="users")
    customer_profile = relationship("Customer", back_populates="user", uselist=False)
    payrolls = relationship("Payroll", back_populates="employee")

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER.value


class Package(Base):
    """Membership package, carries the monthly meeting-room allowance"""
    __tablename__ = 'packages'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), default="monthly")  # hourly, daily, monthly, yearly
    price = Column(Numeric(15, 2), default=Decimal("0.00"))
    currency = Column(String(10), default="USD")
    monthly_hours_limit = Column(Integer, nullable=True)
    max_booking_duration = Column(Integer, nullable=True)  # minutes
    max_bookings_per_day = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customers = relationship("Customer", back_populates="package")


class Customer(Base):
    """Coworking member"""
    __tablename__ = 'customers'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    account_status = Column(String(20), default=AccountStatus.ACTIVE.value)
    gate_pass_id = Column(String(50), nullable=True)
    remarks = Column(Text, nullable=True)
    package_id = Column(Integer, ForeignKey('packages.id', ondelete='SET NULL'), nullable=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    branch = relationship("Branch", back_populates="customers")
    package = relationship("Package", back_populates="customers")
    user = relationship("User", back_populates="customer_profile")
    invoices = relationship("Invoice", back_populates="customer")
    bookings = relationship("Booking", back_populates="customer")

    @property
    def is_locked(self) -> bool:
        return self.account_status == AccountStatus.LOCKED.value


class Vendor(Base):
    """Supplier, counterparty of bills"""
    __tablename__ = 'vendors'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    bills = relationship("Bill", back_populates="vendor")


class DocumentSequence(Base):
    """Monotonic counter per document prefix (INV, BILL, TXN, PAY, PAYROLL)"""
    __tablename__ = 'document_sequences'

    id = Column(Integer, primary_key=True)
    prefix = Column(String(20), nullable=False, unique=True)
    current_value = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ==================== ACCOUNTING MODELS ====================

class Account(Base):
    """Chart of Accounts"""
    __tablename__ = 'accounts'

    id = Column(Integer, primary_key=True)
    code = Column(String(20), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    balance = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    is_active = Column(Boolean, default=True)
    parent_id = Column(Integer, ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    branch = relationship("Branch", back_populates="accounts")
    parent = relationship("Account", remote_side=[id], backref="children")
    transactions = relationship("Transaction", back_populates="account")

    __table_args__ = (
        Index('ix_accounts_branch_id', 'branch_id'),
        UniqueConstraint('branch_id', 'code', name='uq_account_branch_code'),
    )


class Transaction(Base):
    """Immutable ledger posting against a single account"""
    __tablename__ = 'transactions'

    id = Column(Integer, primary_key=True)
    transaction_number = Column(String(50), nullable=False, unique=True)
    type = Column(String(10), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    reference = Column(String(100), nullable=True)
    date = Column(DateTime, nullable=False, default=datetime.utcnow)
    account_id = Column(Integer, ForeignKey('accounts.id', ondelete='RESTRICT'), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    invoice_id = Column(Integer, ForeignKey('invoices.id', ondelete='SET NULL'), nullable=True)
    created_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    branch = relationship("Branch")
    invoice = relationship("Invoice", back_populates="transactions")

    __table_args__ = (
        Index('ix_transactions_account_id', 'account_id'),
        Index('ix_transactions_date', 'date'),
    )


# ==================== BILLING MODELS ====================

class Invoice(Base):
    """Customer invoice"""
    __tablename__ = 'invoices'

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String(50), nullable=False, unique=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    subtotal = Column(Numeric(15, 2), default=Decimal("0.00"))
    tax_rate = Column(Numeric(5, 2), default=Decimal("0.00"))
    tax_amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    total = Column(Numeric(15, 2), default=Decimal("0.00"))
    status = Column(String(20), default=DocumentStatus.DRAFT.value)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="invoices")
    branch = relationship("Branch")
    items = relationship("InvoiceItem", back_populates="invoice", cascade="all, delete-orphan",
                         order_by="InvoiceItem.id")
    payments = relationship("InvoicePayment", back_populates="invoice", cascade="all, delete-orphan",
                            order_by="InvoicePayment.id")
    transactions = relationship("Transaction", back_populates="invoice")

    @property
    def document_number(self) -> str:
        return self.invoice_number

    @property
    def amount_paid(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal("0"))

    __table_args__ = (
        Index('ix_invoices_branch_id', 'branch_id'),
    )


class InvoiceItem(Base):
    __tablename__ = 'invoice_items'

    id = Column(Integer, primary_key=True)
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(15, 2), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    invoice_id = Column(Integer, ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False)

    invoice = relationship("Invoice", back_populates="items")


class InvoicePayment(Base):
    __tablename__ = 'invoice_payments'

    id = Column(Integer, primary_key=True)
    amount = Column(Numeric(15, 2), nullable=False)
    method = Column(String(50), nullable=False)
    reference = Column(String(100), nullable=True)
    paid_at = Column(DateTime, default=datetime.utcnow)
    invoice_id = Column(Integer, ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    invoice = relationship("Invoice", back_populates="payments")


class Bill(Base):
    """Vendor bill"""
    __tablename__ = 'bills'

    id = Column(Integer, primary_key=True)
    bill_number = Column(String(50), nullable=False, unique=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    subtotal = Column(Numeric(15, 2), default=Decimal("0.00"))
    tax_rate = Column(Numeric(5, 2), default=Decimal("0.00"))
    tax_amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    total = Column(Numeric(15, 2), default=Decimal("0.00"))
    status = Column(String(20), default=DocumentStatus.DRAFT.value)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    vendor = relationship("Vendor", back_populates="bills")
    branch = relationship("Branch")
    items = relationship("BillItem", back_populates="bill", cascade="all, delete-orphan",
                         order_by="BillItem.id")
    payments = relationship("BillPayment", back_populates="bill", cascade="all, delete-orphan",
                            order_by="BillPayment.id")

    @property
    def document_number(self) -> str:
        return self.bill_number

    @property
    def amount_paid(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal("0"))

    __table_args__ = (
        Index('ix_bills_branch_id', 'branch_id'),
    )


class BillItem(Base):
    __tablename__ = 'bill_items'

    id = Column(Integer, primary_key=True)
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(15, 2), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    bill_id = Column(Integer, ForeignKey('bills.id', ondelete='CASCADE'), nullable=False)

    bill = relationship("Bill", back_populates="items")


class BillPayment(Base):
    __tablename__ = 'bill_payments'

    id = Column(Integer, primary_key=True)
    amount = Column(Numeric(15, 2), nullable=False)
    method = Column(String(50), nullable=False)
    reference = Column(String(100), nullable=True)
    paid_at = Column(DateTime, default=datetime.utcnow)
    bill_id = Column(Integer, ForeignKey('bills.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    bill = relationship("Bill", back_populates="payments")


# ==================== PAYROLL MODELS ====================

class Payroll(Base):
    """One payroll record per employee and pay period"""
    __tablename__ = 'payrolls'

    id = Column(Integer, primary_key=True)
    pay_period = Column(String(20), nullable=False)
    base_salary = Column(Numeric(15, 2), nullable=False)
    overtime = Column(Numeric(15, 2), default=Decimal("0.00"))
    bonus = Column(Numeric(15, 2), default=Decimal("0.00"))
    deductions = Column(Numeric(15, 2), default=Decimal("0.00"))
    net_pay = Column(Numeric(15, 2), default=Decimal("0.00"))
    status = Column(String(20), default=PayrollStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    employee_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    employee = relationship("User", back_populates="payrolls")
    branch = relationship("Branch")
    items = relationship("PayrollItem", back_populates="payroll", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('employee_id', 'pay_period', name='uq_payroll_employee_period'),
    )


class PayrollItem(Base):
    __tablename__ = 'payroll_items'

    id = Column(Integer, primary_key=True)
    type = Column(String(50), nullable=True)  # e.g. TAX, LOAN, ALLOWANCE
    description = Column(Text, nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)
    is_deduction = Column(Boolean, default=False)
    payroll_id = Column(Integer, ForeignKey('payrolls.id', ondelete='CASCADE'), nullable=False)

    payroll = relationship("Payroll", back_populates="items")


# ==================== MEETING ROOM MODELS ====================

class MeetingRoom(Base):
    __tablename__ = 'meeting_rooms'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    room_number = Column(String(50), nullable=True)
    capacity = Column(Integer, default=1)
    location = Column(String(255), nullable=True)
    floor = Column(String(50), nullable=True)
    amenities = Column(JSON, default=list)
    hourly_rate = Column(Numeric(15, 2), nullable=True)
    is_active = Column(Boolean, default=True)
    is_bookable = Column(Boolean, default=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    branch = relationship("Branch", back_populates="meeting_rooms")
    bookings = relationship("Booking", back_populates="room")


class Booking(Base):
    """Meeting-room booking. Times are same-day HH:MM strings"""
    __tablename__ = 'bookings'

    id = Column(Integer, primary_key=True)
    booking_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    status = Column(String(20), default=BookingStatus.CONFIRMED.value)
    purpose = Column(Text, nullable=False)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    room_id = Column(Integer, ForeignKey('meeting_rooms.id', ondelete='CASCADE'), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="bookings")
    room = relationship("MeetingRoom", back_populates="bookings")

    __table_args__ = (
        Index('ix_bookings_room_date', 'room_id', 'booking_date'),
        Index('ix_bookings_customer_date', 'customer_id', 'booking_date'),
    )


# ==================== INVENTORY MODELS ====================

class InventoryItem(Base):
    __tablename__ = 'inventory_items'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(20), nullable=False)  # fixture, moveable, consumable
    subcategory = Column(String(100), nullable=True)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    sku = Column(String(100), nullable=True)
    unit = Column(String(20), default="pieces")
    supplier = Column(String(255), nullable=True)
    purchase_price = Column(Numeric(15, 2), nullable=True)
    current_price = Column(Numeric(15, 2), nullable=True)
    quantity = Column(Numeric(15, 2), default=Decimal("0.00"))
    minimum_stock = Column(Numeric(15, 2), default=Decimal("0.00"))
    maximum_stock = Column(Numeric(15, 2), default=Decimal("0.00"))
    is_active = Column(Boolean, default=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    locations = relationship("InventoryLocation", back_populates="item", cascade="all, delete-orphan")
    movements = relationship("InventoryMovement", back_populates="item", cascade="all, delete-orphan")
    transfers = relationship("InventoryTransfer", back_populates="item", cascade="all, delete-orphan")

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity or 0) <= (self.minimum_stock or 0)


class InventoryLocation(Base):
    """Per-location stock aggregate for an item"""
    __tablename__ = 'inventory_locations'

    id = Column(Integer, primary_key=True)
    location = Column(String(100), nullable=False)
    quantity = Column(Numeric(15, 2), default=Decimal("0.00"))
    reserved_quantity = Column(Numeric(15, 2), default=Decimal("0.00"))
    last_updated = Column(DateTime, default=datetime.utcnow)
    last_updated_by = Column(String(255), nullable=True)
    item_id = Column(Integer, ForeignKey('inventory_items.id', ondelete='CASCADE'), nullable=False)

    item = relationship("InventoryItem", back_populates="locations")

    __table_args__ = (
        UniqueConstraint('item_id', 'location', name='uq_inventory_item_location'),
    )


class InventoryMovement(Base):
    """Append-only stock movement log"""
    __tablename__ = 'inventory_movements'

    id = Column(Integer, primary_key=True)
    movement_type = Column(String(20), nullable=False)
    from_location = Column(String(100), nullable=True)
    to_location = Column(String(100), nullable=True)
    quantity = Column(Numeric(15, 2), nullable=False)
    reason = Column(Text, nullable=False)
    reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    performed_by = Column(String(255), nullable=False)
    performed_at = Column(DateTime, default=datetime.utcnow)
    item_id = Column(Integer, ForeignKey('inventory_items.id', ondelete='CASCADE'), nullable=False)

    item = relationship("InventoryItem", back_populates="movements")


class InventoryTransfer(Base):
    __tablename__ = 'inventory_transfers'

    id = Column(Integer, primary_key=True)
    from_location = Column(String(100), nullable=False)
    to_location = Column(String(100), nullable=False)
    quantity = Column(Numeric(15, 2), nullable=False)
    status = Column(String(20), default=TransferStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    requested_by = Column(String(255), nullable=False)
    requested_at = Column(DateTime, default=datetime.utcnow)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    completed_by = Column(String(255), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    item_id = Column(Integer, ForeignKey('inventory_items.id', ondelete='CASCADE'), nullable=False)

    item = relationship("InventoryItem", back_populates="transfers")


# ==================== SUPPORT MODELS ====================

class Complaint(Base):
    __tablename__ = 'complaints'

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), default=ComplaintStatus.OPEN.value)
    remarks = Column(Text, nullable=True)
    feedback = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    image_url = Column(String(500), nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer")


class Task(Base):
    __tablename__ = 'tasks'

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    department = Column(String(50), nullable=True)
    priority = Column(String(20), default="Medium")
    status = Column(String(20), default=TaskStatus.OPEN.value)
    due_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    fine_amount = Column(Numeric(15, 2), nullable=True)
    assigned_to = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignee = relationship("User", foreign_keys=[assigned_to])
    creator = relationship("User", foreign_keys=[created_by])
    comments = relationship("TaskComment", back_populates="task", cascade="all, delete-orphan",
                            order_by="TaskComment.id")


class TaskComment(Base):
    __tablename__ = 'task_comments'

    id = Column(Integer, primary_key=True)
    comment = Column(Text, nullable=False)
    task_id = Column(Integer, ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    task = relationship("Task", back_populates="comments")


class Contract(Base):
    __tablename__ = 'contracts'

    id = Column(Integer, primary_key=True)
    status = Column(String(20), default=ContractStatus.PENDING.value)
    type = Column(String(20), default="REQUEST")
    file_name = Column(String(255), nullable=True)
    file_url = Column(String(500), nullable=True)
    uploaded_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    uploaded_at = Column(DateTime, nullable=True)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer")


class Notification(Base):
    __tablename__ = 'notifications'

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), default="info")
    is_read = Column(Boolean, default=False)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class StaffTimeEntry(Base):
    __tablename__ = 'staff_time_entries'

    id = Column(Integer, primary_key=True)
    entry_date = Column(Date, nullable=False)
    check_in_time = Column(DateTime, nullable=False)
    check_out_time = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)  # minutes
    status = Column(String(20), default=TimeEntryStatus.CHECKED_IN.value)
    notes = Column(Text, nullable=True)
    staff_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='SET NULL'), nullable=True)


# ==================== AUDIT ====================

class AuditLog(Base):
    """Audit trail for financial and HR operations"""
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    new_values = Column(JSON, nullable=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='SET NULL'), nullable=True)
    status = Column(String(20), default="success")
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('ix_audit_logs_resource', 'resource_type', 'resource_id'),
    )
