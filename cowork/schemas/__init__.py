"""
Pydantic Schemas for API Validation
"""
from pydantic import BaseModel, EmailStr, Field, ConfigDict, PlainSerializer, model_validator
from typing import Annotated, List, Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum


# Amounts are Decimal in Python and plain numbers in JSON
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ==================== ENUMS ====================

class UserRoleEnum(str, Enum):
    CUSTOMER = "CUSTOMER"
    STAFF = "STAFF"
    TEAM_LEAD = "TEAM_LEAD"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class AccountStatusEnum(str, Enum):
    ACTIVE = "Active"
    LOCKED = "Locked"
    SUSPENDED = "Suspended"


class AccountTypeEnum(str, Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class TransactionTypeEnum(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class DocumentStatusUpdateEnum(str, Enum):
    """Statuses a user may set by hand; PARTIAL/PAID follow from payments"""
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class PayrollStatusEnum(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PackageTypeEnum(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class InventoryCategoryEnum(str, Enum):
    FIXTURE = "fixture"
    MOVEABLE = "moveable"
    CONSUMABLE = "consumable"


class MovementTypeEnum(str, Enum):
    IN = "in"
    OUT = "out"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"
    CONSUMPTION = "consumption"


class TransferStatusEnum(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ComplaintStatusEnum(str, Enum):
    OPEN = "Open"
    IN_PROCESS = "In Process"
    ON_HOLD = "On Hold"
    TESTING = "Testing"
    RESOLVED = "Resolved"


class TaskPriorityEnum(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TaskStatusEnum(str, Enum):
    OPEN = "Open"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    OVERDUE = "Overdue"


# ==================== AUTH SCHEMAS ====================

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# ==================== USER SCHEMAS ====================

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = None
    role: UserRoleEnum = UserRoleEnum.CUSTOMER
    branch_id: Optional[int] = None


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    account_status: Optional[str] = None
    is_active: bool
    branch_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserBrief(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ==================== BRANCH SCHEMAS ====================

class BranchCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    building_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class BranchResponse(BaseModel):
    id: int
    name: str
    building_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BranchBrief(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


# ==================== PACKAGE SCHEMAS ====================

class PackageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: PackageTypeEnum = PackageTypeEnum.MONTHLY
    price: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    currency: str = Field("USD", max_length=10)
    monthly_hours_limit: Optional[int] = Field(None, ge=0)
    max_booking_duration: Optional[int] = Field(None, gt=0)
    max_bookings_per_day: Optional[int] = Field(None, gt=0)


class PackageResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    type: str
    price: Money
    currency: str
    monthly_hours_limit: Optional[int] = None
    max_booking_duration: Optional[int] = None
    max_bookings_per_day: Optional[int] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class PackageAssign(BaseModel):
    package_id: Optional[int] = None


# ==================== CUSTOMER / VENDOR SCHEMAS ====================

class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None
    company: Optional[str] = None
    gate_pass_id: Optional[str] = None
    remarks: Optional[str] = None
    branch_id: int
    package_id: Optional[int] = None
    user_id: Optional[int] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    company: Optional[str] = None
    gate_pass_id: Optional[str] = None
    remarks: Optional[str] = None
    account_status: Optional[AccountStatusEnum] = None


class CustomerResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    account_status: str
    gate_pass_id: Optional[str] = None
    remarks: Optional[str] = None
    branch_id: int
    package_id: Optional[int] = None
    user_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerBrief(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    branch_id: int


class VendorResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    branch_id: int

    model_config = ConfigDict(from_attributes=True)


# ==================== ACCOUNTING SCHEMAS ====================

class AccountCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    type: AccountTypeEnum
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    branch_id: int


class AccountResponse(BaseModel):
    id: int
    code: str
    name: str
    type: str
    category: str
    description: Optional[str] = None
    balance: Money
    is_active: bool
    parent_id: Optional[int] = None
    branch_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountReconciliation(BaseModel):
    account_id: int
    stored_balance: Money
    derived_balance: Money
    difference: Money
    transaction_count: int
    is_balanced: bool


class TransactionCreate(BaseModel):
    branch_id: int
    account_id: int
    type: TransactionTypeEnum
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=100)
    reference: Optional[str] = Field(None, max_length=100)
    date: Optional[datetime] = None


class TransactionResponse(BaseModel):
    id: int
    transaction_number: str
    type: str
    amount: Money
    category: str
    description: str
    reference: Optional[str] = None
    date: datetime
    account_id: int
    branch_id: int
    invoice_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== BILLING SCHEMAS ====================

class LineItemCreate(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0, decimal_places=2)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)


class LineItemResponse(BaseModel):
    id: int
    description: str
    quantity: Money
    unit_price: Money
    amount: Money

    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    method: str = Field(..., min_length=1, max_length=50)
    reference: Optional[str] = Field(None, max_length=100)


class PaymentResponse(BaseModel):
    id: int
    amount: Money
    method: str
    reference: Optional[str] = None
    paid_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentCreate(BaseModel):
    branch_id: int
    issue_date: date
    due_date: date
    items: List[LineItemCreate] = Field(..., min_length=1)
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    notes: Optional[str] = None


class InvoiceCreate(DocumentCreate):
    customer_id: int


class BillCreate(DocumentCreate):
    vendor_id: int


class DocumentUpdate(BaseModel):
    notes: Optional[str] = None
    due_date: Optional[date] = None
    status: Optional[DocumentStatusUpdateEnum] = None


class DocumentResponse(BaseModel):
    id: int
    issue_date: date
    due_date: date
    subtotal: Money
    tax_rate: Money
    tax_amount: Money
    total: Money
    amount_paid: Money
    status: str
    notes: Optional[str] = None
    paid_at: Optional[datetime] = None
    branch_id: int
    branch: Optional[BranchBrief] = None
    items: List[LineItemResponse] = []
    payments: List[PaymentResponse] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoiceResponse(DocumentResponse):
    invoice_number: str
    customer_id: int
    customer: Optional[CustomerBrief] = None


class BillResponse(DocumentResponse):
    bill_number: str
    vendor_id: int
    vendor: Optional[VendorResponse] = None


# ==================== PAYROLL SCHEMAS ====================

class PayrollItemCreate(BaseModel):
    type: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    is_deduction: bool = False


class PayrollItemResponse(BaseModel):
    id: int
    type: Optional[str] = None
    description: Optional[str] = None
    amount: Money
    is_deduction: bool

    model_config = ConfigDict(from_attributes=True)


class PayrollCreate(BaseModel):
    employee_id: int
    branch_id: int
    pay_period: str = Field(..., min_length=1, max_length=20)
    base_salary: Decimal = Field(..., ge=0, decimal_places=2)
    overtime: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    bonus: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    items: List[PayrollItemCreate] = []
    notes: Optional[str] = None


class PayrollUpdate(BaseModel):
    base_salary: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    overtime: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    bonus: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    items: Optional[List[PayrollItemCreate]] = None
    status: Optional[PayrollStatusEnum] = None
    notes: Optional[str] = None


class PayrollResponse(BaseModel):
    id: int
    employee_id: int
    employee: Optional[UserBrief] = None
    branch_id: int
    pay_period: str
    base_salary: Money
    overtime: Money
    bonus: Money
    deductions: Money
    net_pay: Money
    status: str
    notes: Optional[str] = None
    paid_at: Optional[datetime] = None
    items: List[PayrollItemResponse] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== MEETING ROOM SCHEMAS ====================

class MeetingRoomCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    room_number: Optional[str] = None
    capacity: int = Field(1, ge=1)
    location: Optional[str] = None
    floor: Optional[str] = None
    amenities: List[str] = []
    hourly_rate: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_bookable: bool = True
    branch_id: int


class MeetingRoomResponse(BaseModel):
    id: int
    name: str
    room_number: Optional[str] = None
    capacity: int
    location: Optional[str] = None
    floor: Optional[str] = None
    amenities: List[str] = []
    hourly_rate: Optional[Money] = None
    is_active: bool
    is_bookable: bool
    branch_id: int

    model_config = ConfigDict(from_attributes=True)


class BookingCreate(BaseModel):
    room_id: int
    date: date
    start_time: str = Field(..., pattern=HHMM_PATTERN)
    end_time: str = Field(..., pattern=HHMM_PATTERN)
    purpose: str = Field(..., min_length=1)
    # Staff booking on behalf of a customer
    customer_id: Optional[int] = None


class BookingResponse(BaseModel):
    id: int
    customer_id: int
    room_id: int
    branch_id: int
    booking_date: date
    start_time: str
    end_time: str
    duration: int
    status: str
    purpose: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookedSlot(BaseModel):
    booking_id: int
    start_time: str
    end_time: str


class RoomAvailability(MeetingRoomResponse):
    booked_slots: List[BookedSlot] = []


class BookingLimits(BaseModel):
    customer_id: int
    daily_minutes: int
    monthly_minutes: int
    daily_limit_minutes: int
    monthly_limit_hours: int
    max_bookings_per_day: int


# ==================== INVENTORY SCHEMAS ====================

class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: InventoryCategoryEnum
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    sku: Optional[str] = None
    unit: str = Field("pieces", max_length=20)
    supplier: Optional[str] = None
    purchase_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    current_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    quantity: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    minimum_stock: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    maximum_stock: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    # Where the opening quantity is held
    location: Optional[str] = Field(None, max_length=100)
    branch_id: Optional[int] = None


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[InventoryCategoryEnum] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    sku: Optional[str] = None
    unit: Optional[str] = Field(None, max_length=20)
    supplier: Optional[str] = None
    purchase_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    current_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    minimum_stock: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    maximum_stock: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_active: Optional[bool] = None


class InventoryLocationResponse(BaseModel):
    id: int
    location: str
    quantity: Money
    reserved_quantity: Money
    last_updated: datetime
    last_updated_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class InventoryItemResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    sku: Optional[str] = None
    unit: str
    supplier: Optional[str] = None
    purchase_price: Optional[Money] = None
    current_price: Optional[Money] = None
    quantity: Money
    minimum_stock: Money
    maximum_stock: Money
    is_low_stock: bool
    is_active: bool
    branch_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InventoryItemDetail(InventoryItemResponse):
    locations: List[InventoryLocationResponse] = []


class InventoryStats(BaseModel):
    total_items: int
    total_quantity: Money
    total_value: Money
    low_stock_count: int
    by_category: dict


class MovementCreate(BaseModel):
    item_id: int
    movement_type: MovementTypeEnum
    quantity: Decimal = Field(..., gt=0, decimal_places=2)
    reason: str = Field(..., min_length=1)
    from_location: Optional[str] = Field(None, max_length=100)
    to_location: Optional[str] = Field(None, max_length=100)
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_locations(self):
        kind = self.movement_type
        if kind in (MovementTypeEnum.IN, MovementTypeEnum.TRANSFER) and not self.to_location:
            raise ValueError("to_location is required for this movement type")
        if kind in (MovementTypeEnum.OUT, MovementTypeEnum.TRANSFER, MovementTypeEnum.CONSUMPTION) \
                and not self.from_location:
            raise ValueError("from_location is required for this movement type")
        return self


class MovementResponse(BaseModel):
    id: int
    item_id: int
    movement_type: str
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    quantity: Money
    reason: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    performed_by: str
    performed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransferCreate(BaseModel):
    item_id: int
    from_location: str = Field(..., min_length=1, max_length=100)
    to_location: str = Field(..., min_length=1, max_length=100)
    quantity: Decimal = Field(..., gt=0, decimal_places=2)
    notes: Optional[str] = None


class TransferUpdate(BaseModel):
    status: TransferStatusEnum
    notes: Optional[str] = None


class TransferResponse(BaseModel):
    id: int
    item_id: int
    from_location: str
    to_location: str
    quantity: Money
    status: str
    notes: Optional[str] = None
    requested_by: str
    requested_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ==================== COMPLAINT SCHEMAS ====================

class ComplaintCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    image_url: Optional[str] = Field(None, max_length=500)


class ComplaintStatusUpdate(BaseModel):
    status: ComplaintStatusEnum
    remarks: Optional[str] = None


class ComplaintFeedback(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = None


class ComplaintResponse(BaseModel):
    id: int
    title: str
    description: str
    status: str
    remarks: Optional[str] = None
    feedback: Optional[str] = None
    rating: Optional[int] = None
    image_url: Optional[str] = None
    resolved_at: Optional[datetime] = None
    customer_id: int
    branch_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== TASK SCHEMAS ====================

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    department: Optional[str] = Field(None, max_length=50)
    priority: TaskPriorityEnum = TaskPriorityEnum.MEDIUM
    assigned_to: Optional[int] = None
    branch_id: int
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    description: Optional[str] = None
    priority: Optional[TaskPriorityEnum] = None
    status: Optional[TaskStatusEnum] = None
    assigned_to: Optional[int] = None
    due_date: Optional[datetime] = None


class TaskCommentCreate(BaseModel):
    comment: str = Field(..., min_length=1)


class TaskCommentResponse(BaseModel):
    id: int
    comment: str
    user_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    department: Optional[str] = None
    priority: str
    status: str
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    assigned_to: Optional[int] = None
    created_by: Optional[int] = None
    branch_id: int
    comments: List[TaskCommentResponse] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== CONTRACT / NOTIFICATION SCHEMAS ====================

class ContractComplete(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=500)


class ContractResponse(BaseModel):
    id: int
    customer_id: int
    status: str
    type: str
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    uploaded_by: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationMarkRead(BaseModel):
    notification_id: Optional[int] = None
    mark_all: bool = False


# ==================== TIME TRACKING SCHEMAS ====================

class CheckInRequest(BaseModel):
    notes: Optional[str] = None


class TimeEntryResponse(BaseModel):
    id: int
    staff_id: int
    branch_id: Optional[int] = None
    entry_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    duration: Optional[int] = None
    status: str
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
