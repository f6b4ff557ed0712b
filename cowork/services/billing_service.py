"""
Billing Service - Invoices, Bills and their Payments
"""
from typing import Optional, List
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from decimal import Decimal
from datetime import datetime
import logging

from cowork.models import (
    Invoice, InvoiceItem, InvoicePayment, Bill, BillItem, BillPayment,
    Customer, Vendor, Branch, DocumentStatus, TransactionType
)
from cowork.schemas import InvoiceCreate, BillCreate, DocumentUpdate, PaymentCreate
from cowork.core.config import settings
from cowork.core.exceptions import (
    ConflictError, ConfigurationError, NotFoundError, QuotaExceededError, ValidationError
)
from cowork.core.numbering import DocumentNumbering, INVOICE_PREFIX, BILL_PREFIX, PAYMENT_PREFIX
from cowork.services.accounting_service import AccountService, LedgerService, quantize_money
from cowork.services.audit_service import AuditService, AuditAction

logger = logging.getLogger(__name__)


def calculate_totals(items: List[dict], tax_rate: Decimal = Decimal("0")) -> dict:
    """
    Line amounts, subtotal, tax and total for a document.

    items: dicts with quantity and unit_price. Both are taken at cent precision,
    the precision they are stored with, so amount == quantity * unit_price holds
    for the stored rows.
    """
    amounts = [
        quantize_money(quantize_money(item["quantity"]) * quantize_money(item["unit_price"]))
        for item in items
    ]
    subtotal = sum(amounts, Decimal("0.00"))
    tax_rate = quantize_money(tax_rate)
    tax_amount = quantize_money(subtotal * tax_rate / 100) if tax_rate else Decimal("0.00")
    return {
        "amounts": amounts,
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total": subtotal + tax_amount,
    }


def derive_payment_status(amount_paid: Decimal, total: Decimal) -> str:
    if amount_paid >= total:
        return DocumentStatus.PAID.value
    if amount_paid > 0:
        return DocumentStatus.PARTIAL.value
    return DocumentStatus.PENDING.value


class DocumentService:
    """
    Shared behaviour of invoices and bills.

    Subclasses name the models, the counterparty and the number prefix.
    """
    model = None
    item_model = None
    payment_model = None
    counterparty_model = None
    counterparty_field = None
    number_field = None
    prefix = None
    label = "Document"
    payment_action = AuditAction.PAYMENT_RECEIVED

    def __init__(self, db: Session, now: datetime = None):
        self.db = db
        self.now = now or datetime.now()

    def get_by_id(self, document_id: int):
        return self.db.query(self.model).options(
            joinedload(self.model.items),
            joinedload(self.model.payments),
            joinedload(self.model.branch),
        ).filter(self.model.id == document_id).first()

    def _get_locked(self, document_id: int):
        # no eager joins here: FOR UPDATE cannot cover the nullable side of an outer join
        return self.db.query(self.model).filter(
            self.model.id == document_id
        ).with_for_update().first()

    def list_query(self, branch_id: int = None, status: str = None, counterparty_id: int = None):
        query = self.db.query(self.model)
        if branch_id:
            query = query.filter(self.model.branch_id == branch_id)
        if status:
            query = query.filter(self.model.status == status.upper())
        if counterparty_id:
            query = query.filter(getattr(self.model, self.counterparty_field) == counterparty_id)
        return query.order_by(self.model.created_at.desc(), self.model.id.desc())

    def create(self, data, user_id: int = None):
        counterparty_id = getattr(data, self.counterparty_field)
        if not self.db.query(self.counterparty_model).filter(self.counterparty_model.id == counterparty_id).first():
            raise NotFoundError(f"{self.counterparty_model.__name__} not found")
        if not self.db.query(Branch).filter(Branch.id == data.branch_id).first():
            raise NotFoundError("Branch not found")
        if data.due_date < data.issue_date:
            raise ValidationError("Due date cannot be before the issue date")

        items = [
            {"quantity": quantize_money(i.quantity), "unit_price": quantize_money(i.unit_price)}
            for i in data.items
        ]
        if any(item["quantity"] <= 0 for item in items):
            raise ValidationError("Item quantity must be at least 0.01")
        totals = calculate_totals(items, data.tax_rate)

        document = self.model(
            **{
                self.number_field: DocumentNumbering(self.db).next_number(self.prefix),
                self.counterparty_field: counterparty_id,
            },
            branch_id=data.branch_id,
            issue_date=data.issue_date,
            due_date=data.due_date,
            subtotal=totals["subtotal"],
            tax_rate=quantize_money(data.tax_rate),
            tax_amount=totals["tax_amount"],
            total=totals["total"],
            status=DocumentStatus.DRAFT.value,
            notes=data.notes,
            created_by=user_id,
        )
        for item_data, item, amount in zip(data.items, items, totals["amounts"]):
            document.items.append(self.item_model(
                description=item_data.description,
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                amount=amount,
            ))

        self.db.add(document)
        try:
            self.db.flush()
        except IntegrityError:
            raise ConflictError(f"Duplicate {self.label.lower()} number, please retry")

        AuditService(self.db).log(
            action=AuditAction.CREATE,
            resource_type=self.label,
            resource_id=document.id,
            description=f"{self.label} {document.document_number} created",
            new_values={"total": document.total},
            user_id=user_id,
            branch_id=document.branch_id,
        )
        return document

    def update(self, document_id: int, data: DocumentUpdate):
        document = self.get_by_id(document_id)
        if not document:
            raise NotFoundError(f"{self.label} not found")
        if document.status in (DocumentStatus.PAID.value, DocumentStatus.CANCELLED.value):
            raise ValidationError(f"Cannot modify a {document.status.lower()} {self.label.lower()}")

        update_data = data.model_dump(exclude_unset=True)
        new_status = update_data.pop("status", None)
        if new_status is not None:
            new_status = new_status.value
            if new_status == DocumentStatus.PENDING.value and document.status != DocumentStatus.DRAFT.value:
                raise ValidationError(f"Only a draft {self.label.lower()} can be issued")
            document.status = new_status

        if update_data.get("due_date") is None:
            update_data.pop("due_date", None)
        elif update_data["due_date"] < document.issue_date:
            raise ValidationError("Due date cannot be before the issue date")
        for key, value in update_data.items():
            setattr(document, key, value)

        self.db.flush()
        return document

    def delete(self, document_id: int):
        document = self.get_by_id(document_id)
        if not document:
            raise NotFoundError(f"{self.label} not found")
        if document.status != DocumentStatus.DRAFT.value or document.payments:
            raise ValidationError(f"Only a draft {self.label.lower()} without payments can be deleted")
        self.db.delete(document)
        self.db.flush()

    def get_payments(self, document_id: int):
        document = self.get_by_id(document_id)
        if not document:
            raise NotFoundError(f"{self.label} not found")
        return document.payments

    def record_payment(self, document_id: int, data: PaymentCreate, user_id: int = None):
        """
        Record a payment and re-derive the document status.

        Runs inside the request transaction together with any ledger posting
        the subclass makes, so a failure leaves nothing behind.
        """
        document = self._get_locked(document_id)
        if not document:
            raise NotFoundError(f"{self.label} not found")
        if document.status == DocumentStatus.CANCELLED.value:
            raise ValidationError(f"Cannot record a payment against a cancelled {self.label.lower()}")

        amount = quantize_money(data.amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be at least 0.01")
        remaining = document.total - document.amount_paid
        if amount > remaining:
            raise QuotaExceededError(f"Payment amount exceeds remaining balance of ${remaining:.2f}")

        payment = self.payment_model(
            amount=amount,
            method=data.method,
            reference=data.reference,
            paid_at=self.now,
        )
        document.payments.append(payment)

        document.status = derive_payment_status(document.amount_paid, document.total)
        if document.status == DocumentStatus.PAID.value:
            document.paid_at = payment.paid_at
        self.db.flush()

        self._after_payment(document, payment, user_id)

        AuditService(self.db).log(
            action=self.payment_action,
            resource_type=self.label,
            resource_id=document.id,
            description=f"Payment of {amount} on {document.document_number}",
            new_values={"amount": amount, "method": data.method, "status": document.status},
            user_id=user_id,
            branch_id=document.branch_id,
        )
        return payment

    def _after_payment(self, document, payment, user_id: int = None):
        """Hook for side effects of a recorded payment"""


class InvoiceService(DocumentService):
    model = Invoice
    item_model = InvoiceItem
    payment_model = InvoicePayment
    counterparty_model = Customer
    counterparty_field = "customer_id"
    number_field = "invoice_number"
    prefix = INVOICE_PREFIX
    label = "Invoice"
    payment_action = AuditAction.PAYMENT_RECEIVED

    def get_by_id(self, document_id: int) -> Optional[Invoice]:
        return self.db.query(Invoice).options(
            joinedload(Invoice.items),
            joinedload(Invoice.payments),
            joinedload(Invoice.branch),
            joinedload(Invoice.customer),
        ).filter(Invoice.id == document_id).first()

    def create(self, data: InvoiceCreate, user_id: int = None) -> Invoice:
        return super().create(data, user_id)

    def _after_payment(self, document: Invoice, payment: InvoicePayment, user_id: int = None):
        """Cash received: debit the branch Cash account"""
        cash_account = AccountService(self.db).find_cash_account(document.branch_id)
        if cash_account is None:
            if settings.REQUIRE_CASH_ACCOUNT:
                raise ConfigurationError(
                    f"No Cash account is configured for branch {document.branch_id}; payment not recorded"
                )
            logger.warning(f"No Cash account for branch {document.branch_id}, "
                           f"skipping ledger posting for {document.invoice_number}")
            return

        LedgerService(self.db, self.now).post(
            branch_id=document.branch_id,
            account_id=cash_account.id,
            transaction_type=TransactionType.DEBIT.value,
            amount=payment.amount,
            description=f"Payment received for invoice {document.invoice_number}",
            category="PAYMENT_RECEIVED",
            reference=document.invoice_number,
            date=payment.paid_at,
            created_by=user_id,
            invoice_id=document.id,
            prefix=PAYMENT_PREFIX,
        )


class BillService(DocumentService):
    model = Bill
    item_model = BillItem
    payment_model = BillPayment
    counterparty_model = Vendor
    counterparty_field = "vendor_id"
    number_field = "bill_number"
    prefix = BILL_PREFIX
    label = "Bill"
    payment_action = AuditAction.PAYMENT_MADE

    def get_by_id(self, document_id: int) -> Optional[Bill]:
        return self.db.query(Bill).options(
            joinedload(Bill.items),
            joinedload(Bill.payments),
            joinedload(Bill.branch),
            joinedload(Bill.vendor),
        ).filter(Bill.id == document_id).first()

    def create(self, data: BillCreate, user_id: int = None) -> Bill:
        return super().create(data, user_id)
