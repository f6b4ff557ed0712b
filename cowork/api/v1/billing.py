"""
Billing API Routes - Invoices and Bills
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import datetime

from cowork.core.clock import get_now
from cowork.core.database import get_db
from cowork.core.exceptions import AuthorizationError, NotFoundError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import get_current_user, RoleChecker, FINANCE_ROLES, branch_scope
from cowork.schemas import (
    InvoiceCreate, InvoiceResponse, BillCreate, BillResponse,
    DocumentUpdate, PaymentCreate, PaymentResponse
)
from cowork.services.billing_service import InvoiceService, BillService
from cowork.services.crm_service import CustomerService

router = APIRouter(tags=["Billing"])

finance_only = RoleChecker(FINANCE_ROLES)


def _invoice_customer_scope(user, db: Session):
    """None for finance staff; the customer's id for a CUSTOMER login"""
    if user.role in FINANCE_ROLES:
        return None
    if user.role == "CUSTOMER":
        customer = CustomerService(db).get_for_user(user)
        if customer is None:
            raise NotFoundError("Customer profile not found")
        return customer.id
    raise AuthorizationError("Insufficient permissions")


# ==================== INVOICES ====================

@router.get("/invoices")
async def list_invoices(
    branch_id: int = None,
    status: str = None,
    customer_id: int = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """List invoices; customers only see their own"""
    own_customer_id = _invoice_customer_scope(current_user, db)
    if own_customer_id is not None:
        customer_id = own_customer_id
        branch_id = None
    else:
        branch_id = branch_scope(current_user, branch_id)

    query = InvoiceService(db).list_query(branch_id, status, customer_id)
    rows, meta = paginate(query, page)
    return {"data": [InvoiceResponse.model_validate(i) for i in rows], "pagination": meta}


@router.post("/invoices", status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_data: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Create a draft invoice with its line items"""
    service = InvoiceService(db)
    invoice = service.create(invoice_data, current_user.id)
    db.commit()
    return {"success": True, "data": InvoiceResponse.model_validate(service.get_by_id(invoice.id))}


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Get invoice by ID"""
    own_customer_id = _invoice_customer_scope(current_user, db)
    invoice = InvoiceService(db).get_by_id(invoice_id)
    if not invoice or (own_customer_id is not None and invoice.customer_id != own_customer_id):
        raise NotFoundError("Invoice not found")
    return invoice


@router.put("/invoices/{invoice_id}")
async def update_invoice(
    invoice_id: int,
    invoice_data: DocumentUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Update notes or due date, issue or cancel an invoice"""
    service = InvoiceService(db)
    invoice = service.update(invoice_id, invoice_data)
    db.commit()
    return {"success": True, "data": InvoiceResponse.model_validate(service.get_by_id(invoice.id))}


@router.delete("/invoices/{invoice_id}")
async def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Delete a draft invoice"""
    InvoiceService(db).delete(invoice_id)
    db.commit()
    return {"success": True, "message": "Invoice deleted"}


@router.post("/invoices/{invoice_id}/payments", status_code=status.HTTP_201_CREATED)
async def record_invoice_payment(
    invoice_id: int,
    payment_data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only),
    now: datetime = Depends(get_now)
):
    """Record a payment received against an invoice"""
    service = InvoiceService(db, now)
    payment = service.record_payment(invoice_id, payment_data, current_user.id)
    db.commit()
    invoice = service.get_by_id(invoice_id)
    return {
        "success": True,
        "data": {
            "payment": PaymentResponse.model_validate(payment),
            "invoice": InvoiceResponse.model_validate(invoice),
        }
    }


@router.get("/invoices/{invoice_id}/payments")
async def list_invoice_payments(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Payments recorded against an invoice"""
    own_customer_id = _invoice_customer_scope(current_user, db)
    service = InvoiceService(db)
    invoice = service.get_by_id(invoice_id)
    if not invoice or (own_customer_id is not None and invoice.customer_id != own_customer_id):
        raise NotFoundError("Invoice not found")
    return {"data": [PaymentResponse.model_validate(p) for p in invoice.payments]}


# ==================== BILLS ====================

@router.get("/bills")
async def list_bills(
    branch_id: int = None,
    status: str = None,
    vendor_id: int = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """List vendor bills"""
    query = BillService(db).list_query(branch_scope(current_user, branch_id), status, vendor_id)
    rows, meta = paginate(query, page)
    return {"data": [BillResponse.model_validate(b) for b in rows], "pagination": meta}


@router.post("/bills", status_code=status.HTTP_201_CREATED)
async def create_bill(
    bill_data: BillCreate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Create a draft bill with its line items"""
    service = BillService(db)
    bill = service.create(bill_data, current_user.id)
    db.commit()
    return {"success": True, "data": BillResponse.model_validate(service.get_by_id(bill.id))}


@router.get("/bills/{bill_id}", response_model=BillResponse)
async def get_bill(
    bill_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Get bill by ID"""
    bill = BillService(db).get_by_id(bill_id)
    if not bill:
        raise NotFoundError("Bill not found")
    return bill


@router.put("/bills/{bill_id}")
async def update_bill(
    bill_id: int,
    bill_data: DocumentUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Update notes or due date, issue or cancel a bill"""
    service = BillService(db)
    bill = service.update(bill_id, bill_data)
    db.commit()
    return {"success": True, "data": BillResponse.model_validate(service.get_by_id(bill.id))}


@router.delete("/bills/{bill_id}")
async def delete_bill(
    bill_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Delete a draft bill"""
    BillService(db).delete(bill_id)
    db.commit()
    return {"success": True, "message": "Bill deleted"}


@router.post("/bills/{bill_id}/payments", status_code=status.HTTP_201_CREATED)
async def record_bill_payment(
    bill_id: int,
    payment_data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only),
    now: datetime = Depends(get_now)
):
    """Record a payment made against a bill"""
    service = BillService(db, now)
    payment = service.record_payment(bill_id, payment_data, current_user.id)
    db.commit()
    bill = service.get_by_id(bill_id)
    return {
        "success": True,
        "data": {
            "payment": PaymentResponse.model_validate(payment),
            "bill": BillResponse.model_validate(bill),
        }
    }


@router.get("/bills/{bill_id}/payments")
async def list_bill_payments(
    bill_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Payments made against a bill"""
    payments = BillService(db).get_payments(bill_id)
    return {"data": [PaymentResponse.model_validate(p) for p in payments]}
