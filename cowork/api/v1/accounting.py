"""
Accounting API Routes - Chart of Accounts and Ledger
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import datetime

from cowork.core.clock import get_now
from cowork.core.database import get_db
from cowork.core.exceptions import NotFoundError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import RoleChecker, FINANCE_ROLES, branch_scope
from cowork.schemas import (
    AccountCreate, AccountResponse, AccountReconciliation,
    TransactionCreate, TransactionResponse, AccountTypeEnum, TransactionTypeEnum
)
from cowork.services.accounting_service import AccountService, LedgerService

router = APIRouter(tags=["Accounting"])

finance_only = RoleChecker(FINANCE_ROLES)


# ==================== ACCOUNTS ====================

@router.get("/accounts")
async def list_accounts(
    branch_id: int = None,
    type: AccountTypeEnum = None,
    category: str = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """List chart of accounts"""
    query = AccountService(db).list_query(
        branch_scope(current_user, branch_id),
        type.value if type else None,
        category
    )
    rows, meta = paginate(query, page)
    return {"data": [AccountResponse.model_validate(a) for a in rows], "pagination": meta}


@router.post("/accounts", status_code=status.HTTP_201_CREATED)
async def create_account(
    account_data: AccountCreate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Create a new account"""
    account = AccountService(db).create(account_data)
    db.commit()
    db.refresh(account)
    return {"success": True, "data": AccountResponse.model_validate(account)}


@router.get("/accounts/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Get account by ID"""
    account = AccountService(db).get_by_id(account_id)
    if not account:
        raise NotFoundError("Account not found")
    return account


@router.get("/accounts/{account_id}/reconcile", response_model=AccountReconciliation)
async def reconcile_account(
    account_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Compare the stored balance with the balance folded from postings"""
    return AccountService(db).reconcile(account_id)


# ==================== TRANSACTIONS ====================

@router.get("/transactions")
async def list_transactions(
    branch_id: int = None,
    account_id: int = None,
    type: TransactionTypeEnum = None,
    category: str = None,
    start_date: datetime = None,
    end_date: datetime = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """List ledger postings, newest first"""
    query = LedgerService(db).list_query(
        branch_id=branch_scope(current_user, branch_id),
        account_id=account_id,
        transaction_type=type.value if type else None,
        category=category,
        start_date=start_date,
        end_date=end_date,
    )
    rows, meta = paginate(query, page)
    return {"data": [TransactionResponse.model_validate(t) for t in rows], "pagination": meta}


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only),
    now: datetime = Depends(get_now)
):
    """Post a manual ledger entry"""
    transaction = LedgerService(db, now).create(transaction_data, current_user.id)
    db.commit()
    db.refresh(transaction)
    return {"success": True, "data": TransactionResponse.model_validate(transaction)}


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Get ledger posting by ID"""
    transaction = LedgerService(db).get_by_id(transaction_id)
    if not transaction:
        raise NotFoundError("Transaction not found")
    return transaction
