"""
Accounting Service - Chart of Accounts and Ledger postings
"""
from typing import Optional, Dict
from sqlalchemy.orm import Session
from sqlalchemy import func, case, update
from sqlalchemy.exc import IntegrityError
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
import logging

from cowork.models import Account, Transaction, Branch, TransactionType
from cowork.schemas import AccountCreate, TransactionCreate
from cowork.core.exceptions import ConflictError, NotFoundError, ValidationError
from cowork.core.numbering import DocumentNumbering, TRANSACTION_PREFIX
from cowork.services.audit_service import AuditService, AuditAction

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def quantize_money(value) -> Decimal:
    """Round to cents, half-up"""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def balance_delta(transaction_type: str, amount: Decimal) -> Decimal:
    """DEBIT raises the account balance, CREDIT lowers it"""
    return amount if transaction_type == TransactionType.DEBIT.value else -amount


class AccountService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, account_id: int) -> Optional[Account]:
        return self.db.query(Account).filter(Account.id == account_id).first()

    def get_by_code(self, code: str, branch_id: int) -> Optional[Account]:
        return self.db.query(Account).filter(
            Account.code == code,
            Account.branch_id == branch_id
        ).first()

    def list_query(self, branch_id: int = None, account_type: str = None, category: str = None,
                   include_inactive: bool = False):
        query = self.db.query(Account)
        if branch_id:
            query = query.filter(Account.branch_id == branch_id)
        if account_type:
            query = query.filter(Account.type == account_type.upper())
        if category:
            query = query.filter(Account.category == category)
        if not include_inactive:
            query = query.filter(Account.is_active == True)
        return query.order_by(Account.code, Account.id)

    def create(self, account_data: AccountCreate) -> Account:
        if not self.db.query(Branch).filter(Branch.id == account_data.branch_id).first():
            raise NotFoundError("Branch not found")

        if self.get_by_code(account_data.code, account_data.branch_id):
            raise ConflictError(f"Account with code '{account_data.code}' already exists")

        if account_data.parent_id is not None:
            parent = self.get_by_id(account_data.parent_id)
            if not parent or parent.branch_id != account_data.branch_id:
                raise NotFoundError("Parent account not found")

        account = Account(
            code=account_data.code,
            name=account_data.name,
            type=account_data.type.value,
            category=account_data.category,
            description=account_data.description,
            parent_id=account_data.parent_id,
            branch_id=account_data.branch_id,
            balance=Decimal("0.00"),
        )
        self.db.add(account)
        self.db.flush()
        return account

    def find_cash_account(self, branch_id: int) -> Optional[Account]:
        """The branch's cash-in-hand account: a current asset whose name mentions Cash"""
        return self.db.query(Account).filter(
            Account.branch_id == branch_id,
            Account.type == "ASSET",
            Account.category == "Current Asset",
            Account.name.ilike("%cash%"),
            Account.is_active == True
        ).order_by(Account.code, Account.id).first()

    def get_derived_balance(self, account_id: int) -> Decimal:
        """Balance folded from postings rather than the stored running total"""
        signed = case(
            (Transaction.type == TransactionType.DEBIT.value, Transaction.amount),
            else_=-Transaction.amount
        )
        result = self.db.query(func.sum(signed)).filter(Transaction.account_id == account_id).scalar()
        return quantize_money(result or 0)

    def reconcile(self, account_id: int) -> Dict:
        account = self.get_by_id(account_id)
        if not account:
            raise NotFoundError("Account not found")

        stored = quantize_money(account.balance or 0)
        derived = self.get_derived_balance(account_id)
        count = self.db.query(func.count(Transaction.id)).filter(
            Transaction.account_id == account_id
        ).scalar()

        if stored != derived:
            logger.warning(f"Account {account.code} (id={account.id}) out of balance: "
                           f"stored {stored}, derived {derived}")

        return {
            "account_id": account.id,
            "stored_balance": stored,
            "derived_balance": derived,
            "difference": stored - derived,
            "transaction_count": count,
            "is_balanced": stored == derived,
        }


class LedgerService:
    """
    Writes ledger postings.

    A posting and its balance delta are applied in the caller's transaction.
    The balance moves through an SQL expression so concurrent postings to the
    same account add up instead of overwriting each other.
    """

    def __init__(self, db: Session, now: datetime = None):
        self.db = db
        self.now = now or datetime.now()

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        return self.db.query(Transaction).filter(Transaction.id == transaction_id).first()

    def list_query(
        self,
        branch_id: int = None,
        account_id: int = None,
        transaction_type: str = None,
        category: str = None,
        start_date: datetime = None,
        end_date: datetime = None,
    ):
        query = self.db.query(Transaction)
        if branch_id:
            query = query.filter(Transaction.branch_id == branch_id)
        if account_id:
            query = query.filter(Transaction.account_id == account_id)
        if transaction_type:
            query = query.filter(Transaction.type == transaction_type.upper())
        if category:
            query = query.filter(Transaction.category == category)
        if start_date:
            query = query.filter(Transaction.date >= start_date)
        if end_date:
            query = query.filter(Transaction.date <= end_date)
        return query.order_by(Transaction.date.desc(), Transaction.id.desc())

    def create(self, data: TransactionCreate, user_id: int = None) -> Transaction:
        return self.post(
            branch_id=data.branch_id,
            account_id=data.account_id,
            transaction_type=data.type.value,
            amount=data.amount,
            description=data.description,
            category=data.category,
            reference=data.reference,
            date=data.date,
            created_by=user_id,
        )

    def post(
        self,
        branch_id: int,
        account_id: int,
        transaction_type: str,
        amount: Decimal,
        description: str,
        category: str,
        reference: str = None,
        date: datetime = None,
        created_by: int = None,
        invoice_id: int = None,
        prefix: str = TRANSACTION_PREFIX,
    ) -> Transaction:
        amount = quantize_money(amount)
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")
        if transaction_type not in (TransactionType.DEBIT.value, TransactionType.CREDIT.value):
            raise ValidationError("Transaction type must be DEBIT or CREDIT")

        account = self.db.query(Account).filter(Account.id == account_id).first()
        if not account:
            raise NotFoundError("Account not found")
        if account.branch_id != branch_id:
            raise ValidationError("Account does not belong to this branch")

        transaction = Transaction(
            transaction_number=DocumentNumbering(self.db).next_number(prefix),
            type=transaction_type,
            amount=amount,
            account_id=account_id,
            branch_id=branch_id,
            category=category,
            description=description,
            reference=reference,
            date=date or self.now,
            created_by=created_by,
            invoice_id=invoice_id,
        )
        self.db.add(transaction)
        try:
            self.db.flush()
        except IntegrityError:
            raise ConflictError("Duplicate transaction number, please retry")

        self.db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(balance=Account.balance + balance_delta(transaction_type, amount),
                    updated_at=self.now)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(account)

        AuditService(self.db).log(
            action=AuditAction.LEDGER_POSTED,
            resource_type="Transaction",
            resource_id=transaction.id,
            description=f"{transaction_type} {amount} to account {account.code}",
            new_values={"account_id": account_id, "amount": amount, "type": transaction_type},
            user_id=created_by,
            branch_id=branch_id,
        )
        return transaction
