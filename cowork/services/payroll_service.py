"""
Payroll Service - payroll records, deductions and net pay
"""
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from decimal import Decimal
from datetime import datetime
import logging

from cowork.models import Payroll, PayrollItem, User, Branch, Account, PayrollStatus, TransactionType
from cowork.schemas import PayrollCreate, PayrollUpdate
from cowork.core.exceptions import ConflictError, NotFoundError, ValidationError
from cowork.core.numbering import PAYROLL_PREFIX
from cowork.services.accounting_service import LedgerService, quantize_money
from cowork.services.audit_service import AuditService, AuditAction

logger = logging.getLogger(__name__)


def calculate_net_pay(base_salary: Decimal, overtime: Decimal, bonus: Decimal,
                      items: List[dict]) -> Tuple[Decimal, Decimal]:
    """
    Returns (deductions, net_pay).

    Only items flagged is_deduction reduce pay; other items are informational.
    """
    deductions = sum(
        (quantize_money(item["amount"]) for item in items if item.get("is_deduction")),
        Decimal("0.00")
    )
    net_pay = quantize_money(base_salary) + quantize_money(overtime or 0) + quantize_money(bonus or 0) - deductions
    return deductions, net_pay


class PayrollService:
    def __init__(self, db: Session, now: datetime = None):
        self.db = db
        self.now = now or datetime.now()

    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        return self.db.query(Payroll).options(
            joinedload(Payroll.items),
            joinedload(Payroll.employee),
        ).filter(Payroll.id == payroll_id).first()

    def get_for_period(self, employee_id: int, pay_period: str) -> Optional[Payroll]:
        return self.db.query(Payroll).filter(
            Payroll.employee_id == employee_id,
            Payroll.pay_period == pay_period
        ).first()

    def list_query(self, branch_id: int = None, employee_id: int = None,
                   pay_period: str = None, status: str = None):
        query = self.db.query(Payroll).options(joinedload(Payroll.employee))
        if branch_id:
            query = query.filter(Payroll.branch_id == branch_id)
        if employee_id:
            query = query.filter(Payroll.employee_id == employee_id)
        if pay_period:
            query = query.filter(Payroll.pay_period == pay_period)
        if status:
            query = query.filter(Payroll.status == status.upper())
        return query.order_by(Payroll.created_at.desc(), Payroll.id.desc())

    def create(self, data: PayrollCreate, user_id: int = None) -> Payroll:
        if not self.db.query(User).filter(User.id == data.employee_id).first():
            raise NotFoundError("Employee not found")
        if not self.db.query(Branch).filter(Branch.id == data.branch_id).first():
            raise NotFoundError("Branch not found")

        if self.get_for_period(data.employee_id, data.pay_period):
            raise ConflictError("Payroll record already exists for this employee and pay period")

        items = [item.model_dump() for item in data.items]
        deductions, net_pay = calculate_net_pay(data.base_salary, data.overtime, data.bonus, items)

        payroll = Payroll(
            employee_id=data.employee_id,
            branch_id=data.branch_id,
            pay_period=data.pay_period,
            base_salary=data.base_salary,
            overtime=data.overtime,
            bonus=data.bonus,
            deductions=deductions,
            net_pay=net_pay,
            status=PayrollStatus.PENDING.value,
            notes=data.notes,
        )
        for item in items:
            payroll.items.append(PayrollItem(**item))

        self.db.add(payroll)
        try:
            self.db.flush()
        except IntegrityError:
            # lost the race against a concurrent create for the same period
            raise ConflictError("Payroll record already exists for this employee and pay period")

        AuditService(self.db).log(
            action=AuditAction.PAYROLL_CREATED,
            resource_type="Payroll",
            resource_id=payroll.id,
            description=f"Payroll {payroll.pay_period} for employee {payroll.employee_id}",
            new_values={"net_pay": net_pay},
            user_id=user_id,
            branch_id=payroll.branch_id,
        )
        return payroll

    def update(self, payroll_id: int, data: PayrollUpdate, user_id: int = None) -> Payroll:
        payroll = self.get_by_id(payroll_id)
        if not payroll:
            raise NotFoundError("Payroll record not found")
        if payroll.status == PayrollStatus.PAID.value:
            raise ValidationError("Payroll already paid")
        if payroll.status == PayrollStatus.CANCELLED.value:
            raise ValidationError("Cancelled payroll cannot be edited")

        update_data = data.model_dump(exclude_unset=True)
        new_status = update_data.pop("status", None)
        new_items = update_data.pop("items", None)

        for key in ("base_salary", "overtime", "bonus"):
            if update_data.get(key) is not None:
                setattr(payroll, key, update_data[key])
        if "notes" in update_data:
            payroll.notes = update_data["notes"]

        if new_items is not None:
            payroll.items.clear()
            for item in new_items:
                payroll.items.append(PayrollItem(**item))

        items = [{"amount": i.amount, "is_deduction": i.is_deduction} for i in payroll.items]
        payroll.deductions, payroll.net_pay = calculate_net_pay(
            payroll.base_salary, payroll.overtime, payroll.bonus, items
        )

        if new_status is not None and new_status.value != payroll.status:
            payroll.status = new_status.value
            if payroll.status == PayrollStatus.PAID.value:
                payroll.paid_at = self.now
                self.db.flush()
                self._post_salary_expense(payroll, user_id)

        self.db.flush()
        return payroll

    def _post_salary_expense(self, payroll: Payroll, user_id: int = None):
        expense_account = self.db.query(Account).filter(
            Account.branch_id == payroll.branch_id,
            Account.type == "EXPENSE",
            Account.name.ilike("%salar%"),
            Account.is_active == True
        ).order_by(Account.code, Account.id).first()

        if expense_account is None:
            logger.warning(f"No salaries expense account for branch {payroll.branch_id}, "
                           f"payroll {payroll.id} paid without a ledger posting")
        elif payroll.net_pay > 0:
            employee_name = payroll.employee.full_name or payroll.employee.email
            LedgerService(self.db, self.now).post(
                branch_id=payroll.branch_id,
                account_id=expense_account.id,
                transaction_type=TransactionType.DEBIT.value,
                amount=payroll.net_pay,
                description=f"Payroll payment for {employee_name}",
                category="PAYROLL",
                reference=f"PAYROLL-{payroll.id}",
                date=payroll.paid_at,
                created_by=user_id,
                prefix=PAYROLL_PREFIX,
            )

        AuditService(self.db).log(
            action=AuditAction.PAYROLL_PAID,
            resource_type="Payroll",
            resource_id=payroll.id,
            new_values={"net_pay": payroll.net_pay},
            user_id=user_id,
            branch_id=payroll.branch_id,
        )

    def delete(self, payroll_id: int):
        payroll = self.get_by_id(payroll_id)
        if not payroll:
            raise NotFoundError("Payroll record not found")
        if payroll.status == PayrollStatus.PAID.value:
            raise ValidationError("Cannot delete paid payroll record")
        self.db.delete(payroll)
        self.db.flush()
