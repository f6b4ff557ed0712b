"""
Branch Service - branches and their default chart of accounts
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from cowork.models import Branch, Account
from cowork.schemas import BranchCreate


# (code, name, type, category)
DEFAULT_CHART_OF_ACCOUNTS = [
    # Assets
    ("1000", "Cash", "ASSET", "Current Asset"),
    ("1100", "Bank", "ASSET", "Current Asset"),
    ("1200", "Accounts Receivable", "ASSET", "Current Asset"),
    ("1300", "Inventory", "ASSET", "Current Asset"),
    # Liabilities
    ("2000", "Accounts Payable", "LIABILITY", "Current Liability"),
    ("2100", "Tax Payable", "LIABILITY", "Current Liability"),
    # Equity
    ("3000", "Owner's Equity", "EQUITY", "Equity"),
    # Revenue
    ("4000", "Membership Revenue", "REVENUE", "Operating Revenue"),
    ("4100", "Meeting Room Revenue", "REVENUE", "Operating Revenue"),
    # Expenses
    ("5000", "Salaries Expense", "EXPENSE", "Payroll"),
    ("5100", "Utilities Expense", "EXPENSE", "Operating Expense"),
    ("5200", "Rent Expense", "EXPENSE", "Operating Expense"),
]


class BranchService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, branch_id: int) -> Optional[Branch]:
        return self.db.query(Branch).filter(Branch.id == branch_id).first()

    def get_all(self, include_inactive: bool = False) -> List[Branch]:
        query = self.db.query(Branch)
        if not include_inactive:
            query = query.filter(Branch.is_active == True)
        return query.order_by(Branch.name).all()

    def create(self, branch_data: BranchCreate, seed_accounts: bool = True) -> Branch:
        branch = Branch(**branch_data.model_dump(), is_active=True)
        self.db.add(branch)
        self.db.flush()

        if seed_accounts:
            self.create_default_chart_of_accounts(branch.id)
        return branch

    def create_default_chart_of_accounts(self, branch_id: int) -> List[Account]:
        """Create default chart of accounts for a new branch"""
        accounts = [
            Account(code=code, name=name, type=type_, category=category, branch_id=branch_id)
            for code, name, type_, category in DEFAULT_CHART_OF_ACCOUNTS
        ]
        self.db.add_all(accounts)
        self.db.flush()
        return accounts
