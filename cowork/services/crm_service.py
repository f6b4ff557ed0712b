"""
CRM Service - Business Logic for Customers and Vendors
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from cowork.models import Customer, Vendor, Branch, Package, User
from cowork.schemas import CustomerCreate, CustomerUpdate, VendorCreate
from cowork.core.exceptions import ConflictError, NotFoundError


class CustomerService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, customer_id: int, lock: bool = False) -> Optional[Customer]:
        query = self.db.query(Customer).filter(Customer.id == customer_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def get_for_user(self, user: User) -> Optional[Customer]:
        """Customer profile of a CUSTOMER login, linked by user id or email"""
        customer = self.db.query(Customer).filter(Customer.user_id == user.id).first()
        if customer is None:
            customer = self.db.query(Customer).filter(Customer.email == user.email).first()
        return customer

    def list_query(self, branch_id: int = None, status: str = None, search: str = None):
        query = self.db.query(Customer)
        if branch_id:
            query = query.filter(Customer.branch_id == branch_id)
        if status:
            query = query.filter(Customer.account_status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(Customer.name.ilike(pattern) | Customer.email.ilike(pattern))
        return query.order_by(Customer.created_at.desc(), Customer.id.desc())

    def create(self, customer_data: CustomerCreate) -> Customer:
        if self.db.query(Customer).filter(Customer.email == customer_data.email.lower()).first():
            raise ConflictError("A customer with this email already exists")
        if not self.db.query(Branch).filter(Branch.id == customer_data.branch_id).first():
            raise NotFoundError("Branch not found")
        if customer_data.package_id is not None and \
                not self.db.query(Package).filter(Package.id == customer_data.package_id).first():
            raise NotFoundError("Package not found")

        data = customer_data.model_dump()
        data["email"] = data["email"].lower()
        customer = Customer(**data)
        self.db.add(customer)
        self.db.flush()
        return customer

    def update(self, customer_id: int, customer_data: CustomerUpdate) -> Customer:
        customer = self.get_by_id(customer_id)
        if not customer:
            raise NotFoundError("Customer not found")

        update_data = customer_data.model_dump(exclude_unset=True)
        if "account_status" in update_data and update_data["account_status"] is not None:
            update_data["account_status"] = update_data["account_status"].value
        for key, value in update_data.items():
            setattr(customer, key, value)

        self.db.flush()
        return customer


class VendorService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, vendor_id: int) -> Optional[Vendor]:
        return self.db.query(Vendor).filter(Vendor.id == vendor_id).first()

    def get_by_branch(self, branch_id: int = None) -> List[Vendor]:
        query = self.db.query(Vendor)
        if branch_id:
            query = query.filter(Vendor.branch_id == branch_id)
        return query.order_by(Vendor.name).all()

    def create(self, vendor_data: VendorCreate) -> Vendor:
        if not self.db.query(Branch).filter(Branch.id == vendor_data.branch_id).first():
            raise NotFoundError("Branch not found")
        vendor = Vendor(**vendor_data.model_dump())
        self.db.add(vendor)
        self.db.flush()
        return vendor
