"""
Package Service - membership packages and their booking allowances
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from cowork.models import Package, Customer
from cowork.schemas import PackageCreate
from cowork.core.exceptions import NotFoundError


class PackageService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, package_id: int) -> Optional[Package]:
        return self.db.query(Package).filter(Package.id == package_id).first()

    def get_all(self, include_inactive: bool = False) -> List[Package]:
        query = self.db.query(Package)
        if not include_inactive:
            query = query.filter(Package.is_active == True)
        return query.order_by(Package.name).all()

    def create(self, package_data: PackageCreate) -> Package:
        data = package_data.model_dump()
        data["type"] = package_data.type.value
        package = Package(**data)
        self.db.add(package)
        self.db.flush()
        return package

    def assign(self, customer_id: int, package_id: Optional[int]) -> Customer:
        """Attach a package to a customer; None removes it"""
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError("Customer not found")
        if package_id is not None and not self.get_by_id(package_id):
            raise NotFoundError("Package not found")

        customer.package_id = package_id
        self.db.flush()
        return customer
