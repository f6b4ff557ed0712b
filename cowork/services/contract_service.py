"""
Contract Service - customer contract requests
"""
from typing import Optional
from sqlalchemy.orm import Session
from datetime import datetime

from cowork.models import Contract, Customer, ContractStatus
from cowork.schemas import ContractComplete
from cowork.core.exceptions import NotFoundError, ValidationError
from cowork.services.notification_service import NotificationService


class ContractService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, contract_id: int) -> Optional[Contract]:
        return self.db.query(Contract).filter(Contract.id == contract_id).first()

    def list_query(self, customer_id: int = None, status: str = None):
        query = self.db.query(Contract)
        if customer_id:
            query = query.filter(Contract.customer_id == customer_id)
        if status:
            query = query.filter(Contract.status == status)
        return query.order_by(Contract.created_at.desc(), Contract.id.desc())

    def request(self, customer: Customer) -> Contract:
        pending = self.db.query(Contract).filter(
            Contract.customer_id == customer.id,
            Contract.status == ContractStatus.PENDING.value
        ).first()
        if pending:
            raise ValidationError("You already have a pending contract request")

        contract = Contract(customer_id=customer.id, status=ContractStatus.PENDING.value, type="REQUEST")
        self.db.add(contract)
        self.db.flush()
        return contract

    def complete(self, contract_id: int, data: ContractComplete, user_id: int) -> Contract:
        """Attach the prepared contract file and tell the customer"""
        contract = self.get_by_id(contract_id)
        if not contract:
            raise NotFoundError("Contract request not found")
        if contract.status == ContractStatus.COMPLETED.value:
            raise ValidationError("Contract has already been uploaded")

        contract.file_name = data.file_name
        contract.file_url = data.file_url
        contract.uploaded_by = user_id
        contract.uploaded_at = datetime.utcnow()
        contract.status = ContractStatus.COMPLETED.value
        self.db.flush()

        NotificationService(self.db).notify(
            contract.customer_id,
            "Contract Ready",
            f"Your contract {data.file_name} is ready for download.",
            "contract",
        )
        return contract
