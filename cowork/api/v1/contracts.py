"""
Contract API Routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cowork.core.database import get_db
from cowork.core.exceptions import AuthorizationError, NotFoundError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import get_current_user, get_current_customer, RoleChecker, FINANCE_ROLES
from cowork.schemas import ContractComplete, ContractResponse
from cowork.services.contract_service import ContractService
from cowork.services.crm_service import CustomerService

router = APIRouter(prefix="/contracts", tags=["Contracts"])


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/request", status_code=status.HTTP_201_CREATED)
async def request_contract(
    db: Session = Depends(get_db),
    customer=Depends(get_current_customer)
):
    """Ask for a contract to be prepared"""
    contract = ContractService(db).request(customer)
    db.commit()
    db.refresh(contract)
    return {"success": True, "data": ContractResponse.model_validate(contract)}


@router.get("")
async def list_contracts(
    status: str = None,
    customer_id: int = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Customers see their own contracts, finance staff see all"""
    if current_user.role == "CUSTOMER":
        customer = CustomerService(db).get_for_user(current_user)
        if customer is None:
            raise NotFoundError("Customer profile not found")
        customer_id = customer.id
    elif current_user.role not in FINANCE_ROLES:
        raise AuthorizationError("Insufficient permissions")

    query = ContractService(db).list_query(customer_id, status)
    rows, meta = paginate(query, page)
    return {"data": [ContractResponse.model_validate(c) for c in rows], "pagination": meta}


@router.put("/{contract_id}/upload")
async def upload_contract(
    contract_id: int,
    contract_data: ContractComplete,
    db: Session = Depends(get_db),
    current_user=Depends(RoleChecker(FINANCE_ROLES))
):
    """Attach the prepared contract file to a request"""
    contract = ContractService(db).complete(contract_id, contract_data, current_user.id)
    db.commit()
    db.refresh(contract)
    return {"success": True, "data": ContractResponse.model_validate(contract)}
