"""
Inventory API Routes - items, stock movements and transfers
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import datetime

from cowork.core.clock import get_now
from cowork.core.database import get_db
from cowork.core.exceptions import NotFoundError
from cowork.core.pagination import PageParams, paginate
from cowork.core.security import RoleChecker, STAFF_ROLES, FINANCE_ROLES
from cowork.schemas import (
    InventoryItemCreate, InventoryItemUpdate, InventoryItemResponse, InventoryItemDetail,
    InventoryStats, MovementCreate, MovementResponse, MovementTypeEnum,
    TransferCreate, TransferUpdate, TransferResponse, TransferStatusEnum, InventoryCategoryEnum
)
from cowork.services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory"])

staff_only = RoleChecker(STAFF_ROLES)
finance_only = RoleChecker(FINANCE_ROLES)


def _actor(user) -> str:
    return user.full_name or user.email


@router.get("")
async def list_items(
    category: InventoryCategoryEnum = None,
    search: str = None,
    low_stock: bool = False,
    branch_id: int = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """List inventory items"""
    query = InventoryService(db).list_query(
        category.value if category else None, search, low_stock, branch_id
    )
    rows, meta = paginate(query, page)
    return {"data": [InventoryItemResponse.model_validate(i) for i in rows], "pagination": meta}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only),
    now: datetime = Depends(get_now)
):
    """Create an inventory item with its opening stock"""
    service = InventoryService(db, now)
    item = service.create(item_data, _actor(current_user))
    db.commit()
    return {"success": True, "data": InventoryItemDetail.model_validate(service.get_by_id(item.id))}


@router.get("/stats", response_model=InventoryStats)
async def get_inventory_stats(
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """Item count, stock value and low-stock count"""
    return InventoryService(db).get_stats()


# ==================== MOVEMENTS ====================

@router.get("/movements")
async def list_movements(
    item_id: int = None,
    movement_type: MovementTypeEnum = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """Stock movement history, newest first"""
    query = InventoryService(db).list_movements(item_id, movement_type.value if movement_type else None)
    rows, meta = paginate(query, page)
    return {"data": [MovementResponse.model_validate(m) for m in rows], "pagination": meta}


@router.post("/movements", status_code=status.HTTP_201_CREATED)
async def record_movement(
    movement_data: MovementCreate,
    db: Session = Depends(get_db),
    current_user=Depends(staff_only),
    now: datetime = Depends(get_now)
):
    """Record a stock movement and apply it to the per-location stock"""
    movement = InventoryService(db, now).record_movement(movement_data, _actor(current_user))
    db.commit()
    db.refresh(movement)
    return {"success": True, "data": MovementResponse.model_validate(movement)}


# ==================== TRANSFERS ====================

@router.get("/transfers")
async def list_transfers(
    status: TransferStatusEnum = None,
    item_id: int = None,
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """List transfer requests"""
    query = InventoryService(db).list_transfers(status.value if status else None, item_id)
    rows, meta = paginate(query, page)
    return {"data": [TransferResponse.model_validate(t) for t in rows], "pagination": meta}


@router.post("/transfers", status_code=status.HTTP_201_CREATED)
async def create_transfer(
    transfer_data: TransferCreate,
    db: Session = Depends(get_db),
    current_user=Depends(staff_only),
    now: datetime = Depends(get_now)
):
    """Request a transfer between locations"""
    transfer = InventoryService(db, now).create_transfer(transfer_data, _actor(current_user))
    db.commit()
    db.refresh(transfer)
    return {"success": True, "data": TransferResponse.model_validate(transfer)}


@router.put("/transfers/{transfer_id}")
async def update_transfer(
    transfer_id: int,
    transfer_data: TransferUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only),
    now: datetime = Depends(get_now)
):
    """Move a transfer to its next status"""
    transfer = InventoryService(db, now).update_transfer(transfer_id, transfer_data, _actor(current_user))
    db.commit()
    db.refresh(transfer)
    return {"success": True, "data": TransferResponse.model_validate(transfer)}


# ==================== ITEMS ====================

@router.get("/{item_id}", response_model=InventoryItemDetail)
async def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(staff_only)
):
    """Get inventory item with its stock per location"""
    item = InventoryService(db).get_by_id(item_id)
    if not item:
        raise NotFoundError("Inventory item not found")
    return item


@router.put("/{item_id}")
async def update_item(
    item_id: int,
    item_data: InventoryItemUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Update item details; stock only changes through movements"""
    service = InventoryService(db)
    item = service.update(item_id, item_data)
    db.commit()
    return {"success": True, "data": InventoryItemDetail.model_validate(service.get_by_id(item.id))}


@router.delete("/{item_id}")
async def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(finance_only)
):
    """Delete an inventory item"""
    InventoryService(db).delete(item_id)
    db.commit()
    return {"success": True, "message": "Inventory item deleted"}
