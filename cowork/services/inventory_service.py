"""
Inventory Service - Items, per-location stock, movements and transfers
"""
from typing import Optional, List, Dict
from sqlalchemy.orm import Session, joinedload
from decimal import Decimal
from datetime import datetime
import logging

from cowork.models import (
    InventoryItem, InventoryLocation, InventoryMovement, InventoryTransfer,
    MovementType, TransferStatus
)
from cowork.schemas import (
    InventoryItemCreate, InventoryItemUpdate, MovementCreate, TransferCreate, TransferUpdate
)
from cowork.core.config import settings
from cowork.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Main Store"

# Allowed next states for a transfer
TRANSFER_TRANSITIONS = {
    TransferStatus.PENDING.value: {
        TransferStatus.APPROVED.value, TransferStatus.IN_TRANSIT.value, TransferStatus.CANCELLED.value,
    },
    TransferStatus.APPROVED.value: {
        TransferStatus.IN_TRANSIT.value, TransferStatus.COMPLETED.value, TransferStatus.CANCELLED.value,
    },
    TransferStatus.IN_TRANSIT.value: {
        TransferStatus.COMPLETED.value, TransferStatus.CANCELLED.value,
    },
    TransferStatus.COMPLETED.value: set(),
    TransferStatus.CANCELLED.value: set(),
}


def movement_deltas(movement_type: str, quantity: Decimal,
                    from_location: Optional[str], to_location: Optional[str]) -> List[tuple]:
    """
    (location, signed delta) pairs a movement applies to the stock aggregate.

    Adjustments correct stock in whichever direction the given location implies.
    """
    if movement_type == MovementType.IN.value:
        return [(to_location, quantity)]
    if movement_type in (MovementType.OUT.value, MovementType.CONSUMPTION.value):
        return [(from_location, -quantity)]
    if movement_type == MovementType.TRANSFER.value:
        return [(from_location, -quantity), (to_location, quantity)]
    if movement_type == MovementType.ADJUSTMENT.value:
        deltas = []
        if from_location:
            deltas.append((from_location, -quantity))
        if to_location:
            deltas.append((to_location, quantity))
        return deltas
    raise ValidationError(f"Unknown movement type '{movement_type}'")


def check_transfer_transition(current: str, new: str):
    if new not in TRANSFER_TRANSITIONS.get(current, set()):
        raise ValidationError(f"Cannot move a transfer from {current} to {new}")


class InventoryService:
    def __init__(self, db: Session, now: datetime = None):
        self.db = db
        self.now = now or datetime.now()

    def get_by_id(self, item_id: int) -> Optional[InventoryItem]:
        return self.db.query(InventoryItem).options(
            joinedload(InventoryItem.locations)
        ).filter(InventoryItem.id == item_id).first()

    def list_query(self, category: str = None, search: str = None, low_stock: bool = False,
                   branch_id: int = None, include_inactive: bool = False):
        query = self.db.query(InventoryItem)
        if category:
            query = query.filter(InventoryItem.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.filter(InventoryItem.name.ilike(pattern) | InventoryItem.sku.ilike(pattern))
        if low_stock:
            query = query.filter(InventoryItem.quantity <= InventoryItem.minimum_stock)
        if branch_id:
            query = query.filter(InventoryItem.branch_id == branch_id)
        if not include_inactive:
            query = query.filter(InventoryItem.is_active == True)
        return query.order_by(InventoryItem.name, InventoryItem.id)

    def create(self, item_data: InventoryItemCreate, actor: str = None) -> InventoryItem:
        data = item_data.model_dump(exclude={"location"})
        data["category"] = item_data.category.value
        item = InventoryItem(**data)

        if item_data.quantity > 0:
            item.locations.append(InventoryLocation(
                location=item_data.location or DEFAULT_LOCATION,
                quantity=item_data.quantity,
                last_updated=self.now,
                last_updated_by=actor,
            ))

        self.db.add(item)
        self.db.flush()
        return item

    def update(self, item_id: int, item_data: InventoryItemUpdate) -> InventoryItem:
        item = self.get_by_id(item_id)
        if not item:
            raise NotFoundError("Inventory item not found")

        update_data = item_data.model_dump(exclude_unset=True)
        if update_data.get("category") is not None:
            update_data["category"] = update_data["category"].value
        for key, value in update_data.items():
            if value is None and key in ("name", "category", "unit", "is_active"):
                continue
            setattr(item, key, value)

        self.db.flush()
        return item

    def delete(self, item_id: int):
        item = self.get_by_id(item_id)
        if not item:
            raise NotFoundError("Inventory item not found")
        self.db.delete(item)
        self.db.flush()

    def get_stats(self) -> Dict:
        items = self.db.query(InventoryItem).filter(InventoryItem.is_active == True).all()

        total_quantity = Decimal("0")
        total_value = Decimal("0")
        by_category = {}
        low_stock = 0
        for item in items:
            quantity = item.quantity or Decimal("0")
            total_quantity += quantity
            total_value += quantity * (item.current_price or Decimal("0"))
            by_category[item.category] = by_category.get(item.category, 0) + 1
            if item.is_low_stock:
                low_stock += 1

        return {
            "total_items": len(items),
            "total_quantity": total_quantity,
            "total_value": total_value,
            "low_stock_count": low_stock,
            "by_category": by_category,
        }

    # ---- stock aggregate ----

    def _adjust_location(self, item: InventoryItem, location: str, delta: Decimal, actor: str):
        row = self.db.query(InventoryLocation).filter(
            InventoryLocation.item_id == item.id,
            InventoryLocation.location == location
        ).with_for_update().first()
        if row is None:
            row = InventoryLocation(item_id=item.id, location=location, quantity=Decimal("0"))
            self.db.add(row)
            self.db.flush()

        new_quantity = (row.quantity or Decimal("0")) + delta
        if new_quantity < 0:
            if not settings.ALLOW_NEGATIVE_STOCK:
                raise ValidationError(f"Insufficient stock of '{item.name}' at {location}")
            logger.warning(f"Stock of item {item.id} at {location} goes negative ({new_quantity})")

        row.quantity = new_quantity
        row.last_updated = self.now
        row.last_updated_by = actor

    def record_movement(self, data: MovementCreate, actor: str) -> InventoryMovement:
        """Append a movement and apply it to the per-location stock and the item total"""
        item = self.db.query(InventoryItem).filter(
            InventoryItem.id == data.item_id
        ).with_for_update().first()
        if not item:
            raise NotFoundError("Inventory item not found")

        movement_type = data.movement_type.value
        if movement_type == MovementType.TRANSFER.value and data.from_location == data.to_location:
            raise ValidationError("Source and destination locations must differ")

        movement = InventoryMovement(
            item_id=item.id,
            movement_type=movement_type,
            from_location=data.from_location,
            to_location=data.to_location,
            quantity=data.quantity,
            reason=data.reason,
            reference=data.reference,
            notes=data.notes,
            performed_by=actor,
            performed_at=self.now,
        )
        self.db.add(movement)

        net = Decimal("0")
        for location, delta in movement_deltas(movement_type, data.quantity, data.from_location, data.to_location):
            self._adjust_location(item, location, delta, actor)
            net += delta
        item.quantity = (item.quantity or Decimal("0")) + net

        self.db.flush()
        return movement

    def list_movements(self, item_id: int = None, movement_type: str = None):
        query = self.db.query(InventoryMovement)
        if item_id:
            query = query.filter(InventoryMovement.item_id == item_id)
        if movement_type:
            query = query.filter(InventoryMovement.movement_type == movement_type)
        return query.order_by(InventoryMovement.performed_at.desc(), InventoryMovement.id.desc())

    # ---- transfers ----

    def get_transfer(self, transfer_id: int) -> Optional[InventoryTransfer]:
        return self.db.query(InventoryTransfer).filter(InventoryTransfer.id == transfer_id).first()

    def list_transfers(self, status: str = None, item_id: int = None):
        query = self.db.query(InventoryTransfer)
        if status:
            query = query.filter(InventoryTransfer.status == status)
        if item_id:
            query = query.filter(InventoryTransfer.item_id == item_id)
        return query.order_by(InventoryTransfer.requested_at.desc(), InventoryTransfer.id.desc())

    def create_transfer(self, data: TransferCreate, actor: str) -> InventoryTransfer:
        if not self.db.query(InventoryItem).filter(InventoryItem.id == data.item_id).first():
            raise NotFoundError("Inventory item not found")
        if data.from_location == data.to_location:
            raise ValidationError("Source and destination locations must differ")

        transfer = InventoryTransfer(
            item_id=data.item_id,
            from_location=data.from_location,
            to_location=data.to_location,
            quantity=data.quantity,
            notes=data.notes,
            status=TransferStatus.PENDING.value,
            requested_by=actor,
            requested_at=self.now,
        )
        self.db.add(transfer)
        self.db.flush()
        return transfer

    def update_transfer(self, transfer_id: int, data: TransferUpdate, actor: str) -> InventoryTransfer:
        transfer = self.get_transfer(transfer_id)
        if not transfer:
            raise NotFoundError("Transfer not found")

        new_status = data.status.value
        check_transfer_transition(transfer.status, new_status)

        if new_status in (TransferStatus.APPROVED.value, TransferStatus.IN_TRANSIT.value) \
                and transfer.approved_by is None:
            transfer.approved_by = actor
            transfer.approved_at = self.now
        if new_status == TransferStatus.COMPLETED.value:
            transfer.completed_by = actor
            transfer.completed_at = self.now

        transfer.status = new_status
        if data.notes is not None:
            transfer.notes = data.notes
        self.db.flush()
        return transfer
