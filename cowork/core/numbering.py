"""
Atomic document numbering.

Every document kind (INV, BILL, TXN, PAY, PAYROLL) draws from its own row in
document_sequences. The increment is a single UPDATE ... SET current_value =
current_value + 1 executed inside the caller's transaction, so concurrent
writers serialize on that row and never hand out the same number.
"""
from datetime import datetime
import logging

from sqlalchemy import update, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cowork.core.exceptions import ConflictError
from cowork.models import DocumentSequence

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"
BILL_PREFIX = "BILL"
TRANSACTION_PREFIX = "TXN"
PAYMENT_PREFIX = "PAY"
PAYROLL_PREFIX = "PAYROLL"

MAX_RETRIES = 3


def format_document_number(prefix: str, sequence: int) -> str:
    """INV + 7 -> INV-000007"""
    return f"{prefix}-{sequence:06d}"


class DocumentNumbering:
    """Hands out sequence numbers per prefix"""

    def __init__(self, db: Session):
        self.db = db

    def _increment(self, prefix: str):
        result = self.db.execute(
            update(DocumentSequence)
            .where(DocumentSequence.prefix == prefix)
            .values(current_value=DocumentSequence.current_value + 1,
                    updated_at=datetime.utcnow())
        )
        if result.rowcount == 0:
            return None
        return self.db.execute(
            select(DocumentSequence.current_value).where(DocumentSequence.prefix == prefix)
        ).scalar_one()

    def next_sequence(self, prefix: str) -> int:
        for attempt in range(MAX_RETRIES):
            value = self._increment(prefix)
            if value is not None:
                return value

            # First document of this kind: create the counter row. A concurrent
            # creator wins the unique constraint and we retry the increment.
            try:
                with self.db.begin_nested():
                    self.db.add(DocumentSequence(prefix=prefix, current_value=1))
                return 1
            except IntegrityError:
                logger.warning(f"Sequence row for {prefix} created concurrently (attempt {attempt + 1})")

        raise ConflictError(f"Could not allocate a {prefix} number, please retry")

    def next_number(self, prefix: str) -> str:
        return format_document_number(prefix, self.next_sequence(prefix))
