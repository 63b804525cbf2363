"""Product domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from uuid import UUID, uuid4


class ProductStatus(StrEnum):
    """Listing status driven by the admin approval workflow."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"


@dataclass
class Product:
    """Domain entity for a marketplace listing."""

    seller_id: UUID
    name: str
    price: Decimal
    id: UUID = field(default_factory=uuid4)
    seller_name: str = ""
    description: str = ""
    category: str = ""
    images: list[str] = field(default_factory=list)
    status: ProductStatus = ProductStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def set_status(self, status: ProductStatus) -> None:
        self.status = status
        self.updated_at = datetime.utcnow()

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
