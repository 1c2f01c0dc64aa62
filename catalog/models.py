"""
catalog/models.py -- Domain dataclass for the product catalog.

The catalog is the protected resource behind the auth gate: every product
records the id of the authenticated user who created it. Pure data
container, zero logic -- catalog/store.py does the work.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Product:
    """A catalog entry.

    is_active=False hides the product from listings without deleting it.
    created_by is the sub claim of the token that created the product.
    """

    name: str
    price: Decimal
    created_by: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: str | None = None
    category: str | None = None
    stock: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
