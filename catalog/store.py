"""
catalog/store.py -- SQLAlchemy Core persistence layer for products.

Pattern: Repository + Data Mapper (same as auth/store.py).
ProductStore is the repository; _row_to_product is the mapper.

price is stored as its decimal string. SQLite has no native decimal type and
a float column would round cents.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from catalog.models import Product
from core.config import get_settings
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_products = Table(
    "products",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(200), nullable=False),
    Column("description", Text),
    Column("price", String(32), nullable=False),  # Decimal as text
    Column("category", String(100)),
    Column("stock", Integer, nullable=False, server_default="0"),
    Column("is_active", Boolean, nullable=False, server_default="1"),
    Column("created_by", String(36), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProductStore:
    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    def create(self, product: Product) -> Product:
        with self.engine.begin() as conn:
            conn.execute(
                _products.insert().values(
                    id=product.id,
                    name=product.name,
                    description=product.description,
                    price=str(product.price),
                    category=product.category,
                    stock=product.stock,
                    is_active=product.is_active,
                    created_by=product.created_by,
                    created_at=product.created_at.isoformat(),
                    updated_at=product.updated_at.isoformat(),
                )
            )
        return product

    def get(self, product_id: str) -> Product | None:
        """Look up a product by id. Inactive products are still returned."""
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def list_active(self, page: int = 1, page_size: int = 10) -> list[Product]:
        """Return one page of active products, newest first. page is 1-based."""
        offset = (page - 1) * page_size
        with self.engine.connect() as conn:
            rows = conn.execute(
                _products.select()
                .where(_products.c.is_active.is_(True))
                .order_by(_products.c.created_at.desc())
                .offset(offset)
                .limit(page_size)
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description,
        price=Decimal(row.price),
        category=row.category,
        stock=row.stock,
        is_active=bool(row.is_active),
        created_by=row.created_by,
        created_at=_from_iso(row.created_at),
        updated_at=_from_iso(row.updated_at),
    )
