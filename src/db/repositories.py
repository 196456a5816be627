from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from db import models
from domain.catalog import Product, ProductIn, ProductNotFoundError

SEED_PRODUCTS: tuple[ProductIn, ...] = (
    ProductIn(name="Latte", description="Frothy milky coffee", price=2.45, sku="abc-def-ghi"),
    ProductIn(name="Espresso", description="Short and strong coffee without milk", price=1.99, sku="fjd-kls-mno"),
)


class ProductRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list(self) -> list[Product]:
        rows = self._session.scalars(select(models.ProductOrm).order_by(models.ProductOrm.id.asc())).all()
        return [self._to_domain(row) for row in rows]

    def get(self, product_id: int) -> Product:
        return self._to_domain(self._get_orm(product_id))

    def create(self, product: ProductIn) -> Product:
        now = datetime.now(timezone.utc)
        row = models.ProductOrm(
            name=product.name,
            description=product.description,
            price=product.price,
            sku=product.sku,
            created_on=now,
            updated_on=now,
        )
        self._session.add(row)
        self._session.commit()
        self._session.refresh(row)
        return self._to_domain(row)

    def update(self, product_id: int, product: ProductIn) -> Product:
        row = self._get_orm(product_id)
        row.name = product.name
        row.description = product.description
        row.price = product.price
        row.sku = product.sku
        row.updated_on = datetime.now(timezone.utc)
        self._session.commit()
        self._session.refresh(row)
        return self._to_domain(row)

    def delete(self, product_id: int) -> None:
        row = self._get_orm(product_id)
        self._session.delete(row)
        self._session.commit()

    def _get_orm(self, product_id: int) -> models.ProductOrm:
        row = self._session.get(models.ProductOrm, product_id)
        if row is None:
            raise ProductNotFoundError(product_id)
        return row

    @staticmethod
    def _to_domain(row: models.ProductOrm) -> Product:
        created_on = row.created_on
        if created_on.tzinfo is None:
            created_on = created_on.replace(tzinfo=timezone.utc)
        updated_on = row.updated_on
        if updated_on.tzinfo is None:
            updated_on = updated_on.replace(tzinfo=timezone.utc)

        return Product(
            id=row.id,
            name=row.name,
            description=row.description,
            price=row.price,
            sku=row.sku,
            created_on=created_on,
            updated_on=updated_on,
        )


def seed_products(session: Session, products: tuple[ProductIn, ...] = SEED_PRODUCTS) -> list[Product]:
    repository = ProductRepository(session)
    return [repository.create(product) for product in products]


__all__ = ["ProductRepository", "SEED_PRODUCTS", "seed_products"]
