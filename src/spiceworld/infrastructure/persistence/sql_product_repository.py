"""SQLAlchemy implementation of ProductRepository.

Stock only ever changes through single conditional UPDATE statements;
``update`` writes the product row with a version compare-and-swap and
synchronises variants and images without touching stored stock.
"""

from __future__ import annotations

from datetime import timezone

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session, selectinload

from spiceworld.domain.exceptions import VersionConflictError
from spiceworld.domain.model.listing import ListingQuery, ProductSummary
from spiceworld.domain.model.product import (
    Product,
    ProductStatus,
    ProductVariant,
    VariantSnapshot,
)
from spiceworld.domain.model.value_objects import Money
from spiceworld.domain.repository.product_repository import ProductRepository
from spiceworld.infrastructure.persistence.image_rows import (
    image_to_domain,
    new_image_row,
    write_image,
)
from spiceworld.infrastructure.persistence.tables import (
    CategoryRow,
    ImageRow,
    ProductRow,
    VariantRow,
    VariantValueRow,
)


class SqlProductRepository(ProductRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- Reads ----------------------------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        row = self._session.scalars(
            self._select().where(ProductRow.id == product_id)
        ).one_or_none()
        return self._to_domain(row) if row is not None else None

    def get_by_slug(self, slug: str) -> Product | None:
        row = self._session.scalars(
            self._select().where(ProductRow.slug == slug)
        ).one_or_none()
        return self._to_domain(row) if row is not None else None

    def get_variant(self, variant_id: str) -> VariantSnapshot | None:
        # Column select, so the stock read is never served from the identity map.
        result = self._session.execute(
            select(
                ProductRow.id,
                ProductRow.name,
                ProductRow.status,
                VariantRow.id,
                VariantRow.sku,
                VariantRow.price,
                VariantRow.currency,
                VariantRow.stock,
            )
            .join(ProductRow, ProductRow.id == VariantRow.product_id)
            .where(VariantRow.id == variant_id)
        ).one_or_none()
        if result is None:
            return None
        product_id, name, status, vid, sku, price, currency, stock = result
        return VariantSnapshot(
            product_id=product_id,
            product_name=name,
            product_status=ProductStatus(status),
            variant_id=vid,
            sku=sku,
            price=Money(price, currency),
            stock=stock,
        )

    def list_summaries(self, query: ListingQuery) -> list[ProductSummary]:
        in_stock = VariantRow.stock > 0
        stats = (
            select(
                VariantRow.product_id.label("product_id"),
                func.min(case((in_stock, VariantRow.price))).label("min_price"),
                func.max(case((in_stock, VariantRow.price))).label("max_price"),
                func.min(VariantRow.currency).label("currency"),
                func.coalesce(func.sum(VariantRow.stock), 0).label("total_stock"),
            )
            .group_by(VariantRow.product_id)
            .subquery()
        )
        thumbs = (
            select(ImageRow.product_id.label("product_id"), ImageRow.url_thumb)
            .where(ImageRow.product_id.is_not(None), ImageRow.is_thumbnail.is_(True))
            .subquery()
        )

        stmt = (
            select(
                ProductRow,
                CategoryRow.name,
                stats.c.min_price,
                stats.c.max_price,
                stats.c.currency,
                stats.c.total_stock,
                thumbs.c.url_thumb,
            )
            .join(CategoryRow, CategoryRow.id == ProductRow.category_id)
            .outerjoin(stats, stats.c.product_id == ProductRow.id)
            .outerjoin(thumbs, thumbs.c.product_id == ProductRow.id)
        )
        stmt = self._filter(stmt, query.status, query.category_ids, query.name)

        sort_column = {
            "name": ProductRow.name,
            "created_at": ProductRow.created_at,
            "price": stats.c.min_price,
        }[query.sort_by]
        ordering = sort_column.desc() if query.sort_dir == "desc" else sort_column.asc()
        stmt = stmt.order_by(ordering, ProductRow.id).offset(query.skip).limit(query.take)

        summaries: list[ProductSummary] = []
        for row, category_name, min_price, max_price, currency, total_stock, thumb in (
            self._session.execute(stmt)
        ):
            summaries.append(
                ProductSummary(
                    id=row.id,
                    name=row.name,
                    slug=row.slug,
                    status=ProductStatus(row.status),
                    category_id=row.category_id,
                    category_name=category_name,
                    min_price=Money(min_price, currency) if min_price is not None else None,
                    max_price=Money(max_price, currency) if max_price is not None else None,
                    total_stock=int(total_stock or 0),
                    thumbnail_url=thumb,
                )
            )
        return summaries

    def count(
        self,
        status: ProductStatus | None = None,
        category_ids: tuple[str, ...] = (),
    ) -> int:
        stmt = self._filter(
            select(func.count()).select_from(ProductRow), status, category_ids, None
        )
        return self._session.scalar(stmt) or 0

    # --- Writes ---------------------------------------------------------------

    def add(self, product: Product) -> None:
        row = ProductRow(
            id=product.id,
            name=product.name,
            slug=product.slug,
            description=product.description,
            status=product.status.value,
            category_id=product.category_id,
            version=product.version,
            created_at=product.created_at,
            variants=[
                self._new_variant_row(variant, pos)
                for pos, variant in enumerate(product.variants)
            ],
            images=[new_image_row(image, pos) for pos, image in enumerate(product.images)],
        )
        self._session.add(row)
        self._session.flush()

    def update(self, product: Product, expected_version: int) -> int:
        result = self._session.execute(
            update(ProductRow)
            .where(ProductRow.id == product.id, ProductRow.version == expected_version)
            .values(
                name=product.name,
                slug=product.slug,
                description=product.description,
                status=product.status.value,
                category_id=product.category_id,
                version=ProductRow.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = self._session.scalar(
                select(ProductRow.version).where(ProductRow.id == product.id)
            )
            raise VersionConflictError(expected_version, current)

        self._sync_variants(product)
        self._sync_images(product)
        self._session.flush()
        return expected_version + 1

    def delete(self, product_id: str) -> None:
        row = self._session.get(ProductRow, product_id)
        if row is not None:
            self._session.delete(row)
            self._session.flush()

    def list_by_category(self, category_id: str) -> list[Product]:
        rows = self._session.scalars(
            self._select()
            .where(ProductRow.category_id == category_id)
            .order_by(ProductRow.created_at, ProductRow.id)
        )
        return [self._to_domain(row) for row in rows]

    def decrement_stock_if_available(self, variant_id: str, quantity: int) -> bool:
        result = self._session.execute(
            update(VariantRow)
            .where(VariantRow.id == variant_id, VariantRow.stock >= quantity)
            .values(stock=VariantRow.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def increment_stock(self, variant_id: str, quantity: int) -> None:
        # A variant deleted since the checkout has nothing to give back to.
        self._session.execute(
            update(VariantRow)
            .where(VariantRow.id == variant_id)
            .values(stock=VariantRow.stock + quantity)
            .execution_options(synchronize_session=False)
        )

    def set_stock(self, variant_id: str, stock: int) -> None:
        self._session.execute(
            update(VariantRow)
            .where(VariantRow.id == variant_id)
            .values(stock=stock)
            .execution_options(synchronize_session=False)
        )

    # --- Internal helpers -----------------------------------------------------

    def _sync_variants(self, product: Product) -> None:
        rows = {
            row.id: row
            for row in self._session.scalars(
                select(VariantRow)
                .where(VariantRow.product_id == product.id)
                .options(selectinload(VariantRow.value_links))
            )
        }
        keep = {variant.id for variant in product.variants}
        for variant_id, row in rows.items():
            if variant_id not in keep:
                self._session.delete(row)

        for pos, variant in enumerate(product.variants):
            row = rows.get(variant.id)
            if row is None:
                new_row = self._new_variant_row(variant, pos)
                new_row.product_id = product.id
                self._session.add(new_row)
                continue
            row.price = variant.price.amount
            row.currency = variant.price.currency
            row.sku = variant.sku
            row.position = pos
            links = {link.attribute_value_id: link for link in row.value_links}
            if sorted(links) != list(variant.combination):
                row.value_links = [
                    links.get(value_id) or VariantValueRow(attribute_value_id=value_id)
                    for value_id in variant.attribute_value_ids
                ]

    def _sync_images(self, product: Product) -> None:
        rows = {
            row.id: row
            for row in self._session.scalars(
                select(ImageRow).where(ImageRow.product_id == product.id)
            )
        }
        keep = {image.id for image in product.images}
        for image_id, row in rows.items():
            if image_id not in keep:
                self._session.delete(row)

        for pos, image in enumerate(product.images):
            row = rows.get(image.id)
            if row is None:
                new_row = new_image_row(image, pos)
                new_row.product_id = product.id
                self._session.add(new_row)
            else:
                write_image(row, image, pos)

    @staticmethod
    def _new_variant_row(variant: ProductVariant, position: int) -> VariantRow:
        return VariantRow(
            id=variant.id,
            price=variant.price.amount,
            currency=variant.price.currency,
            stock=variant.stock,
            sku=variant.sku,
            position=position,
            value_links=[
                VariantValueRow(attribute_value_id=value_id)
                for value_id in variant.attribute_value_ids
            ],
        )

    @staticmethod
    def _filter(stmt, status, category_ids, name):
        if status is not None:
            stmt = stmt.where(ProductRow.status == status.value)
        if category_ids:
            stmt = stmt.where(ProductRow.category_id.in_(category_ids))
        if name:
            stmt = stmt.where(ProductRow.name.ilike(f"%{name}%"))
        return stmt

    @staticmethod
    def _select():
        return select(ProductRow).options(
            selectinload(ProductRow.variants).selectinload(VariantRow.value_links),
            selectinload(ProductRow.images),
        )

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        created_at = row.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return Product(
            id=row.id,
            name=row.name,
            slug=row.slug,
            category_id=row.category_id,
            description=row.description,
            status=ProductStatus(row.status),
            variants=[
                ProductVariant(
                    id=v.id,
                    price=Money(v.price, v.currency),
                    stock=v.stock,
                    sku=v.sku,
                    attribute_value_ids=tuple(
                        link.attribute_value_id for link in v.value_links
                    ),
                )
                for v in row.variants
            ],
            images=[image_to_domain(img) for img in row.images],
            version=row.version,
            created_at=created_at,
        )
