"""In-memory fakes for testing.

These implement the same abstract interfaces as the SQL repositories
but keep everything in dicts.  Repositories write straight into a shared
``InMemoryStore`` and record an undo step per write; ``FakeUnitOfWork``
replays the undo log on rollback.  Every read returns a copy, so a
handler's edits only land in the store through ``update``/``save``.
"""

from __future__ import annotations

import copy
import threading

from spiceworld.domain.exceptions import PaymentGatewayError, StorageError, VersionConflictError
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.gateway.payment_gateway import PaymentGateway, PaymentSession
from spiceworld.domain.model.category import Category
from spiceworld.domain.model.listing import ListingQuery, ProductSummary
from spiceworld.domain.model.operations import UploadFile
from spiceworld.domain.model.order import Order, OrderItem, OrderStatus
from spiceworld.domain.model.product import (
    Product,
    ProductStatus,
    StoredFile,
    StoredImage,
    VariantSnapshot,
)
from spiceworld.domain.repository.category_repository import CategoryRepository
from spiceworld.domain.repository.order_repository import OrderRepository
from spiceworld.domain.repository.product_repository import ProductRepository
from spiceworld.domain.repository.unit_of_work import UnitOfWork


class InMemoryStore:

    def __init__(self) -> None:
        self.categories: dict[str, Category] = {}
        self.products: dict[str, Product] = {}
        self.orders: dict[str, Order] = {}
        self.lock = threading.RLock()


class _Journal:

    def __init__(self) -> None:
        self.undo: list = []

    def record(self, step) -> None:
        self.undo.append(step)


class FakeCategoryRepository(CategoryRepository):

    def __init__(self, store: InMemoryStore, journal: _Journal) -> None:
        self._store = store
        self._journal = journal

    def get_by_id(self, category_id: str) -> Category | None:
        return copy.deepcopy(self._store.categories.get(category_id))

    def get_by_name(self, name: str) -> Category | None:
        for category in self._store.categories.values():
            if category.name == name:
                return copy.deepcopy(category)
        return None

    def list_all(self) -> list[Category]:
        return sorted(
            (copy.deepcopy(c) for c in self._store.categories.values()), key=lambda c: c.name
        )

    def add(self, category: Category) -> None:
        with self._store.lock:
            self._store.categories[category.id] = copy.deepcopy(category)
        self._journal.record(lambda: self._store.categories.pop(category.id, None))

    def update(self, category: Category) -> None:
        with self._store.lock:
            previous = self._store.categories.get(category.id)
            if previous is None:
                return
            self._store.categories[category.id] = copy.deepcopy(category)
        self._journal.record(lambda: self._store.categories.__setitem__(category.id, previous))

    def delete(self, category_id: str) -> None:
        with self._store.lock:
            stored = self._store.categories.pop(category_id, None)
        if stored is not None:
            self._journal.record(lambda: self._store.categories.__setitem__(category_id, stored))

    def get_by_attribute(self, attribute_id: str) -> Category | None:
        for category in self._store.categories.values():
            if any(attr.id == attribute_id for attr in category.attributes):
                return copy.deepcopy(category)
        return None

    def get_by_attribute_value(self, value_id: str) -> Category | None:
        for category in self._store.categories.values():
            if category.find_value(value_id) is not None:
                return copy.deepcopy(category)
        return None


class FakeProductRepository(ProductRepository):

    def __init__(self, store: InMemoryStore, journal: _Journal) -> None:
        self._store = store
        self._journal = journal

    def get_by_id(self, product_id: str) -> Product | None:
        return copy.deepcopy(self._store.products.get(product_id))

    def get_by_slug(self, slug: str) -> Product | None:
        for product in self._store.products.values():
            if product.slug == slug:
                return copy.deepcopy(product)
        return None

    def add(self, product: Product) -> None:
        with self._store.lock:
            self._store.products[product.id] = copy.deepcopy(product)
        self._journal.record(lambda: self._store.products.pop(product.id, None))

    def update(self, product: Product, expected_version: int) -> int:
        with self._store.lock:
            stored = self._store.products.get(product.id)
            if stored is None or stored.version != expected_version:
                raise VersionConflictError(
                    expected_version, stored.version if stored else None
                )
            # Stock of existing variants only changes through the stock methods.
            stock = {v.id: v.stock for v in stored.variants}
            replacement = copy.deepcopy(product)
            for variant in replacement.variants:
                if variant.id in stock:
                    variant.stock = stock[variant.id]
            replacement.version = expected_version + 1
            self._store.products[product.id] = replacement
        self._journal.record(lambda: self._store.products.__setitem__(product.id, stored))
        return expected_version + 1

    def delete(self, product_id: str) -> None:
        with self._store.lock:
            stored = self._store.products.pop(product_id, None)
        if stored is not None:
            self._journal.record(lambda: self._store.products.__setitem__(product_id, stored))

    def list_by_category(self, category_id: str) -> list[Product]:
        return [
            copy.deepcopy(p) for p in self._store.products.values() if p.category_id == category_id
        ]

    def list_summaries(self, query: ListingQuery) -> list[ProductSummary]:
        products = self._matching(query.status, query.category_ids, query.name)
        summaries = [self._summarize(p) for p in products]

        reverse = query.sort_dir == "desc"
        if query.sort_by == "price":
            # Products without an in-stock price sort last either way.
            priced = [s for s in summaries if s.min_price is not None]
            unpriced = [s for s in summaries if s.min_price is None]
            priced.sort(key=lambda s: (s.min_price.amount, s.id), reverse=reverse)
            summaries = priced + unpriced
        else:
            created = {p.id: p.created_at for p in products}
            key = {
                "name": lambda s: (s.name, s.id),
                "created_at": lambda s: (created[s.id], s.id),
            }[query.sort_by]
            summaries.sort(key=key, reverse=reverse)
        return summaries[query.skip:query.skip + query.take]

    def count(
        self,
        status: ProductStatus | None = None,
        category_ids: tuple[str, ...] = (),
    ) -> int:
        return len(self._matching(status, category_ids, None))

    def get_variant(self, variant_id: str) -> VariantSnapshot | None:
        with self._store.lock:
            for product in self._store.products.values():
                for variant in product.variants:
                    if variant.id == variant_id:
                        return VariantSnapshot(
                            product_id=product.id,
                            product_name=product.name,
                            product_status=product.status,
                            variant_id=variant.id,
                            sku=variant.sku,
                            price=variant.price,
                            stock=variant.stock,
                        )
        return None

    def decrement_stock_if_available(self, variant_id: str, quantity: int) -> bool:
        with self._store.lock:
            variant = self._find_variant(variant_id)
            if variant is None or variant.stock < quantity:
                return False
            variant.stock -= quantity
        self._journal.record(lambda: self._adjust(variant_id, quantity))
        return True

    def increment_stock(self, variant_id: str, quantity: int) -> None:
        with self._store.lock:
            variant = self._find_variant(variant_id)
            if variant is None:
                return
            variant.stock += quantity
        self._journal.record(lambda: self._adjust(variant_id, -quantity))

    def set_stock(self, variant_id: str, stock: int) -> None:
        with self._store.lock:
            variant = self._find_variant(variant_id)
            if variant is None:
                return
            previous = variant.stock
            variant.stock = stock
        self._journal.record(lambda: self._adjust(variant_id, previous - stock))

    # --- Helpers --------------------------------------------------------------

    def stock_of(self, variant_id: str) -> int:
        variant = self._find_variant(variant_id)
        return variant.stock if variant else 0

    def _find_variant(self, variant_id: str):
        for product in self._store.products.values():
            for variant in product.variants:
                if variant.id == variant_id:
                    return variant
        return None

    def _adjust(self, variant_id: str, delta: int) -> None:
        with self._store.lock:
            variant = self._find_variant(variant_id)
            if variant is not None:
                variant.stock += delta

    def _matching(self, status, category_ids, name) -> list[Product]:
        result = []
        for product in self._store.products.values():
            if status is not None and product.status != status:
                continue
            if category_ids and product.category_id not in category_ids:
                continue
            if name and name.lower() not in product.name.lower():
                continue
            result.append(product)
        return result

    def _summarize(self, product: Product) -> ProductSummary:
        in_stock = [v.price for v in product.variants if v.stock > 0]
        category = self._store.categories.get(product.category_id)
        thumbnail = product.thumbnail
        return ProductSummary(
            id=product.id,
            name=product.name,
            slug=product.slug,
            status=product.status,
            category_id=product.category_id,
            category_name=category.name if category else "",
            min_price=min(in_stock, key=lambda m: m.amount) if in_stock else None,
            max_price=max(in_stock, key=lambda m: m.amount) if in_stock else None,
            total_stock=sum(v.stock for v in product.variants),
            thumbnail_url=thumbnail.files.thumb.url if thumbnail else None,
        )


class FakeOrderRepository(OrderRepository):

    def __init__(self, store: InMemoryStore, journal: _Journal) -> None:
        self._store = store
        self._journal = journal

    def get_by_id(self, order_id: str) -> Order | None:
        return copy.deepcopy(self._store.orders.get(order_id))

    def get_by_payment_session(self, session_id: str) -> Order | None:
        for order in self._store.orders.values():
            if order.payment_session_id == session_id:
                return copy.deepcopy(order)
        return None

    def add(self, order: Order) -> None:
        with self._store.lock:
            self._store.orders[order.id] = copy.deepcopy(order)
        self._journal.record(lambda: self._store.orders.pop(order.id, None))

    def save(self, order: Order) -> None:
        with self._store.lock:
            previous = self._store.orders.get(order.id)
            self._store.orders[order.id] = copy.deepcopy(order)
        self._journal.record(lambda: self._store.orders.__setitem__(order.id, previous))

    def list(
        self,
        user_id: str | None = None,
        status: OrderStatus | None = None,
        skip: int = 0,
        take: int = 20,
    ) -> list[Order]:
        orders = [
            copy.deepcopy(o)
            for o in self._store.orders.values()
            if (user_id is None or o.user_id == user_id)
            and (status is None or o.status == status)
        ]
        orders.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        return orders[skip:skip + take]

    def count(self, user_id: str | None = None, status: OrderStatus | None = None) -> int:
        return len(self.list(user_id=user_id, status=status, take=len(self._store.orders) + 1))


class FakeUnitOfWork(UnitOfWork):

    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()
        self._journal = _Journal()
        self.commits = 0
        self.rollbacks = 0
        self.categories = FakeCategoryRepository(self.store, self._journal)
        self.products = FakeProductRepository(self.store, self._journal)
        self.orders = FakeOrderRepository(self.store, self._journal)

    def __enter__(self) -> FakeUnitOfWork:
        self._journal.undo.clear()
        return self

    def commit(self) -> None:
        self._journal.undo.clear()
        self.commits += 1

    def rollback(self) -> None:
        if self._journal.undo:
            self.rollbacks += 1
        while self._journal.undo:
            self._journal.undo.pop()()


class FakeFileStorage(FileStorage):

    def __init__(self, fail_upload: bool = False) -> None:
        self.fail_upload = fail_upload
        self.stored: set[str] = set()
        self.deleted: list[str] = []
        self.upload_calls = 0
        self._counter = 0

    def upload(self, name: str, files: list[UploadFile]) -> list[StoredImage]:
        self.upload_calls += 1
        if self.fail_upload:
            raise StorageError("storage unavailable")
        result = []
        for _ in files:
            self._counter += 1
            sizes = {}
            for size in ("thumb", "medium", "large"):
                key = f"{name}/{self._counter}-{size}.jpg"
                self.stored.add(key)
                sizes[size] = StoredFile(key=key, url=f"https://cdn.test/{key}")
            result.append(StoredImage(**sizes))
        return result

    def delete(self, keys: list[str]) -> None:
        for key in keys:
            self.stored.discard(key)
            self.deleted.append(key)


class FakePaymentGateway(PaymentGateway):

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[list[OrderItem], dict[str, str]]] = []
        self._lock = threading.Lock()

    def create_session(
        self, items: list[OrderItem], metadata: dict[str, str]
    ) -> PaymentSession:
        with self._lock:
            self.calls.append((list(items), dict(metadata)))
            number = len(self.calls)
        if self.fail:
            raise PaymentGatewayError("payment provider unavailable")
        session_id = f"cs_test_{number}"
        return PaymentSession(session_id=session_id, url=f"https://pay.test/{session_id}")


def image_file(name: str = "photo.jpg") -> UploadFile:
    return UploadFile(filename=name, content=b"\xff\xd8 fake jpeg")
