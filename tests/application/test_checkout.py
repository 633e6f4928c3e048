"""Integration tests for the Checkout use case."""

import threading

import pytest

from spiceworld.application.checkout import CheckoutHandler
from spiceworld.application.dto import CheckoutItemSpec
from spiceworld.domain.exceptions import (
    CheckoutTimeoutError,
    InsufficientStockError,
    PaymentGatewayError,
    ValidationError,
)
from spiceworld.domain.model.order import OrderStatus, ShippingAddress
from spiceworld.domain.model.product import ProductStatus
from spiceworld.domain.model.value_objects import Money
from tests.builders import make_category, make_product, make_variant
from tests.fakes import FakePaymentGateway, FakeUnitOfWork, InMemoryStore

ADDRESS = ShippingAddress(
    name="Ada", line1="1 Spice Lane", city="Ghent", postal_code="9000", country="BE"
)


def _store(stock_v1=10, stock_v2=10) -> InMemoryStore:
    uow = FakeUnitOfWork()
    category = make_category(attributes={"Weight": ["50g", "100g"]})
    uow.store.categories[category.id] = category
    product = make_product(
        variants=[
            make_variant("v1", price="3.99", stock=stock_v1, values=("weight-50g",)),
            make_variant("v2", price="20.00", stock=stock_v2, values=("weight-100g",)),
        ]
    )
    uow.store.products[product.id] = product
    return uow.store


def _handler(store, payments=None, clock=None, timeout=10.0):
    uow = FakeUnitOfWork(store)
    kwargs = {"clock": clock} if clock is not None else {}
    handler = CheckoutHandler(
        uow,
        payments or FakePaymentGateway(),
        free_shipping_threshold=Money.of("50.00"),
        shipping_fee=Money.of("5.00"),
        timeout_seconds=timeout,
        **kwargs,
    )
    return uow, handler


class TestCheckoutHappyPath:

    def test_creates_pending_order_and_reserves_stock(self):
        store = _store()
        uow, handler = _handler(store)

        result = handler.handle("user-1", [CheckoutItemSpec("v1", 2)], ADDRESS)

        assert result.order.status == "PENDING"
        assert result.order.subtotal == "7.98 EUR"
        assert result.order.shipping == "5.00 EUR"
        assert result.order.total == "12.98 EUR"
        assert result.order.payment_session_id == "cs_test_1"
        assert result.checkout_url == "https://pay.test/cs_test_1"
        assert uow.products.stock_of("v1") == 8
        assert store.orders[result.order.id].payment_session_id == "cs_test_1"

    def test_free_shipping_above_threshold(self):
        _, handler = _handler(_store())
        result = handler.handle("user-1", [CheckoutItemSpec("v2", 3)], ADDRESS)
        assert result.order.shipping == "0.00 EUR"
        assert result.order.total == "60.00 EUR"

    def test_gateway_receives_items_and_metadata(self):
        payments = FakePaymentGateway()
        _, handler = _handler(_store(), payments=payments)

        result = handler.handle("user-1", [CheckoutItemSpec("v1", 1)], ADDRESS)

        items, metadata = payments.calls[0]
        assert [item.variant_id for item in items] == ["v1"]
        assert metadata == {"order_id": result.order.id, "shipping": "500"}


class TestCheckoutFailures:

    def test_insufficient_stock_rolls_back_everything(self):
        store = _store(stock_v1=10, stock_v2=2)
        uow, handler = _handler(store)

        with pytest.raises(InsufficientStockError):
            handler.handle("user-1", [CheckoutItemSpec("v1", 3), CheckoutItemSpec("v2", 5)], ADDRESS)

        assert uow.products.stock_of("v1") == 10
        assert uow.products.stock_of("v2") == 2
        assert store.orders == {}

    def test_unpublished_product_rolls_back(self):
        store = _store()
        store.products["prod-1"].status = ProductStatus.DRAFT
        uow, handler = _handler(store)

        with pytest.raises(ValidationError, match="not available for purchase"):
            handler.handle("user-1", [CheckoutItemSpec("v1", 1)], ADDRESS)

        assert uow.products.stock_of("v1") == 10

    def test_empty_cart_rejected(self):
        _, handler = _handler(_store())
        with pytest.raises(ValidationError, match="Cart is empty"):
            handler.handle("user-1", [], ADDRESS)

    def test_zero_quantity_rejected(self):
        _, handler = _handler(_store())
        with pytest.raises(ValidationError, match="must be positive"):
            handler.handle("user-1", [CheckoutItemSpec("v1", 0)], ADDRESS)

    def test_timeout_rolls_back(self):
        store = _store()
        ticks = iter([0.0, 11.0])
        uow, handler = _handler(store, clock=lambda: next(ticks), timeout=10.0)

        with pytest.raises(CheckoutTimeoutError):
            handler.handle("user-1", [CheckoutItemSpec("v1", 4)], ADDRESS)

        assert uow.products.stock_of("v1") == 10
        assert store.orders == {}

    def test_gateway_failure_leaves_pending_order(self):
        store = _store()
        uow, handler = _handler(store, payments=FakePaymentGateway(fail=True))

        with pytest.raises(PaymentGatewayError):
            handler.handle("user-1", [CheckoutItemSpec("v1", 1)], ADDRESS)

        (order,) = store.orders.values()
        assert order.status == OrderStatus.PENDING
        assert order.payment_session_id == "pending"
        assert uow.products.stock_of("v1") == 9


class TestConcurrentCheckout:

    def test_two_buyers_racing_for_the_same_stock(self):
        store = _store(stock_v1=10)
        barrier = threading.Barrier(2)
        outcomes: list[str] = []
        lock = threading.Lock()

        def buy(user_id: str) -> None:
            _, handler = _handler(store)
            barrier.wait()
            try:
                handler.handle(user_id, [CheckoutItemSpec("v1", 6)], ADDRESS)
                result = "ok"
            except InsufficientStockError:
                result = "insufficient"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=buy, args=(f"user-{i}",)) for i in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(outcomes) == ["insufficient", "ok"]
        assert FakeUnitOfWork(store).products.stock_of("v1") == 4
        assert len(store.orders) == 1
