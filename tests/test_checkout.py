"""Tests for the checkout workflow and customer cancellation."""

import threading
import time
from datetime import timedelta

import pytest

from shoestore.database.carts import CartDatabase, cart_db
from shoestore.database.orders import OrderDatabase, order_db
from shoestore.database.products import ProductDatabase, product_db
from shoestore.errors import (
    EmptyCartError,
    InsufficientStockError,
    InvalidAddressError,
    InvalidLineItemError,
    InvalidTransitionError,
    MissingAddressError,
    MissingContactError,
    NotFoundError,
    SizeUnavailableError,
)
from shoestore.models.checkout import CheckoutRequest, OrderStatus, ShippingAddress
from shoestore.services.cart import CartService
from shoestore.services.checkout import CheckoutService, shipping_cost_for


@pytest.fixture
def cart():
    return CartService()


@pytest.fixture
def checkout(settings):
    return CheckoutService(settings=settings)


def stock_of(product):
    return product_db.get_product(product["_id"])["stock"]


class TestShippingCost:
    def test_flat_fee_below_threshold(self, settings):
        assert shipping_cost_for(1800, settings) == 200

    def test_threshold_itself_is_not_free(self, settings):
        assert shipping_cost_for(5000, settings) == 200

    def test_free_above_threshold(self, settings):
        assert shipping_cost_for(5000.01, settings) == 0


class TestCheckout:
    def test_discounted_order_with_flat_shipping(self, checkout, cart, customer, make_product):
        product = make_product(price=1000.0, discount=10, stock=10)
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 2)

        order = checkout.checkout(customer["_id"], CheckoutRequest())

        assert order.total_amount == 1800
        assert order.shipping_cost == 200
        assert order.final_amount == 2000
        assert order.status == OrderStatus.PENDING
        assert order.order_number.startswith("ORD-")
        assert stock_of(product) == 8
        assert cart_db.get_cart(customer["_id"])["items"] == []

    def test_line_snapshots_price_and_discount(self, checkout, cart, customer, make_product):
        product = make_product(price=2500.0, discount=20)
        cart.add_line(customer["_id"], str(product["_id"]), 8.0, 1)

        order = checkout.checkout(customer["_id"], CheckoutRequest())
        product_db.update_product(product["_id"], {"price": 9999.0, "discount": 0})

        line = checkout.get_order(customer["_id"], order.id).items[0]
        assert line.price_at_purchase == 2500.0
        assert line.discount_at_purchase == 20

    def test_final_amount_is_total_plus_shipping(self, checkout, cart, customer, make_product):
        first = make_product(price=3000.0, discount=5)
        second = make_product(name="Court Classic", price=1500.0, discount=0)
        cart.add_line(customer["_id"], str(first["_id"]), 9.0, 1)
        cart.add_line(customer["_id"], str(second["_id"]), 10.0, 2)

        order = checkout.checkout(customer["_id"], CheckoutRequest())

        assert order.total_amount == 5850
        assert order.shipping_cost == 0
        assert order.final_amount == order.total_amount + order.shipping_cost

    def test_request_address_overrides_profile(self, checkout, cart, customer, make_product):
        product = make_product()
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 1)
        address = ShippingAddress(street="1 Canal Bank", city="Multan", province="Punjab", postal_code="60000")

        order = checkout.checkout(
            customer["_id"], CheckoutRequest(shipping_address=address, phone="03110000000")
        )

        assert order.shipping_address.city == "Multan"
        assert order.shipping_address.country == "Pakistan"
        assert order.contact_info.phone == "03110000000"
        assert order.contact_info.email == customer["email"]

    def test_estimated_delivery_set(self, checkout, cart, customer, make_product):
        product = make_product()
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 1)

        order = checkout.checkout(customer["_id"], CheckoutRequest())

        assert abs(order.estimated_delivery - order.created_at - timedelta(days=7)) < timedelta(minutes=1)


class TestCheckoutPreconditions:
    def test_missing_phone(self, checkout, make_user):
        user = make_user()
        with pytest.raises(MissingContactError):
            checkout.checkout(user["_id"], CheckoutRequest())

    def test_missing_address(self, checkout, make_user):
        user = make_user()
        with pytest.raises(MissingAddressError):
            checkout.checkout(user["_id"], CheckoutRequest(phone="0300"))

    def test_incomplete_address_names_field(self, checkout, make_user):
        user = make_user()
        address = ShippingAddress(street="1 Main", city="Karachi", province="Sindh")
        with pytest.raises(InvalidAddressError) as exc_info:
            checkout.checkout(user["_id"], CheckoutRequest(phone="0300", shipping_address=address))
        assert exc_info.value.field == "postal_code"

    def test_empty_cart(self, checkout, customer):
        with pytest.raises(EmptyCartError):
            checkout.checkout(customer["_id"], CheckoutRequest())

    def test_stale_stock_fails_without_side_effects(self, checkout, cart, customer, make_product):
        product = make_product(stock=5)
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 2)
        product_db.update_product(product["_id"], {"stock": 1})

        with pytest.raises(InsufficientStockError) as exc_info:
            checkout.checkout(customer["_id"], CheckoutRequest())

        assert exc_info.value.available == 1
        assert exc_info.value.requested == 2
        assert stock_of(product) == 1
        assert order_db.collection.count_documents({}) == 0
        assert len(cart_db.get_cart(customer["_id"])["items"]) == 1

    def test_deleted_product(self, checkout, cart, customer, make_product):
        product = make_product()
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 1)
        product_db.delete_product(product["_id"])

        with pytest.raises(InvalidLineItemError):
            checkout.checkout(customer["_id"], CheckoutRequest())

    def test_archived_product(self, checkout, cart, customer, make_product):
        product = make_product()
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 1)
        product_db.update_product(product["_id"], {"is_archived": True})

        with pytest.raises(InvalidLineItemError):
            checkout.checkout(customer["_id"], CheckoutRequest())

    def test_size_withdrawn(self, checkout, cart, customer, make_product):
        product = make_product(sizes=[8.0, 9.0])
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 1)
        product_db.update_product(product["_id"], {"sizes": [8.0]})

        with pytest.raises(SizeUnavailableError):
            checkout.checkout(customer["_id"], CheckoutRequest())
        assert stock_of(product) == 10


class ShortProducts(ProductDatabase):
    """Product store whose reservation fails for one product."""

    def __init__(self, short_id):
        self.short_id = short_id

    def reserve_stock(self, product_id, quantity):
        if product_id == self.short_id:
            return None
        return super().reserve_stock(product_id, quantity)


class BrokenOrders(OrderDatabase):
    def create_order(self, fields):
        raise RuntimeError("write failed")


class UndeletableOrders(OrderDatabase):
    def delete_order(self, order_id):
        raise RuntimeError("delete failed")


class BrokenCarts(CartDatabase):
    def clear_cart(self, user_id):
        raise RuntimeError("cart clear failed")


class TestCompensation:
    def test_reservation_shortfall_releases_earlier_lines(self, settings, cart, customer, make_product):
        first = make_product(name="First", stock=10)
        second = make_product(name="Second", stock=10)
        cart.add_line(customer["_id"], str(first["_id"]), 9.0, 3)
        cart.add_line(customer["_id"], str(second["_id"]), 9.0, 1)
        service = CheckoutService(settings=settings, products=ShortProducts(second["_id"]))

        with pytest.raises(InsufficientStockError):
            service.checkout(customer["_id"], CheckoutRequest())

        assert stock_of(first) == 10
        assert stock_of(second) == 10
        assert order_db.collection.count_documents({}) == 0
        assert len(cart_db.get_cart(customer["_id"])["items"]) == 2

    def test_failed_order_write_restores_stock(self, settings, cart, customer, make_product):
        product = make_product(stock=4)
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 4)
        service = CheckoutService(settings=settings, orders=BrokenOrders())

        with pytest.raises(RuntimeError):
            service.checkout(customer["_id"], CheckoutRequest())

        assert stock_of(product) == 4
        assert len(cart_db.get_cart(customer["_id"])["items"]) == 1

    def test_stock_released_when_order_removal_also_fails(self, settings, cart, customer, make_product):
        product = make_product(stock=5)
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 3)
        service = CheckoutService(settings=settings, carts=BrokenCarts(), orders=UndeletableOrders())

        with pytest.raises(RuntimeError, match="cart clear failed"):
            service.checkout(customer["_id"], CheckoutRequest())

        assert stock_of(product) == 5

    def test_stock_never_negative_across_customers(self, checkout, cart, make_user, make_product):
        product = make_product(stock=3)
        buyers = [make_user(with_profile=True) for _ in range(3)]
        for buyer in buyers:
            cart.add_line(buyer["_id"], str(product["_id"]), 9.0, 2)

        placed, refused = 0, 0
        for buyer in buyers:
            try:
                checkout.checkout(buyer["_id"], CheckoutRequest())
                placed += 1
            except InsufficientStockError:
                refused += 1

        assert placed == 1
        assert refused == 2
        assert stock_of(product) == 1


class TestCancel:
    def place_order(self, checkout, cart, user, product, quantity=2):
        cart.add_line(user["_id"], str(product["_id"]), 9.0, quantity)
        return checkout.checkout(user["_id"], CheckoutRequest())

    def test_cancel_restocks(self, checkout, cart, customer, make_product):
        product = make_product(stock=10)
        order = self.place_order(checkout, cart, customer, product)
        assert stock_of(product) == 8

        cancelled = checkout.cancel(customer["_id"], order.id)

        assert cancelled.status == OrderStatus.CANCELLED
        assert stock_of(product) == 10

    def test_second_cancel_fails_and_restocks_once(self, checkout, cart, customer, make_product):
        product = make_product(stock=10)
        order = self.place_order(checkout, cart, customer, product)
        checkout.cancel(customer["_id"], order.id)

        with pytest.raises(InvalidTransitionError):
            checkout.cancel(customer["_id"], order.id)
        assert stock_of(product) == 10

    def test_confirmed_order_can_be_cancelled(self, checkout, cart, customer, make_product):
        product = make_product()
        order = self.place_order(checkout, cart, customer, product)
        order_db.update_order(order_db.collection.find_one()["_id"], {"status": "confirmed"})

        assert checkout.cancel(customer["_id"], order.id).status == OrderStatus.CANCELLED

    def test_shipped_order_cannot_be_cancelled(self, checkout, cart, customer, make_product):
        product = make_product(stock=10)
        order = self.place_order(checkout, cart, customer, product)
        order_db.update_order(order_db.collection.find_one()["_id"], {"status": "shipped"})

        with pytest.raises(InvalidTransitionError) as exc_info:
            checkout.cancel(customer["_id"], order.id)

        assert "shipped" in exc_info.value.message
        assert stock_of(product) == 8
        assert checkout.get_order(customer["_id"], order.id).status == OrderStatus.SHIPPED

    def test_other_users_order_is_not_found(self, checkout, cart, customer, make_user, make_product):
        product = make_product()
        order = self.place_order(checkout, cart, customer, product)
        stranger = make_user()

        with pytest.raises(NotFoundError):
            checkout.cancel(stranger["_id"], order.id)


class TestOrderHistory:
    def test_list_filters_by_status(self, checkout, cart, customer, make_product):
        product = make_product(stock=10)
        for _ in range(2):
            cart.add_line(customer["_id"], str(product["_id"]), 9.0, 1)
            checkout.checkout(customer["_id"], CheckoutRequest())
        first = checkout.list_orders(customer["_id"]).orders[-1]
        checkout.cancel(customer["_id"], first.id)

        assert checkout.list_orders(customer["_id"]).pagination.total == 2
        pending = checkout.list_orders(customer["_id"], status=OrderStatus.PENDING)
        assert [o.status for o in pending.orders] == [OrderStatus.PENDING]

    def test_update_checkout_profile(self, checkout, make_user):
        user = make_user()
        address = ShippingAddress(street="5 Gulberg", city="Lahore", province="Punjab", postal_code="54660")

        updated = checkout.update_checkout_profile(user["_id"], phone="0321", address=address)

        assert updated.phone == "0321"
        assert updated.address.street == "5 Gulberg"


class SlowProducts(ProductDatabase):
    """Product store that pauses before each reservation."""

    def reserve_stock(self, product_id, quantity):
        time.sleep(0.05)
        return super().reserve_stock(product_id, quantity)


class TestConcurrentCheckout:
    def test_same_account_checks_out_once(self, settings, cart, customer, make_product):
        product = make_product(stock=10)
        cart.add_line(customer["_id"], str(product["_id"]), 9.0, 2)
        service = CheckoutService(settings=settings, products=SlowProducts())
        start = threading.Barrier(2)
        placed, refused = [], []

        def place():
            start.wait()
            try:
                placed.append(service.checkout(customer["_id"], CheckoutRequest()))
            except EmptyCartError as e:
                refused.append(e)

        threads = [threading.Thread(target=place) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(placed) == 1
        assert len(refused) == 1
        assert order_db.collection.count_documents({"user_id": customer["_id"]}) == 1
        assert stock_of(product) == 8
