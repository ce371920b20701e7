"""
Tests for the cart service: stock validation, line handling and pricing.
"""

import uuid

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from supplement_store.api.errors import InvalidRequestError, ResourceNotFoundError
from supplement_store.api.services.cart_service import CartService
from supplement_store.db.models import Cart, CartItem


@pytest.fixture
def cart_service(db_session):
    return CartService(db_session)


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def postgres_selects(db_session):
    """ORM selects issued on the session, rendered as PostgreSQL SQL."""
    statements = []

    def record(orm_execute_state):
        if orm_execute_state.is_select:
            compiled = orm_execute_state.statement.compile(dialect=postgresql.dialect())
            statements.append(str(compiled))

    event.listen(db_session, "do_orm_execute", record)
    yield statements
    event.remove(db_session, "do_orm_execute", record)


def locked_inventory_selects(statements):
    return [s for s in statements if "FROM inventory" in s and "FOR UPDATE" in s]


class TestGetOrCreateCart:
    def test_creates_cart_once(self, cart_service, db_session, user_id):
        first = cart_service.get_or_create_cart(user_id)
        second = cart_service.get_or_create_cart(user_id)

        assert first.id == second.id
        assert db_session.query(Cart).filter(Cart.user_id == user_id).count() == 1

    def test_carts_are_per_user(self, cart_service):
        a = cart_service.get_or_create_cart(uuid.uuid4())
        b = cart_service.get_or_create_cart(uuid.uuid4())

        assert a.id != b.id

    def test_concurrent_creation_returns_existing_cart(
        self, cart_service, db_session, user_id, monkeypatch
    ):
        existing = Cart(user_id=user_id)
        db_session.add(existing)
        db_session.commit()

        find_cart = cart_service._find_cart
        lookups = []

        def find_after_other_insert(uid):
            lookups.append(uid)
            return None if len(lookups) == 1 else find_cart(uid)

        monkeypatch.setattr(cart_service, "_find_cart", find_after_other_insert)

        cart = cart_service.get_or_create_cart(user_id)

        assert cart.id == existing.id
        assert len(lookups) == 2
        assert db_session.query(Cart).filter(Cart.user_id == user_id).count() == 1


class TestAddToCart:
    def test_adds_new_line(self, cart_service, make_product, user_id):
        product = make_product(stock=10)

        item = cart_service.add_to_cart(user_id, product.id, 3)

        assert item.product_id == product.id
        assert item.qty == 3

    def test_existing_line_is_incremented(self, cart_service, make_product, user_id):
        product = make_product(stock=10)

        cart_service.add_to_cart(user_id, product.id, 3)
        item = cart_service.add_to_cart(user_id, product.id, 4)

        assert item.qty == 7

    @pytest.mark.parametrize("qty", [0, -1])
    def test_non_positive_qty_is_rejected(self, cart_service, make_product, user_id, qty):
        product = make_product()

        with pytest.raises(InvalidRequestError) as exc_info:
            cart_service.add_to_cart(user_id, product.id, qty)

        assert exc_info.value.status_code == 400

    def test_missing_product(self, cart_service, user_id):
        with pytest.raises(ResourceNotFoundError):
            cart_service.add_to_cart(user_id, 9999, 1)

    def test_inactive_product(self, cart_service, make_product, user_id):
        product = make_product(active=False)

        with pytest.raises(InvalidRequestError) as exc_info:
            cart_service.add_to_cart(user_id, product.id, 1)

        assert "Product is not available" in exc_info.value.message

    def test_insufficient_stock(self, cart_service, make_product, user_id):
        product = make_product(stock=2)

        with pytest.raises(InvalidRequestError) as exc_info:
            cart_service.add_to_cart(user_id, product.id, 3)

        assert exc_info.value.details["requested"] == 3
        assert exc_info.value.details["available"] == 2

    def test_summed_quantity_is_checked(self, cart_service, db_session, make_product, user_id):
        product = make_product(stock=5)
        cart_service.add_to_cart(user_id, product.id, 3)

        with pytest.raises(InvalidRequestError) as exc_info:
            cart_service.add_to_cart(user_id, product.id, 3)

        assert exc_info.value.details["requested"] == 6
        assert exc_info.value.details["available"] == 5
        item = db_session.query(CartItem).filter(CartItem.product_id == product.id).one()
        assert item.qty == 3

    def test_stock_row_is_locked(self, cart_service, make_product, user_id, postgres_selects):
        product = make_product(stock=10)

        cart_service.add_to_cart(user_id, product.id, 3)

        assert len(locked_inventory_selects(postgres_selects)) == 1

    def test_product_without_inventory_has_no_stock(self, cart_service, make_product, user_id):
        product = make_product(stock=None)

        with pytest.raises(InvalidRequestError) as exc_info:
            cart_service.add_to_cart(user_id, product.id, 1)

        assert exc_info.value.details["available"] == 0


class TestUpdateCartItem:
    def test_sets_quantity(self, cart_service, make_product, user_id):
        product = make_product(stock=10)
        cart_service.add_to_cart(user_id, product.id, 2)

        item = cart_service.update_cart_item(user_id, product.id, 8)

        assert item.qty == 8

    def test_zero_removes_line(self, cart_service, db_session, make_product, user_id):
        product = make_product(stock=10)
        cart_service.add_to_cart(user_id, product.id, 2)

        assert cart_service.update_cart_item(user_id, product.id, 0) is None
        assert db_session.query(CartItem).count() == 0

    def test_negative_qty_is_rejected(self, cart_service, make_product, user_id):
        product = make_product()

        with pytest.raises(InvalidRequestError):
            cart_service.update_cart_item(user_id, product.id, -1)

    def test_line_not_in_cart(self, cart_service, make_product, user_id):
        product = make_product()

        with pytest.raises(ResourceNotFoundError):
            cart_service.update_cart_item(user_id, product.id, 1)

    def test_stock_is_checked(self, cart_service, make_product, user_id):
        product = make_product(stock=4)
        cart_service.add_to_cart(user_id, product.id, 2)

        with pytest.raises(InvalidRequestError):
            cart_service.update_cart_item(user_id, product.id, 5)

    def test_stock_row_is_locked(self, cart_service, make_product, user_id, postgres_selects):
        product = make_product(stock=10)
        cart_service.add_to_cart(user_id, product.id, 2)
        postgres_selects.clear()

        cart_service.update_cart_item(user_id, product.id, 5)

        assert len(locked_inventory_selects(postgres_selects)) == 1


class TestRemoveAndClear:
    def test_remove_line(self, cart_service, make_product, user_id):
        a = make_product()
        b = make_product()
        cart_service.add_to_cart(user_id, a.id, 1)
        cart_service.add_to_cart(user_id, b.id, 1)

        cart_service.remove_from_cart(user_id, a.id)

        summary = cart_service.get_cart_summary(user_id)
        assert [i.product_id for i in summary.items] == [b.id]

    def test_remove_missing_line_is_noop(self, cart_service, user_id):
        cart_service.remove_from_cart(user_id, 12345)

        assert cart_service.get_cart_summary(user_id).total_items == 0

    def test_clear_cart(self, cart_service, make_product, user_id):
        cart_service.add_to_cart(user_id, make_product().id, 1)
        cart_service.add_to_cart(user_id, make_product().id, 2)

        cart_service.clear_cart(user_id)

        summary = cart_service.get_cart_summary(user_id)
        assert summary.items == []
        assert summary.pricing.subtotal == 0


class TestCartSummary:
    def test_empty_summary(self, cart_service, user_id):
        summary = cart_service.get_cart_summary(user_id)

        assert summary.cart.user_id == user_id
        assert summary.total_items == 0
        assert summary.pricing.tier == "retail"
        assert summary.pricing.meets_minimum is False

    def test_total_items_counts_lines(self, cart_service, make_product, user_id):
        cart_service.add_to_cart(user_id, make_product().id, 4)
        cart_service.add_to_cart(user_id, make_product().id, 3)

        summary = cart_service.get_cart_summary(user_id)

        assert summary.total_items == 2
        assert summary.pricing.items_count == 7
        assert summary.pricing.meets_minimum is True

    def test_distributor_tier(self, cart_service, make_product, user_id):
        product = make_product(retail_price="1000.00", distributor_price="850.00", stock=20)
        cart_service.add_to_cart(user_id, product.id, 5)

        pricing = cart_service.get_cart_summary(user_id).pricing

        assert pricing.tier == "distributor"
        assert pricing.subtotal == 4250.0
        assert pricing.distributor_savings == 750.0

    def test_inactive_products_are_hidden(
        self, cart_service, db_session, make_product, user_id
    ):
        visible = make_product()
        hidden = make_product()
        cart_service.add_to_cart(user_id, visible.id, 1)
        cart_service.add_to_cart(user_id, hidden.id, 1)

        hidden.active = False
        db_session.commit()

        summary = cart_service.get_cart_summary(user_id)
        assert [i.product_id for i in summary.items] == [visible.id]
        assert summary.pricing.subtotal == 100.0

    def test_savings(self, cart_service, make_product, user_id):
        product = make_product(retail_price="50.00", distributor_price="40.00")
        cart_service.add_to_cart(user_id, product.id, 2)

        savings = cart_service.get_savings(user_id)

        assert savings.retail_total == 100.0
        assert savings.distributor_total == 80.0
        assert savings.potential_savings == 20.0
