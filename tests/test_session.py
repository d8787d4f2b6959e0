"""Session context tests."""

import pytest

from tableorder.errors import StateError, ValidationError
from tableorder.models import Table
from tableorder.session import SessionContext, table_from_scan


class TestSessionLifecycle:
    def test_use_before_initialize_fails_fast(self, jollof):
        session = SessionContext()
        with pytest.raises(StateError):
            session.table
        with pytest.raises(StateError):
            session.add_to_cart(jollof)
        with pytest.raises(StateError):
            session.set_active_order(None)

    def test_new_table_keeps_cart_and_order(self, session, jollof, order_factory):
        session.add_to_cart(jollof, 2)
        session.set_active_order(order_factory())

        session.set_table(Table(id="table-2", table_number="9"))

        assert session.table.id == "table-2"
        assert session.cart_item_count() == 2
        assert session.active_order.id == "order-1"

    def test_delegated_cart_operations(self, session, jollof, suya):
        session.add_to_cart(jollof, 3)
        session.add_to_cart(suya)
        session.update_cart_note(suya.id, "extra pepper")
        assert session.cart_total() == 2700
        session.update_cart_quantity(jollof.id, 0)
        assert session.cart_total() == 1200
        session.remove_from_cart(suya.id)
        assert session.cart_item_count() == 0
        session.add_to_cart(jollof)
        session.clear_cart()
        assert session.cart.is_empty

    def test_fractional_quantity_update_keeps_integer_total(self, session, jollof):
        session.add_to_cart(jollof)
        with pytest.raises(ValidationError):
            session.update_cart_quantity(jollof.id, 1.5)
        assert session.cart_total() == 500
        assert isinstance(session.cart_total(), int)

    def test_reset_empties_every_slot(self, session, jollof, fake_api, order_factory):
        session.add_to_cart(jollof)
        session.set_active_order(order_factory())
        session.set_payment_methods(fake_api.payment_methods)
        session.set_selected_payment_method(fake_api.payment_methods[0])

        session.reset()

        assert session.table is None
        assert session.cart.is_empty
        assert session.active_order is None
        assert session.payment_methods == []
        assert session.selected_payment_method is None

    def test_payment_methods_list_is_a_copy(self, session, fake_api):
        session.set_payment_methods(fake_api.payment_methods)
        session.payment_methods.clear()
        assert len(session.payment_methods) == 4


class TestTableFromScan:
    def test_full_url(self):
        table = table_from_scan(
            "https://eat.example.com/order?tableId=abc-123&tableNumber=1&tableName=Patio&capacity=4&location=Main%20Hall"
        )
        assert table == Table(id="abc-123", table_number="1", table_name="Patio", capacity=4, location="Main Hall")

    def test_defaults_for_missing_attributes(self):
        table = table_from_scan("?tableId=abc-123&capacity=lots")
        assert table.table_number == "Unknown"
        assert table.table_name == "Table"
        assert table.capacity == 0
        assert table.location == "Unknown"

    @pytest.mark.parametrize("scanned", ["https://eat.example.com/order", "tableNumber=3", "tableId="])
    def test_missing_table_id(self, scanned):
        with pytest.raises(ValidationError):
            table_from_scan(scanned)
