"""
Integration tests for discount resolution and administration.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from retailpos.exceptions import ValidationError, NotFoundError
from retailpos.models import Cart, Discount, DiscountType
from retailpos.pricing import PercentageDiscount, BuyXGetYDiscount
from retailpos.services import discount_service, cart_service
from retailpos.services.discount_service import parse_discount_request

TODAY = date(2026, 10, 19)


def request_for(**overrides):
    data = {
        'name': 'Ten percent',
        'type': 'PERCENTAGE',
        'value': '10',
        'applies_to': 'ENTIRE_ORDER',
        'start_date': '2026-10-01',
    }
    data.update(overrides)
    return parse_discount_request(data)


class TestResolveActiveDiscount:
    """Read-path validity: active and inside the date window."""

    def test_valid_discount(self, session, make_discount):
        discount = make_discount()

        policy = discount_service.resolve_active_discount(session, discount.id, TODAY)

        assert isinstance(policy, PercentageDiscount)
        assert policy.id == discount.id

    def test_missing_discount(self, session):
        assert discount_service.resolve_active_discount(session, 'missing', TODAY) is None

    @pytest.mark.parametrize('overrides', [
        {'is_active': False},
        {'start_date': TODAY + timedelta(days=1)},
        {'start_date': TODAY - timedelta(days=5), 'end_date': TODAY - timedelta(days=1)},
    ])
    def test_invalid_discount(self, session, make_discount, overrides):
        discount = make_discount(**overrides)

        assert discount_service.resolve_active_discount(session, discount.id, TODAY) is None

    def test_window_bounds_are_inclusive(self, session, make_discount):
        discount = make_discount(start_date=TODAY, end_date=TODAY)

        assert discount_service.resolve_active_discount(session, discount.id, TODAY) is not None

    def test_usage_limit_not_checked_on_read(self, session, make_discount):
        discount = make_discount(max_uses=1, current_uses=1)

        assert discount_service.resolve_active_discount(session, discount.id, TODAY) is not None


class TestDiscountAdministration:

    def test_create_discount(self, session, branch):
        request = request_for(code='TEN', branch_ids=[branch.id], min_purchase_amount='25')

        discount = discount_service.create_discount(session, request)
        data = discount_service.discount_to_dict(discount)

        assert data['code'] == 'TEN'
        assert data['type'] == 'PERCENTAGE'
        assert data['value'] == '10.00'
        assert data['min_purchase_amount'] == '25.00'
        assert data['branch_ids'] == [branch.id]
        assert data['current_uses'] == 0

    def test_buy_x_get_y_with_products(self, session, products):
        request = request_for(
            type='BUY_X_GET_Y', value='100', applies_to='SPECIFIC_PRODUCTS',
            buy_x_quantity=2, get_y_quantity=1, product_ids=[products['cookie'].id]
        )

        discount = discount_service.create_discount(session, request)
        session.commit()

        policy = discount_service.resolve_active_discount(session, discount.id, TODAY)
        assert isinstance(policy, BuyXGetYDiscount)
        assert policy.product_ids == frozenset({products['cookie'].id})

    def test_unknown_product(self, session):
        request = request_for(applies_to='SPECIFIC_PRODUCTS', product_ids=['ghost'])

        with pytest.raises(NotFoundError):
            discount_service.create_discount(session, request)

    def test_duplicate_code(self, session, make_discount):
        make_discount(code='SUMMER')

        with pytest.raises(ValidationError) as exc_info:
            discount_service.create_discount(session, request_for(code='SUMMER'))
        assert exc_info.value.message == 'Discount with this code already exists'

    def test_update_keeps_own_code_and_usage(self, session, make_discount):
        discount = make_discount(code='SUMMER', current_uses=4)

        updated = discount_service.update_discount(
            session, discount.id, request_for(code='SUMMER', type='FIXED', value='7.5')
        )

        assert updated.type is DiscountType.FIXED
        assert updated.value == Decimal('7.5')
        assert updated.current_uses == 4

    def test_update_unknown(self, session):
        with pytest.raises(NotFoundError):
            discount_service.update_discount(session, 'missing', request_for())

    def test_delete_detaches_carts(self, session, cashier, cart, products, make_discount):
        discount = make_discount()
        cart_service.add_item(session, cart.id, cashier.id, products['sandwich'].id, 'Sandwich',
                              Decimal('20.00'), 1, today=TODAY)
        cart_service.attach_discount(session, cart.id, cashier.id, discount.id, today=TODAY)
        session.commit()

        discount_service.delete_discount(session, discount.id)
        session.commit()

        assert session.query(Discount).count() == 0
        assert session.get(Cart, cart.id).discount_id is None

    def test_list_pos_discounts(self, session, branch, other_branch, make_discount):
        offered = make_discount(name='A offered')
        make_discount(name='B inactive', is_active=False)
        make_discount(name='C future', start_date=TODAY + timedelta(days=2))
        elsewhere = make_discount(name='D elsewhere')
        elsewhere.branches = [other_branch]
        session.commit()

        discounts = discount_service.list_pos_discounts(session, branch.id, TODAY)

        assert [d.id for d in discounts] == [offered.id]
