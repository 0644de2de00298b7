import pytest
from datetime import date, timedelta
from decimal import Decimal

from retailpos import create_app
from retailpos.database import get_session, create_all, drop_all
from retailpos.models import (
    Branch, Register, AppUser, Role, Category, Product, Customer,
    Discount, DiscountType, DiscountScope
)
from retailpos.services.role_service import seed_builtin_roles, BuiltinRole
from retailpos.services.cart_service import get_or_create_active_cart

# Fixed "today" so date-window tests do not depend on the calendar
TODAY = date(2026, 10, 19)


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    return create_app('config.TestConfig')


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Fresh schema and database session for each test."""
    create_all()
    session = get_session()
    yield session
    session.rollback()
    session.remove()
    drop_all()


@pytest.fixture(scope='function')
def roles(session):
    """Seed the built-in roles."""
    seed_builtin_roles(session)
    session.commit()
    return {role.name: role for role in session.query(Role).all()}


@pytest.fixture(scope='function')
def branch(session):
    branch = Branch(name='Downtown', address='1 Main St', active=True)
    session.add(branch)
    session.commit()
    return branch


@pytest.fixture(scope='function')
def other_branch(session):
    branch = Branch(name='Airport', active=True)
    session.add(branch)
    session.commit()
    return branch


@pytest.fixture(scope='function')
def register(session, branch):
    register = Register(name='Till 1', branch_id=branch.id)
    session.add(register)
    session.commit()
    return register


@pytest.fixture(scope='function')
def other_register(session, other_branch):
    register = Register(name='Till A', branch_id=other_branch.id)
    session.add(register)
    session.commit()
    return register


@pytest.fixture(scope='function')
def cashier(session, register, roles):
    """Active cashier assigned to the Downtown register."""
    user = AppUser(email='cashier@test.com', name='Casey Cashier', active=True, register_id=register.id)
    user.roles = [roles[BuiltinRole.CASHIER]]
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def other_cashier(session, register, roles):
    user = AppUser(email='other@test.com', name='Other Cashier', active=True, register_id=register.id)
    user.roles = [roles[BuiltinRole.CASHIER]]
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def manager(session, register, roles):
    user = AppUser(email='manager@test.com', name='Morgan Manager', active=True, register_id=register.id)
    user.roles = [roles[BuiltinRole.ADMIN]]
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def categories(session):
    food = Category(name='Food')
    drinks = Category(name='Drinks')
    session.add_all([food, drinks])
    session.commit()
    return {'food': food, 'drinks': drinks}


@pytest.fixture(scope='function')
def products(session, categories):
    """Small catalog: two food products and one drink."""
    sandwich = Product(sku='SKU-001', name='Sandwich', price=Decimal('20.00'),
                       tax_rate=Decimal('10'), category_id=categories['food'].id)
    cookie = Product(sku='SKU-002', name='Cookie', price=Decimal('5.00'),
                     tax_rate=Decimal('0'), category_id=categories['food'].id)
    soda = Product(sku='SKU-003', name='Soda', price=Decimal('2.50'),
                   tax_rate=Decimal('0'), category_id=categories['drinks'].id)
    session.add_all([sandwich, cookie, soda])
    session.commit()
    return {'sandwich': sandwich, 'cookie': cookie, 'soda': soda}


@pytest.fixture(scope='function')
def customer(session):
    customer = Customer(name='Jamie Doe', email='jamie@test.com')
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def make_discount(session, branch):
    """Factory for discounts valid in the Downtown branch since yesterday."""
    def _make(**overrides):
        products = overrides.pop('products', [])
        fields = dict(
            name='Promo',
            type=DiscountType.PERCENTAGE,
            value=Decimal('10'),
            applies_to=DiscountScope.ENTIRE_ORDER,
            start_date=TODAY - timedelta(days=1),
            is_active=True,
            current_uses=0,
        )
        fields.update(overrides)
        discount = Discount(**fields)
        discount.products = products
        discount.branches = [branch]
        session.add(discount)
        session.commit()
        return discount
    return _make


@pytest.fixture(scope='function')
def cart(session, cashier, register):
    """Active cart of the cashier (a CartView)."""
    view = get_or_create_active_cart(session, cashier.id, register.id, today=TODAY)
    session.commit()
    return view

