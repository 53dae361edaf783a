"""
Pytest fixtures for the field visit backend tests.

Provides an in-memory database, one user per role, reference data and
bearer-token helpers.
"""

import pytest

from fieldvisit import create_app
from fieldvisit.config import TestConfig
from fieldvisit.extensions import db
from fieldvisit.models import Branch, Company, Recipient, User, Visit
from fieldvisit.services import token_service
from fieldvisit.services.auth_service import hash_password
from fieldvisit.time_utils import utcnow


PASSWORD = "Password123"

# Low bcrypt cost keeps the suite fast; production uses BCRYPT_ROUNDS
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh database and default settings for each test."""
    app.config["STRICT_VISIT_TRANSITIONS"] = False
    app.extensions["mail_outbox"] = []

    yield db.session

    # Cleanup after test
    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()


@pytest.fixture
def strict_mode(app):
    app.config["STRICT_VISIT_TRANSITIONS"] = True
    yield
    app.config["STRICT_VISIT_TRANSITIONS"] = False


def make_user(db_session, *, full_name, email, role, is_active=True, password=PASSWORD) -> User:
    user = User(
        full_name=full_name,
        email=email,
        phone="+10000000000",
        password_hash=hash_password(password, rounds=TEST_BCRYPT_ROUNDS),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def admin(db_session):
    return make_user(db_session, full_name="Ada Admin", email="admin@fieldvisit.test", role="admin")


@pytest.fixture
def manager(db_session):
    return make_user(db_session, full_name="Max Manager", email="manager@fieldvisit.test", role="manager")


@pytest.fixture
def employee(db_session):
    return make_user(db_session, full_name="Eve Employee", email="employee@fieldvisit.test", role="employee")


@pytest.fixture
def other_employee(db_session):
    return make_user(db_session, full_name="Oscar Other", email="other@fieldvisit.test", role="employee")


@pytest.fixture
def company(db_session):
    company = Company(name="Northwind Retail")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture
def branch(db_session, company):
    branch = Branch(company_id=company.id, name="Downtown", location="12 Main St")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture
def recipients(db_session, branch):
    """Two opted-in recipients, one opted out, one with a broken address."""
    rows = [
        Recipient(branch_id=branch.id, name="Branch Lead", email="lead@northwind.test", notify_email=True),
        Recipient(branch_id=branch.id, name="Area Manager", email="area@northwind.test", notify_email=True),
        Recipient(branch_id=branch.id, name="Opted Out", email="quiet@northwind.test", notify_email=False),
        Recipient(branch_id=branch.id, name="Broken", email="not-an-email", notify_email=True),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


def auth_headers(user: User) -> dict:
    """Authorization header carrying a freshly issued token for `user`."""
    token, _ = token_service.issue_token(user)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture
def employee_headers(employee):
    return auth_headers(employee)


@pytest.fixture
def other_employee_headers(other_employee):
    return auth_headers(other_employee)


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def user_factory(db_session):
    def factory(**kwargs):
        return make_user(db_session, **kwargs)
    return factory


@pytest.fixture
def open_visit(db_session, branch, employee):
    visit = Visit(branch_id=branch.id, employee_id=employee.id, started_at=utcnow(), status="open")
    db_session.add(visit)
    db_session.commit()
    return visit
