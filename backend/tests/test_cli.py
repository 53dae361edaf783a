"""CLI bootstrap commands."""

from fieldvisit.extensions import db
from fieldvisit.models import User


def test_create_user(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "users", "create",
        "--full-name", "Site Admin",
        "--email", "Site.Admin@fieldvisit.test",
        "--password", "Password123",
        "--role", "admin",
    ])

    assert result.exit_code == 0, result.output
    assert "PASS Created user" in result.output
    user = db.session.query(User).filter_by(email="site.admin@fieldvisit.test").one()
    assert user.role == "admin"


def test_create_user_rejects_weak_password(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "users", "create",
        "--full-name", "Weak",
        "--email", "weak@fieldvisit.test",
        "--password", "short",
        "--role", "employee",
    ])

    assert result.exit_code != 0
    assert "Failed to create user" in result.output
    assert db.session.query(User).count() == 0


def test_list_users(app, employee):
    result = app.test_cli_runner().invoke(args=["users", "list"])
    assert employee.email in result.output
    assert "active" in result.output


def test_list_users_empty(app):
    result = app.test_cli_runner().invoke(args=["users", "list"])
    assert "No users found." in result.output
