"""Flask CLI commands."""

from pharmatrack.models import User


def test_low_stock_lists_products_under_reorder_level(app, db_session, make_product):
    make_product(name="Nearly Out", quantity=1, reorder_level=10)
    make_product(name="Well Stocked", quantity=100, reorder_level=10)

    result = app.test_cli_runner().invoke(args=["products", "low-stock"])

    assert result.exit_code == 0
    assert "Nearly Out" in result.output
    assert "Well Stocked" not in result.output


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    created = runner.invoke(args=[
        "users", "create",
        "--name", "Sam Admin",
        "--email", "sam@pharmatrack.test",
        "--password", "Password123!",
        "--role", "admin",
    ])
    assert created.exit_code == 0, created.output

    db_session.expire_all()
    assert db_session.query(User).filter_by(email="sam@pharmatrack.test").one().role == "admin"

    listed = runner.invoke(args=["users", "list"])
    assert "sam@pharmatrack.test" in listed.output


def test_users_create_rejects_weak_password(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "users", "create", "--name", "W", "--email", "w@pharmatrack.test", "--password", "weak",
    ])
    assert result.exit_code != 0
    assert "at least 8 characters" in result.output
