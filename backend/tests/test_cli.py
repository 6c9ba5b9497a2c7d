from sqlalchemy import func, select, update

from stockroom.models import Customer, Movement, Product


def test_seed_demo_then_audit_passes(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "seed-demo"])
    assert result.exit_code == 0, result.output
    assert "PASS Seeded" in result.output

    assert db_session.execute(select(func.count(Product.id))).scalar_one() == 2
    assert db_session.execute(select(func.count(Customer.id))).scalar_one() == 1
    assert db_session.execute(select(func.count(Movement.id))).scalar_one() == 2

    result = runner.invoke(args=["stock", "audit"])
    assert result.exit_code == 0
    assert "PASS" in result.output


def test_seed_demo_twice_fails_cleanly(app, db_session):
    runner = app.test_cli_runner()
    runner.invoke(args=["system", "seed-demo"])

    result = runner.invoke(args=["system", "seed-demo"])

    assert result.exit_code != 0
    assert "already seeded?" in result.output


def test_audit_reports_tampered_stock(app, db_session, product):
    db_session.execute(update(Product).where(Product.id == product.id).values(stock=3))
    db_session.commit()

    result = app.test_cli_runner().invoke(args=["stock", "audit"])

    assert result.exit_code == 1
    assert f"FAIL product {product.id}" in result.output
    assert "difference=-7" in result.output
