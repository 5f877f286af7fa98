from storekeeper.models import KitchenReport, KitchenSession
from storekeeper.services import catalog_service, sales_service

from conftest import OWNER, STRANGER


def test_open_session_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["store", "open-session", "--pipeline", "kitchen", "--actor", OWNER])
    second = runner.invoke(args=["store", "open-session", "--pipeline", "kitchen", "--actor", OWNER])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert db_session.query(KitchenSession).count() == 1


def test_open_session_unauthorized(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["store", "open-session", "--pipeline", "kitchen", "--actor", STRANGER])
    assert result.exit_code != 0
    assert "Not authorized" in result.output
    assert db_session.query(KitchenSession).count() == 0


def test_unknown_pipeline_rejected(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["store", "open-session", "--pipeline", "bakery", "--actor", OWNER])
    assert result.exit_code != 0


def test_close_session_and_list(app, db_session, kitchen_session):
    item = catalog_service.create_food_item(name="Kenkey", price="4.00", actor_id=OWNER)
    sales_service.record_sale("kitchen", item.id, 1, actor_id=OWNER)
    runner = app.test_cli_runner()

    closed = runner.invoke(args=["store", "close-session", "--pipeline", "kitchen", "--actor", OWNER])
    assert closed.exit_code == 0, closed.output
    assert "revenue 4.00 over 1 sales" in closed.output
    assert db_session.query(KitchenReport).count() == 1

    listed = runner.invoke(args=["store", "sessions", "--pipeline", "kitchen"])
    assert listed.exit_code == 0
    assert listed.output.splitlines()[0].startswith("OPEN")
    assert len(listed.output.splitlines()) == 2


def test_init_db(app, db_session):
    result = app.test_cli_runner().invoke(args=["store", "init-db"])
    assert result.exit_code == 0
    assert "Tables created" in result.output
