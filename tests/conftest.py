import pytest

from sqlbasics.catalog import Catalog
from sqlbasics.executor import Executor
from sqlbasics.seed import seed_catalog


@pytest.fixture
def catalog():
    return Catalog()


@pytest.fixture
def exe():
    """Executor over the seeded tutorial tables."""
    return Executor(seed_catalog())


@pytest.fixture
def empty_exe():
    return Executor()


@pytest.fixture
def scores_exe():
    """customers with scores NULL, 500 and 0."""
    exe = Executor()
    exe.execute_script(
        "CREATE TABLE customers (id INT PRIMARY KEY, score INT);"
        "INSERT INTO customers VALUES (1, NULL), (2, 500), (3, 0);"
    )
    return exe


@pytest.fixture
def client():
    from webapp.app import create_app

    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()
