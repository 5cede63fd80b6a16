"""Example tables used throughout the tutorial: customers, orders and persons."""
import logging
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .catalog import Catalog
from .schema import Column, TableSchema

logger = logging.getLogger(__name__)


def customers_schema() -> TableSchema:
    return TableSchema(
        name="customers",
        columns=[
            Column("id", "INT", nullable=False),
            Column("first_name", "VARCHAR", length=50, nullable=False),
            Column("country", "VARCHAR", length=50),
            Column("score", "INT"),
        ],
        primary_key=["id"],
    )


def orders_schema() -> TableSchema:
    return TableSchema(
        name="orders",
        columns=[
            Column("order_id", "INT", nullable=False),
            Column("customer_id", "INT", nullable=False),
            Column("order_date", "DATE"),
            Column("sales", "INT"),
        ],
        primary_key=["order_id"],
    )


def persons_schema() -> TableSchema:
    return TableSchema(
        name="persons",
        columns=[
            Column("id", "INT", nullable=False),
            Column("person_name", "VARCHAR", length=50, nullable=False),
            Column("birth_date", "DATE"),
            Column("phone", "VARCHAR", length=15, nullable=False),
        ],
        primary_key=["id"],
    )


CUSTOMERS = [
    {"id": 1, "first_name": "Maria", "country": "Germany", "score": 350},
    {"id": 2, "first_name": "John", "country": "USA", "score": 900},
    {"id": 3, "first_name": "Georg", "country": "UK", "score": 750},
    {"id": 4, "first_name": "Martin", "country": "Germany", "score": 500},
    {"id": 5, "first_name": "Peter", "country": "USA", "score": 0},
]

ORDERS = [
    {"order_id": 1001, "customer_id": 1, "order_date": date(2021, 1, 11), "sales": 35},
    {"order_id": 1002, "customer_id": 2, "order_date": date(2021, 4, 5), "sales": 15},
    {"order_id": 1003, "customer_id": 3, "order_date": date(2021, 6, 18), "sales": 20},
    {"order_id": 1004, "customer_id": 6, "order_date": date(2021, 8, 31), "sales": 10},
]

SEED_TABLES: Dict[str, Tuple[Callable[[], TableSchema], List[dict]]] = {
    "customers": (customers_schema, CUSTOMERS),
    "orders": (orders_schema, ORDERS),
    "persons": (persons_schema, []),
}


def seed_catalog(catalog: Optional[Catalog] = None, tables: Optional[Iterable[str]] = None) -> Catalog:
    """Create and fill the tutorial tables; all of them unless `tables` is given."""
    catalog = catalog if catalog is not None else Catalog()
    for name in tables if tables is not None else SEED_TABLES:
        schema_fn, rows = SEED_TABLES[name]
        table = catalog.create_table(schema_fn())
        table.insert_many([dict(r) for r in rows])
        logger.debug("seeded %s with %d rows", name, len(rows))
    return catalog
