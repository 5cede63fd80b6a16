"""Canned statements from the SQL basics tutorial, grouped by section.

Each example can run on its own against a freshly seeded catalog, or a
whole section can run in order against one catalog. Examples that are
meant to fail (to show what the engine rejects) carry the expected
error kind.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .exceptions import StatementFailed
from .executor import Executor, Result
from .parser import ParsedStatement
from .seed import SEED_TABLES, seed_catalog

logger = logging.getLogger(__name__)

SECTIONS = ("select", "ddl", "dml")

# the DDL section creates persons itself
SECTION_TABLES: Dict[str, Tuple[str, ...]] = {
    "select": tuple(SEED_TABLES),
    "ddl": ("customers", "orders"),
    "dml": tuple(SEED_TABLES),
}


@dataclass
class Example:
    name: str
    section: str
    title: str
    sql: str
    expect_error: Optional[str] = None
    # seed tables for a standalone run; None means all of them
    tables: Optional[Tuple[str, ...]] = None


@dataclass
class Outcome:
    example: Example
    results: List[Tuple[ParsedStatement, Result]] = field(default_factory=list)
    error: Optional[StatementFailed] = None

    @property
    def ok(self) -> bool:
        if self.example.expect_error:
            return self.error is not None and self.error.error.kind == self.example.expect_error
        return self.error is None


EXAMPLES: List[Example] = [
    # SELECT
    Example("select-all-customers", "select", "Retrieve all customer data",
            "SELECT *\nFROM customers"),
    Example("select-all-orders", "select", "Retrieve all order data",
            "SELECT *\nFROM orders"),
    Example("select-columns", "select", "Each customer's name, country and score",
            "SELECT\n    first_name,\n    country,\n    score\nFROM customers"),
    Example("where-score-not-zero", "select", "Customers with a score not equal to 0",
            "SELECT *\nFROM customers\nWHERE score != 0"),
    Example("where-germany", "select", "Customers from Germany",
            "SELECT *\nFROM customers\nWHERE country = 'Germany'"),
    Example("where-germany-columns", "select", "Name and country of customers from Germany",
            "SELECT\n    first_name,\n    country\nFROM customers\nWHERE country = 'Germany'"),
    Example("order-score-desc", "select", "All customers, highest score first",
            "SELECT *\nFROM customers\nORDER BY score DESC"),
    Example("order-score-asc", "select", "All customers, lowest score first",
            "SELECT *\nFROM customers\nORDER BY score ASC"),
    Example("order-country", "select", "All customers sorted by country",
            "SELECT *\nFROM customers\nORDER BY country ASC"),
    Example("order-country-score", "select", "Sorted by country, then highest score",
            "SELECT *\nFROM customers\nORDER BY country ASC, score DESC"),
    Example("where-and-order", "select", "Non-zero scores, highest first",
            "SELECT\n    first_name,\n    country,\n    score\nFROM customers\n"
            "WHERE score != 0\nORDER BY score DESC"),
    Example("group-total-score", "select", "Total score for each country",
            "SELECT\n    country,\n    SUM(score) AS total_score\nFROM customers\nGROUP BY country"),
    Example("group-invalid-column", "select",
            "Rejected: first_name is neither grouped nor aggregated",
            "SELECT\n    country,\n    first_name,\n    SUM(score) AS total_score\n"
            "FROM customers\nGROUP BY country",
            expect_error="InvalidProjection"),
    Example("group-score-and-count", "select", "Total score and number of customers per country",
            "SELECT\n    country,\n    SUM(score) AS total_score,\n    COUNT(id) AS total_customers\n"
            "FROM customers\nGROUP BY country"),
    Example("having-avg-score", "select", "Countries with an average score above 430",
            "SELECT\n    country,\n    AVG(score) AS avg_score\nFROM customers\n"
            "GROUP BY country\nHAVING AVG(score) > 430"),
    Example("having-avg-nonzero", "select",
            "Countries averaging above 430, ignoring zero scores",
            "SELECT\n    country,\n    AVG(score) AS avg_score\nFROM customers\n"
            "WHERE score != 0\nGROUP BY country\nHAVING AVG(score) > 430"),
    Example("distinct-countries", "select", "Unique list of countries",
            "SELECT DISTINCT country\nFROM customers"),
    Example("top-3", "select", "Only 3 customers",
            "SELECT TOP 3 *\nFROM customers"),
    Example("top-3-highest", "select", "Top 3 customers by score",
            "SELECT TOP 3 *\nFROM customers\nORDER BY score DESC"),
    Example("top-2-lowest", "select", "Lowest 2 customers by score",
            "SELECT TOP 2 *\nFROM customers\nORDER BY score ASC"),
    Example("top-2-recent-orders", "select", "The two most recent orders",
            "SELECT TOP 2 *\nFROM orders\nORDER BY order_date DESC"),
    Example("all-together", "select",
            "Average non-zero score per country above 430, highest first",
            "SELECT\n    country,\n    AVG(score) AS avg_score\nFROM customers\n"
            "WHERE score != 0\nGROUP BY country\nHAVING AVG(score) > 430\n"
            "ORDER BY AVG(score) DESC"),
    Example("multiple-queries", "select", "Two queries in one batch",
            "SELECT * FROM customers;\nSELECT * FROM orders;"),
    Example("static-number", "select", "A constant value without a table",
            "SELECT 123 AS static_number;"),
    Example("static-string", "select", "A constant string without a table",
            "SELECT 'Hello' AS static_string;"),
    Example("constant-column", "select", "A constant column next to table data",
            "SELECT\n    id,\n    first_name,\n    'New Customer' AS customer_type\nFROM customers;"),
    # DDL
    Example("create-persons", "ddl", "Create the persons table",
            "CREATE TABLE persons (\n    id INT NOT NULL,\n    person_name VARCHAR(50) NOT NULL,\n"
            "    birth_date DATE,\n    phone VARCHAR(15) NOT NULL,\n"
            "    CONSTRAINT pk_persons PRIMARY KEY (id)\n)",
            tables=("customers", "orders")),
    Example("alter-add-email", "ddl", "Add an email column to persons",
            "ALTER TABLE persons\nADD email VARCHAR(50) NOT NULL"),
    Example("alter-drop-phone", "ddl", "Remove the phone column from persons",
            "ALTER TABLE persons\nDROP COLUMN phone"),
    Example("drop-persons", "ddl", "Delete the persons table",
            "DROP TABLE persons"),
    # DML
    Example("insert-values", "dml", "Insert two customers with VALUES",
            "INSERT INTO customers (id, first_name, country, score)\nVALUES\n"
            "    (6, 'Anna', 'USA', NULL),\n    (7, 'Sam', NULL, 100)"),
    Example("insert-wrong-order", "dml",
            "Swapped text columns are accepted: column order is the caller's job",
            "INSERT INTO customers (id, first_name, country, score)\nVALUES\n"
            "    (11, 'USA', 'Max', NULL)"),
    Example("insert-wrong-type", "dml", "Rejected: a name where the id belongs",
            "INSERT INTO customers (id, first_name, country, score)\nVALUES\n"
            "    ('Max', 9, 'Max', NULL)",
            expect_error="TypeMismatch"),
    Example("insert-full-row", "dml", "Insert a record with every column",
            "INSERT INTO customers (id, first_name, country, score)\nVALUES (8, 'Max', 'USA', 368)"),
    Example("insert-no-columns", "dml", "Insert without naming the columns",
            "INSERT INTO customers\nVALUES\n    (9, 'Andreas', 'Germany', NULL)"),
    Example("insert-some-columns", "dml", "Insert only id and first_name",
            "INSERT INTO customers (id, first_name)\nVALUES\n    (10, 'Sahra')"),
    Example("insert-from-select", "dml", "Copy customers into persons",
            "INSERT INTO persons (id, person_name, birth_date, phone)\nSELECT\n"
            "    id,\n    first_name,\n    NULL,\n    'Unknown'\nFROM customers"),
    Example("update-one", "dml", "Set the score of customer 6 to 0",
            "UPDATE customers\nSET score = 0\nWHERE id = 6"),
    Example("update-two-columns", "dml", "Set score to 0 and country to UK for customer 10",
            "UPDATE customers\nSET score = 0,\n    country = 'UK'\nWHERE id = 10"),
    Example("update-null-scores", "dml", "Replace NULL scores with 0",
            "UPDATE customers\nSET score = 0\nWHERE score IS NULL"),
    Example("verify-null-scores", "dml", "Verify no NULL scores remain",
            "SELECT *\nFROM customers\nWHERE score IS NULL"),
    Example("select-before-delete", "dml", "Customers with an id greater than 5",
            "SELECT *\nFROM customers\nWHERE id > 5"),
    Example("delete-where", "dml", "Delete customers with an id greater than 5",
            "DELETE FROM customers\nWHERE id > 5"),
    Example("delete-all-persons", "dml", "Delete all rows from persons",
            "DELETE FROM persons"),
    Example("truncate-persons", "dml", "Empty persons with TRUNCATE",
            "TRUNCATE TABLE persons"),
]

_BY_NAME = {e.name: e for e in EXAMPLES}


def get_example(name: str) -> Example:
    try:
        return _BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown example '{name}'") from None


def section_examples(section: str) -> List[Example]:
    if section not in SECTIONS:
        raise KeyError(f"Unknown section '{section}'")
    return [e for e in EXAMPLES if e.section == section]


def fresh_executor(tables: Optional[Sequence[str]] = None) -> Executor:
    return Executor(seed_catalog(tables=tables))


def run_example(example: Example, executor: Optional[Executor] = None) -> Outcome:
    """Run one example; without an executor it gets a freshly seeded catalog."""
    if executor is None:
        executor = fresh_executor(example.tables)
    outcome = Outcome(example)
    for parsed in executor.parser.parse_script(example.sql):
        try:
            outcome.results.append((parsed, executor.execute_statement(parsed)))
        except StatementFailed as e:
            outcome.error = e
            break
    if not outcome.ok:
        logger.warning("example %s did not behave as expected", example.name)
    return outcome


def run_section(section: str, executor: Optional[Executor] = None) -> List[Outcome]:
    """Run a section in order on one catalog, stopping at the first unexpected outcome."""
    if executor is None:
        executor = fresh_executor(SECTION_TABLES[section])
    outcomes = []
    for example in section_examples(section):
        outcome = run_example(example, executor)
        outcomes.append(outcome)
        if not outcome.ok:
            break
    return outcomes
