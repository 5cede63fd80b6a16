from datetime import date

import pytest

from sqlbasics.exceptions import (
    ArityMismatch,
    ConstraintViolation,
    DuplicateColumn,
    DuplicateTable,
    SchemaError,
    TypeMismatch,
    UnknownColumn,
    UnknownTable,
)


def count(exe, table, where=""):
    sql = f"SELECT COUNT(*) FROM {table}"
    if where:
        sql += f" WHERE {where}"
    return exe.execute(sql).scalar()


class TestInsert:
    def test_insert_several_rows(self, exe):
        res = exe.execute(
            "INSERT INTO customers (id, first_name, country, score) "
            "VALUES (6, 'Anna', 'USA', NULL), (7, 'Sam', NULL, 100)"
        )
        assert res.statement == "INSERT"
        assert res.affected == 2
        assert count(exe, "customers") == 7

    def test_insert_after_seed_keeps_existing_rows(self, exe):
        exe.execute("INSERT INTO customers (id, first_name) VALUES (6, 'Anna')")
        exe.execute("INSERT INTO customers (id, first_name) VALUES (7, 'Sam')")
        assert exe.execute("SELECT id FROM customers").column("id") == [1, 2, 3, 4, 5, 6, 7]
        assert exe.execute("SELECT first_name FROM customers WHERE id = 5").scalar() == "Peter"

    def test_consecutive_single_row_inserts(self, empty_exe):
        empty_exe.execute("CREATE TABLE t (id INT PRIMARY KEY)")
        for i in (1, 2, 3):
            empty_exe.execute(f"INSERT INTO t VALUES ({i})")
        assert empty_exe.execute("SELECT id FROM t").column("id") == [1, 2, 3]
        with pytest.raises(ConstraintViolation):
            empty_exe.execute("INSERT INTO t VALUES (2)")

    def test_insert_without_column_list(self, exe):
        exe.execute("INSERT INTO customers VALUES (8, 'Andreas', 'Germany', NULL)")
        assert exe.execute("SELECT first_name FROM customers WHERE id = 8").scalar() == "Andreas"

    def test_missing_columns_become_null(self, exe):
        exe.execute("INSERT INTO customers (id, first_name) VALUES (10, 'Sahra')")
        res = exe.execute("SELECT country, score FROM customers WHERE id = 10")
        assert res.rows == [[None, None]]

    def test_values_go_by_position_not_meaning(self, exe):
        exe.execute("INSERT INTO customers (id, first_name, country, score) VALUES (11, 'USA', 'Max', NULL)")
        res = exe.execute("SELECT first_name, country FROM customers WHERE id = 11")
        assert res.rows == [["USA", "Max"]]

    def test_arity(self, exe):
        with pytest.raises(ArityMismatch):
            exe.execute("INSERT INTO customers (id, first_name) VALUES (10)")
        with pytest.raises(ArityMismatch):
            exe.execute("INSERT INTO customers VALUES (10, 'Sahra')")

    def test_wrong_type_rejects_whole_batch(self, exe):
        with pytest.raises(TypeMismatch):
            exe.execute("INSERT INTO customers VALUES (6, 'Anna', 'USA', 1), ('Max', 9, 'USA', NULL)")
        assert count(exe, "customers") == 5

    def test_not_null(self, exe):
        with pytest.raises(ConstraintViolation):
            exe.execute("INSERT INTO customers (id, country) VALUES (6, 'USA')")
        with pytest.raises(ConstraintViolation):
            exe.execute("INSERT INTO customers VALUES (6, NULL, 'USA', 1)")

    def test_duplicate_primary_key(self, exe):
        with pytest.raises(ConstraintViolation, match="PRIMARY KEY"):
            exe.execute("INSERT INTO customers (id, first_name) VALUES (1, 'Again')")

    def test_duplicate_key_within_batch(self, exe):
        with pytest.raises(ConstraintViolation):
            exe.execute("INSERT INTO customers (id, first_name) VALUES (6, 'A'), (6, 'B')")
        assert count(exe, "customers") == 5

    def test_varchar_length(self, exe):
        with pytest.raises(ConstraintViolation):
            exe.execute("INSERT INTO persons (id, person_name, phone) VALUES (1, 'Ann', '0123456789012345')")

    def test_duplicate_column_in_list(self, exe):
        with pytest.raises(DuplicateColumn):
            exe.execute("INSERT INTO customers (id, id) VALUES (6, 7)")

    def test_unknown_column_in_list(self, exe):
        with pytest.raises(UnknownColumn):
            exe.execute("INSERT INTO customers (id, last_name) VALUES (6, 'X')")

    def test_date_literal(self, exe):
        exe.execute("INSERT INTO persons VALUES (1, 'Ann', '1990-05-01', '555-0100')")
        assert exe.execute("SELECT birth_date FROM persons").scalar() == date(1990, 5, 1)
        with pytest.raises(TypeMismatch):
            exe.execute("INSERT INTO persons VALUES (2, 'Bob', '1990-13-01', '555-0101')")

    def test_insert_from_select(self, exe):
        res = exe.execute(
            "INSERT INTO persons (id, person_name, birth_date, phone) "
            "SELECT id, first_name, NULL, 'Unknown' FROM customers"
        )
        assert res.affected == 5
        persons = exe.execute("SELECT person_name, phone FROM persons")
        assert persons.column("person_name") == ["Maria", "John", "Georg", "Martin", "Peter"]
        assert set(persons.column("phone")) == {"Unknown"}

    def test_insert_from_select_arity(self, exe):
        with pytest.raises(ArityMismatch):
            exe.execute("INSERT INTO persons SELECT id, first_name FROM customers")

    def test_runner_requires_values_or_query(self, exe):
        with pytest.raises(ValueError):
            exe.runner.insert("customers")


class TestUpdate:
    def test_update_one_row(self, exe):
        res = exe.execute("UPDATE customers SET score = 0 WHERE id = 1")
        assert res.affected == 1
        assert exe.execute("SELECT score FROM customers WHERE id = 1").scalar() == 0

    def test_update_two_columns(self, exe):
        exe.execute("UPDATE customers SET score = 0, country = 'UK' WHERE id = 2")
        assert exe.execute("SELECT country, score FROM customers WHERE id = 2").rows == [["UK", 0]]

    def test_update_without_match(self, exe):
        assert exe.execute("UPDATE customers SET score = 1 WHERE id = 99").affected == 0

    def test_update_is_atomic_on_type_error(self, exe):
        with pytest.raises(TypeMismatch):
            exe.execute("UPDATE customers SET score = 'x'")
        assert exe.execute("SELECT SUM(score) FROM customers").scalar() == 2500

    def test_update_to_null_in_not_null_column(self, exe):
        with pytest.raises(ConstraintViolation):
            exe.execute("UPDATE customers SET first_name = NULL WHERE id = 1")

    def test_update_unknown_column(self, exe):
        with pytest.raises(UnknownColumn):
            exe.execute("UPDATE customers SET last_name = 'X'")

    def test_shift_every_key(self, exe):
        exe.execute("UPDATE customers SET id = id + 1")
        assert exe.execute("SELECT id FROM customers").column("id") == [2, 3, 4, 5, 6]
        exe.execute("UPDATE customers SET id = id + 10")
        assert exe.execute("SELECT id FROM customers").column("id") == [12, 13, 14, 15, 16]

    def test_key_collision_leaves_rows_untouched(self, exe):
        with pytest.raises(ConstraintViolation):
            exe.execute("UPDATE customers SET id = 1")
        assert exe.execute("SELECT id FROM customers").column("id") == [1, 2, 3, 4, 5]

    def test_nulls_to_zero(self, scores_exe):
        assert scores_exe.execute("UPDATE customers SET score = 0 WHERE score IS NULL").affected == 1
        assert count(scores_exe, "customers", "score = 0") == 2

    def test_runner_accepts_mapping(self, exe):
        res = exe.runner.update("customers", {"country": "France"})
        assert res.affected == 5


class TestDeleteAndTruncate:
    def test_delete_where(self, exe):
        res = exe.execute("DELETE FROM customers WHERE id > 3")
        assert res.affected == 2
        assert exe.execute("SELECT id FROM customers").column("id") == [1, 2, 3]

    def test_delete_all(self, exe):
        assert exe.execute("DELETE FROM customers").affected == 5
        assert count(exe, "customers") == 0

    def test_delete_from_empty_table(self, exe):
        assert exe.execute("DELETE FROM persons").affected == 0

    def test_delete_then_reuse_key(self, exe):
        exe.execute("DELETE FROM customers WHERE id = 1")
        exe.execute("INSERT INTO customers (id, first_name) VALUES (1, 'Maria')")
        assert count(exe, "customers") == 5

    def test_truncate_keeps_table(self, exe):
        assert exe.execute("TRUNCATE TABLE customers").affected == 5
        assert exe.execute("SELECT * FROM customers").columns == ["id", "first_name", "country", "score"]
        assert count(exe, "customers") == 0


class TestDefinitions:
    def test_create_table(self, empty_exe):
        res = empty_exe.execute(
            "CREATE TABLE persons (id INT NOT NULL, person_name VARCHAR(50) NOT NULL, "
            "birth_date DATE, phone VARCHAR(15) NOT NULL, CONSTRAINT pk_persons PRIMARY KEY (id))"
        )
        assert res.statement == "CREATE TABLE"
        assert empty_exe.catalog.table_names() == ["persons"]
        assert len(empty_exe.execute("SELECT * FROM persons")) == 0

    def test_create_existing(self, exe):
        with pytest.raises(DuplicateTable):
            exe.execute("CREATE TABLE customers (id INT)")

    def test_create_with_repeated_column(self, empty_exe):
        with pytest.raises(SchemaError):
            empty_exe.execute("CREATE TABLE t (a INT, a TEXT)")

    def test_alter_add_and_drop(self, exe):
        exe.execute("ALTER TABLE persons ADD email VARCHAR(50) NOT NULL")
        exe.execute("ALTER TABLE persons DROP COLUMN phone")
        res = exe.execute("SELECT * FROM persons")
        assert res.columns == ["id", "person_name", "birth_date", "email"]

    def test_add_not_null_to_filled_table(self, exe):
        with pytest.raises(ConstraintViolation):
            exe.execute("ALTER TABLE customers ADD email VARCHAR(50) NOT NULL")

    def test_add_not_null_with_default(self, exe):
        exe.execute("ALTER TABLE customers ADD vip INT NOT NULL DEFAULT 0")
        assert set(exe.execute("SELECT vip FROM customers").column("vip")) == {0}

    def test_drop_key_column(self, exe):
        with pytest.raises(ConstraintViolation):
            exe.execute("ALTER TABLE customers DROP COLUMN id")

    def test_rename(self, exe):
        exe.execute("ALTER TABLE persons RENAME TO people")
        assert len(exe.execute("SELECT * FROM people")) == 0
        with pytest.raises(UnknownTable):
            exe.execute("SELECT * FROM persons")

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM persons",
            "INSERT INTO persons (id) VALUES (1)",
            "UPDATE persons SET phone = 'x'",
            "DELETE FROM persons",
            "TRUNCATE TABLE persons",
            "DROP TABLE persons",
        ],
    )
    def test_dropped_table_is_gone(self, exe, sql):
        exe.execute("DROP TABLE persons")
        with pytest.raises(UnknownTable):
            exe.execute(sql)


def test_scores_walkthrough(empty_exe):
    empty_exe.execute_script(
        "CREATE TABLE customers (id INT PRIMARY KEY, score INT);"
        "INSERT INTO customers VALUES (1, NULL), (2, 500), (3, 0);"
    )
    assert empty_exe.execute("SELECT AVG(score) FROM customers WHERE score != 0").scalar() == 500
    empty_exe.execute("UPDATE customers SET score = 0 WHERE score IS NULL")
    assert empty_exe.execute("SELECT COUNT(*) FROM customers WHERE score = 0").scalar() == 2
