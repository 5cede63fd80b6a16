import pytest

from sqlbasics.catalog import AddColumn, DropColumn
from sqlbasics.exceptions import (
    ConstraintViolation,
    DuplicateColumn,
    DuplicateTable,
    SchemaError,
    UnknownColumn,
    UnknownTable,
)
from sqlbasics.schema import Column, TableSchema


def people_schema(name="people"):
    return TableSchema(
        name=name,
        columns=[Column("id", "INT"), Column("name", "VARCHAR", length=10, nullable=False)],
        primary_key=["id"],
    )


class TestCatalog:
    def test_create_and_get(self, catalog):
        catalog.create_table(people_schema())
        assert catalog.get_table("PEOPLE").name == "people"
        assert catalog.table_names() == ["people"]

    def test_duplicate_table(self, catalog):
        catalog.create_table(people_schema())
        with pytest.raises(DuplicateTable):
            catalog.create_table(people_schema())

    def test_drop_unknown(self, catalog):
        with pytest.raises(UnknownTable):
            catalog.drop_table("ghosts")

    def test_drop_then_get(self, catalog):
        catalog.create_table(people_schema())
        catalog.drop_table("people")
        with pytest.raises(UnknownTable):
            catalog.get_table("people")

    def test_add_column_backfills_null(self, catalog):
        t = catalog.create_table(people_schema())
        t.insert({"id": 1, "name": "Ann"})
        catalog.alter_table("people", AddColumn(Column("email", "TEXT")))
        assert t.scan() == [{"id": 1, "name": "Ann", "email": None}]

    def test_add_column_uses_default(self, catalog):
        t = catalog.create_table(people_schema())
        t.insert({"id": 1, "name": "Ann"})
        catalog.alter_table("people", AddColumn(Column("level", "INT", nullable=False, default=1)))
        assert t.scan()[0]["level"] == 1

    def test_add_not_null_column_to_filled_table(self, catalog):
        t = catalog.create_table(people_schema())
        t.insert({"id": 1, "name": "Ann"})
        with pytest.raises(ConstraintViolation):
            catalog.alter_table("people", AddColumn(Column("email", "TEXT", nullable=False)))
        assert [c.name for c in t.columns] == ["id", "name"]

    def test_add_existing_column(self, catalog):
        catalog.create_table(people_schema())
        with pytest.raises(DuplicateColumn):
            catalog.alter_table("people", AddColumn(Column("NAME", "TEXT")))

    def test_drop_column(self, catalog):
        t = catalog.create_table(people_schema())
        t.insert({"id": 1, "name": "Ann"})
        catalog.alter_table("people", DropColumn("name"))
        assert t.scan() == [{"id": 1}]

    def test_drop_unknown_column(self, catalog):
        catalog.create_table(people_schema())
        with pytest.raises(UnknownColumn):
            catalog.alter_table("people", DropColumn("phone"))

    def test_drop_primary_key_column(self, catalog):
        catalog.create_table(people_schema())
        with pytest.raises(ConstraintViolation):
            catalog.alter_table("people", DropColumn("id"))

    def test_alter_unknown_table(self, catalog):
        with pytest.raises(UnknownTable):
            catalog.alter_table("ghosts", DropColumn("id"))

    def test_rename(self, catalog):
        catalog.create_table(people_schema())
        catalog.rename_table("people", "persons")
        assert catalog.has_table("persons")
        assert not catalog.has_table("people")
        assert catalog.get_table("persons").schema.name == "persons"

    def test_rename_onto_existing(self, catalog):
        catalog.create_table(people_schema())
        catalog.create_table(people_schema("persons"))
        with pytest.raises(DuplicateTable):
            catalog.rename_table("people", "persons")


class TestSchema:
    def test_primary_key_is_not_null(self):
        schema = people_schema()
        assert schema.column("id").nullable is False

    def test_duplicate_column_names(self):
        with pytest.raises(SchemaError):
            TableSchema(name="t", columns=[Column("a", "INT"), Column("A", "TEXT")])

    def test_unknown_primary_key_column(self):
        with pytest.raises(UnknownColumn):
            TableSchema(name="t", columns=[Column("a", "INT")], primary_key=["b"])


class TestTableStorage:
    def test_insert_keeps_order(self, catalog):
        t = catalog.create_table(people_schema())
        t.insert_many([{"id": 2, "name": "B"}, {"id": 1, "name": "A"}])
        assert [r["id"] for r in t.scan()] == [2, 1]
        assert t.get([1])["name"] == "A"

    def test_batch_is_all_or_nothing(self, catalog):
        t = catalog.create_table(people_schema())
        with pytest.raises(ConstraintViolation):
            t.insert_many([{"id": 1, "name": "A"}, {"id": 1, "name": "B"}])
        assert len(t) == 0

    def test_missing_not_null_column(self, catalog):
        t = catalog.create_table(people_schema())
        with pytest.raises(ConstraintViolation):
            t.insert({"id": 1})

    def test_update_swapping_keys(self, catalog):
        t = catalog.create_table(people_schema())
        t.insert_many([{"id": 1, "name": "A"}, {"id": 2, "name": "B"}])
        rowids = [rowid for rowid, _ in t.items()]
        t.update_many({rowids[0]: {"id": 2}, rowids[1]: {"id": 1}})
        assert t.get([1])["name"] == "B"
        assert t.get([2])["name"] == "A"

    def test_update_key_collision_leaves_table(self, catalog):
        t = catalog.create_table(people_schema())
        t.insert_many([{"id": 1, "name": "A"}, {"id": 2, "name": "B"}])
        first = t.items()[0][0]
        with pytest.raises(ConstraintViolation):
            t.update_many({first: {"id": 2}})
        assert [r["id"] for r in t.scan()] == [1, 2]
        assert t.get([1])["name"] == "A"

    def test_truncate(self, catalog):
        t = catalog.create_table(people_schema())
        t.insert_many([{"id": 1, "name": "A"}, {"id": 2, "name": "B"}])
        assert t.truncate() == 2
        t.insert({"id": 1, "name": "A"})
        assert len(t) == 1

    def test_single_row_inserts_keep_every_row(self, catalog):
        t = catalog.create_table(people_schema())
        for i in (1, 2, 3):
            t.insert({"id": i, "name": f"P{i}"})
        assert [r["id"] for r in t.scan()] == [1, 2, 3]
        assert t.get([1])["name"] == "P1"
        with pytest.raises(ConstraintViolation):
            t.insert({"id": 2, "name": "again"})
