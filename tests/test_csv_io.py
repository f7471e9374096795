"""Tests for CSV export and import."""

from decimal import Decimal

from portal.models.records import (
    Labor,
    LaborRateType,
    Material,
    MaterialCategory,
    RecordKind,
    Task,
)
from portal.workspace.csv_io import (
    COLUMNS,
    export_csv,
    format_cell,
    parse_csv,
    parse_decimal,
)
from portal.workspace.defaults import new_record


class TestExport:
    def test_header_is_column_keys(self):
        text = export_csv(RecordKind.LABOR, [])
        assert text == ",".join(c.key for c in COLUMNS[RecordKind.LABOR])

    def test_ids_are_not_exported(self):
        text = export_csv(RecordKind.TASKS, [Task(id="task-secret", project_id="project-secret")])
        assert "task-secret" not in text
        assert "project-secret" not in text

    def test_cells_with_commas_are_quoted(self):
        task = Task(id="t", project_id="p", name="Paint, then seal")
        line = export_csv(RecordKind.TASKS, [task]).split("\n")[1]
        assert line.startswith('"Paint, then seal",')

    def test_format_cell(self):
        assert format_cell(None) == ""
        assert format_cell(True) == "true"
        assert format_cell(Decimal("62.50")) == "62.5"
        assert format_cell(LaborRateType.DAILY) == "Daily"
        assert format_cell(["a", "b"]) == "a;b"


class TestParseDecimal:
    def test_numbers(self):
        assert parse_decimal("62.5") == Decimal("62.5")
        assert parse_decimal(" 7 ") == Decimal("7")

    def test_fallback_to_zero(self):
        """Test that unreadable or non-finite numbers become zero."""
        assert parse_decimal("") == Decimal("0")
        assert parse_decimal("abc") == Decimal("0")
        assert parse_decimal("NaN") == Decimal("0")
        assert parse_decimal("Infinity") == Decimal("0")


class TestImport:
    def test_empty_text(self):
        assert parse_csv(RecordKind.TASKS, "") == []
        assert parse_csv(RecordKind.TASKS, "name,status\n") == []

    def test_unknown_columns_ignored(self):
        rows = parse_csv(RecordKind.MATERIALS, "item,colour,qty\nSand,yellow,3")
        assert rows == [{"item": "Sand", "qty": Decimal("3")}]

    def test_blank_lines_and_short_rows(self):
        rows = parse_csv(RecordKind.MATERIALS, "item,qty,received\n\nSand\n")
        assert rows == [{"item": "Sand", "qty": Decimal("0"), "received": False}]

    def test_booleans(self):
        rows = parse_csv(RecordKind.LABOR, "paid\ntrue\nTRUE\nyes\nfalse")
        assert [r["paid"] for r in rows] == [True, True, False, False]

    def test_invalid_enum_falls_back(self):
        """Test that unknown enum values take the kind default."""
        rows = parse_csv(RecordKind.LABOR, "rate_type\nWeekly\nHourly")
        assert rows[0]["rate_type"] == LaborRateType.DAILY
        assert rows[1]["rate_type"] == LaborRateType.HOURLY

        rows = parse_csv(RecordKind.MATERIALS, "category\nGold")
        assert rows[0]["category"] == MaterialCategory.OTHER

    def test_optional_and_tags(self):
        rows = parse_csv(RecordKind.TASKS, "actual_hours,tags\n,design; legal\n4,")
        assert rows[0]["actual_hours"] is None
        assert rows[0]["tags"] == ["design", "legal"]
        assert rows[1]["actual_hours"] == Decimal("4")
        assert rows[1]["tags"] == []

    def test_quoted_cells(self):
        rows = parse_csv(RecordKind.TASKS, 'name,owner\n"Paint, then seal",Leo')
        assert rows[0] == {"name": "Paint, then seal", "owner": "Leo"}


class TestRoundTrip:
    """Export then import reproduces every scalar field except ids."""

    def _round_trip(self, kind, record):
        rows = parse_csv(kind, export_csv(kind, [record]))
        assert len(rows) == 1
        restored = new_record(kind, record.project_id, **rows[0])
        exclude = {"id"}
        assert restored.model_dump(exclude=exclude) == record.model_dump(exclude=exclude)

    def test_task(self):
        self._round_trip(RecordKind.TASKS, Task(
            id="task-1",
            project_id="p",
            name="Survey Land Plot A",
            status="Done",
            type="Site Prep",
            owner="David",
            start_date="2025-01-10",
            due_date="2025-01-15",
            est_hours=Decimal("40"),
            cost=Decimal("50000"),
            tags=["survey", "legal"],
            order=1,
            paid=True,
        ))

    def test_labor(self):
        self._round_trip(RecordKind.LABOR, Labor(
            id="labor-1",
            project_id="p",
            crew_role="General Laborer",
            workers="JR",
            rate_type="Hourly",
            qty=Decimal("8"),
            rate=Decimal("62.5"),
            cost=Decimal("500"),
            supplier="Local",
            start_date="2025-08-29",
            end_date="2025-08-29",
            notes="half day",
        ))

    def test_material(self):
        self._round_trip(RecordKind.MATERIALS, Material(
            id="material-1",
            project_id="p",
            item="Rebar #10",
            category="Steel",
            unit="ton",
            qty=Decimal("5"),
            unit_cost=Decimal("50000"),
            total_cost=Decimal("250000"),
            supplier="Manila Steel",
            lead_time_days=14,
            delivery_eta="2025-03-15",
            received=True,
            location="Warehouse",
        ))
