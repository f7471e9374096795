"""
Tests for the CRUD workspace.

Async workspace methods are driven with asyncio.run; storage is in memory.
"""

import asyncio
from datetime import date
from decimal import Decimal

from conftest import FailingAttachmentStore
from portal.models.audit import AuditEventType
from portal.models.records import (
    LocalStoreAttachment,
    Material,
    RecordKind,
    Task,
    UserRole,
)
from portal.workspace import CrudWorkspace, DeleteConfirmation, SortDirection


def _event_types(audit_logger):
    return [e.event_type for e in audit_logger.recent_events()]


def _workspace(store, attachments, audit_logger, project_id, kind, role=UserRole.ADMIN):
    return CrudWorkspace(
        store,
        attachments,
        role,
        project_id,
        kind=kind,
        audit_logger=audit_logger,
        today=date(2025, 9, 5),
    )


class TestDerivedFields:
    """Tests for cost recomputation at save time."""

    def test_labor_cost_from_qty_and_rate(self, store, attachments, audit_logger):
        """Test that labor cost is qty × rate, including fractions."""
        ws = _workspace(store, attachments, audit_logger, "project-properties", RecordKind.LABOR)
        ws.begin_add()
        ws.update_buffer(qty=Decimal("1.5"), rate=Decimal("62.5"), cost=Decimal("999"))
        assert ws.save().ok

        saved = store.get_records("project-properties", RecordKind.LABOR)[0]
        assert saved.cost == Decimal("93.75")

    def test_zero_quantity(self, store, attachments, audit_logger):
        ws = _workspace(store, attachments, audit_logger, "project-properties", RecordKind.MATERIALS)
        ws.begin_add()
        ws.update_buffer(item="Sand", qty=0, unit_cost=Decimal("1200"))
        ws.save()
        assert store.get_records("project-properties", RecordKind.MATERIALS)[0].total_cost == Decimal("0")

    def test_new_labor_defaults(self, store, attachments, audit_logger):
        """Test the Add form defaults for labor."""
        ws = _workspace(store, attachments, audit_logger, "project-properties", RecordKind.LABOR)
        ws.begin_add()
        buffer = ws.buffer
        assert buffer.qty == Decimal("8")
        assert buffer.rate == Decimal("62.5")
        assert buffer.start_date == "2025-09-05"
        assert buffer.id.startswith("labor-")

    def test_new_task_order_follows_last(self, store, attachments, audit_logger):
        ws = _workspace(store, attachments, audit_logger, "project-elnido", RecordKind.TASKS)
        ws.begin_add()
        assert ws.buffer.order == 3


class TestRebarExample:
    """End-to-end materials example: 5 tons of rebar at 50,000."""

    def test_add_toggle_export(self, store, attachments, audit_logger):
        ws = _workspace(store, attachments, audit_logger, "project-properties", RecordKind.MATERIALS)
        ws.begin_add()
        result = ws.update_buffer(
            item="Rebar #10",
            category="Steel",
            unit="ton",
            qty=5,
            unit_cost=50000,
            supplier="Manila Steel",
            lead_time_days=14,
            delivery_eta="2025-03-15",
            location="Warehouse",
        )
        assert result.ok
        assert ws.save().ok

        material = store.get_records("project-properties", RecordKind.MATERIALS)[0]
        assert material.total_cost == Decimal("250000")

        assert ws.toggle_received(material.id).ok
        toggled = store.find_record("project-properties", RecordKind.MATERIALS, material.id)
        assert toggled.received is True
        assert toggled.total_cost == Decimal("250000")

        lines = ws.export_csv().split("\n")
        assert lines[0].startswith("item,category,unit,qty,unit_cost,total_cost,")
        assert lines[1].startswith("Rebar #10,Steel,ton,5,50000,250000,")
        assert lines[1] == "Rebar #10,Steel,ton,5,50000,250000,Manila Steel,14,2025-03-15,true,Warehouse,,false"


class TestEditBuffer:
    def test_invalid_value_leaves_buffer(self, admin_workspace):
        admin_workspace.begin_add()
        before = admin_workspace.buffer
        result = admin_workspace.update_buffer(category="Gold")
        assert not result.ok
        assert "category" in result.notice
        assert admin_workspace.buffer == before

    def test_id_cannot_be_changed(self, admin_workspace):
        admin_workspace.begin_add()
        record_id = admin_workspace.buffer.id
        admin_workspace.update_buffer(id="material-other", item="Gravel")
        assert admin_workspace.buffer.id == record_id
        assert admin_workspace.buffer.item == "Gravel"

    def test_edit_is_a_copy(self, admin_workspace, store):
        """Test that editing does not touch the stored record before save."""
        record = store.get_records("project-elnido", RecordKind.MATERIALS)[0]
        admin_workspace.begin_edit(record.id)
        admin_workspace.update_buffer(item="Changed")
        assert store.find_record("project-elnido", RecordKind.MATERIALS, record.id).item == "Rebar #10"

        admin_workspace.cancel_edit()
        assert not admin_workspace.is_editing
        assert store.find_record("project-elnido", RecordKind.MATERIALS, record.id).item == "Rebar #10"

    def test_save_after_record_vanished(self, admin_workspace, store, audit_logger):
        """Test that saving an edit of a deleted record fails and keeps the buffer."""
        record = store.get_records("project-elnido", RecordKind.MATERIALS)[0]
        admin_workspace.begin_edit(record.id)
        admin_workspace.update_buffer(qty=6)
        store.delete_record("project-elnido", RecordKind.MATERIALS, record.id)

        result = admin_workspace.save()

        assert not result.ok
        assert "deleted while you were editing" in result.notice
        assert admin_workspace.is_editing
        assert store.get_records("project-elnido", RecordKind.MATERIALS) == []
        assert AuditEventType.RECORD_NOT_FOUND in _event_types(audit_logger)

    def test_edit_missing_record(self, admin_workspace):
        assert not admin_workspace.begin_edit("material-missing").ok


class TestTwoPhaseDelete:
    """Tests for delete confirmation."""

    def test_confirmation_transitions(self):
        confirmation = DeleteConfirmation()
        confirmation.arm("a")
        confirmation.arm("b")
        assert not confirmation.is_armed("a")
        assert confirmation.is_armed("b")
        assert confirmation.confirm("a") is False
        assert confirmation.armed is None
        confirmation.arm("a")
        confirmation.cancel()
        assert confirmation.confirm("a") is False

    def test_delete_needs_arming(self, store, attachments, audit_logger):
        ws = _workspace(store, attachments, audit_logger, "project-elnido", RecordKind.TASKS)
        task_id = store.get_records("project-elnido", RecordKind.TASKS)[0].id
        result = asyncio.run(ws.confirm_delete(task_id))
        assert not result.ok
        assert len(store.get_records("project-elnido", RecordKind.TASKS)) == 2

    def test_delete_removes_exactly_one(self, store, attachments, audit_logger):
        """Test that a confirmed delete removes one record and nothing else."""
        ws = _workspace(store, attachments, audit_logger, "project-vincente", RecordKind.LABOR)
        before = store.all_projects()
        target = before["project-vincente"].labor[3]

        assert ws.request_delete(target.id).ok
        assert ws.delete_confirmation.is_armed(target.id)
        assert asyncio.run(ws.confirm_delete(target.id)).ok

        after = store.all_projects()
        expected_labor = [r for r in before["project-vincente"].labor if r.id != target.id]
        assert after["project-vincente"].labor == expected_labor
        assert after["project-vincente"].tasks == before["project-vincente"].tasks
        assert after["project-vincente"].materials == before["project-vincente"].materials
        assert {k: v for k, v in after.items() if k != "project-vincente"} == {
            k: v for k, v in before.items() if k != "project-vincente"
        }
        assert AuditEventType.RECORD_DELETED in _event_types(audit_logger)

    def test_local_attachment_removed_with_record(self, empty_store, attachments, audit_logger):
        ws = _workspace(empty_store, attachments, audit_logger, "p", RecordKind.MATERIALS)
        asyncio.run(attachments.save("receipt-1", "data:image/png;base64,AAAA"))
        empty_store.add_record("p", RecordKind.MATERIALS, Material(
            id="material-1", project_id="p", attachment=LocalStoreAttachment(key="receipt-1"),
        ))

        ws.request_delete("material-1")
        assert asyncio.run(ws.confirm_delete("material-1")).ok
        assert "receipt-1" not in attachments

    def test_attachment_removal_failure_is_logged(self, empty_store, audit_logger):
        """Test that the record stays deleted when the blob cannot be removed."""
        failing = FailingAttachmentStore()
        ws = _workspace(empty_store, failing, audit_logger, "p", RecordKind.MATERIALS)
        empty_store.add_record("p", RecordKind.MATERIALS, Material(
            id="material-1", project_id="p", attachment=LocalStoreAttachment(key="receipt-1"),
        ))

        ws.request_delete("material-1")
        result = asyncio.run(ws.confirm_delete("material-1"))

        assert result.ok
        assert empty_store.get_records("p", RecordKind.MATERIALS) == []
        assert AuditEventType.ATTACHMENT_DELETE_FAILED in _event_types(audit_logger)


class TestInvestorRole:
    """Tests that the investor role never mutates anything."""

    def test_every_mutation_is_denied(self, investor_workspace, store, snapshot, audit_logger):
        before = store.all_projects()
        writes = snapshot.write_count
        record_id = before["project-elnido"].materials[0].id

        results = [
            investor_workspace.begin_add(),
            investor_workspace.begin_edit(record_id),
            investor_workspace.save(),
            investor_workspace.request_delete(record_id),
            asyncio.run(investor_workspace.confirm_delete(record_id)),
            investor_workspace.toggle_paid(record_id),
            investor_workspace.toggle_received(record_id),
            investor_workspace.import_csv("item,qty\nSand,2"),
        ]

        assert all(not r.ok for r in results)
        assert all("Only admins can" in r.notice for r in results)
        assert store.all_projects() == before
        assert snapshot.write_count == writes
        assert not investor_workspace.is_editing
        assert _event_types(audit_logger).count(AuditEventType.PERMISSION_DENIED) == len(results)

    def test_investor_can_read_and_export(self, investor_workspace):
        assert len(investor_workspace.visible_records()) == 1
        assert investor_workspace.export_csv().startswith("item,")
        assert not investor_workspace.can_mutate


class TestFlags:
    def test_toggle_paid_twice(self, admin_workspace, store):
        record_id = store.get_records("project-elnido", RecordKind.MATERIALS)[0].id
        admin_workspace.toggle_paid(record_id)
        assert store.find_record("project-elnido", RecordKind.MATERIALS, record_id).paid is True
        admin_workspace.toggle_paid(record_id)
        assert store.find_record("project-elnido", RecordKind.MATERIALS, record_id).paid is False

    def test_received_only_for_materials(self, store, attachments, audit_logger):
        ws = _workspace(store, attachments, audit_logger, "project-farm", RecordKind.LABOR)
        record_id = store.get_records("project-farm", RecordKind.LABOR)[0].id
        assert not ws.toggle_received(record_id).ok

    def test_toggle_missing_record(self, admin_workspace):
        assert not admin_workspace.toggle_paid("material-missing").ok


class TestSortAndSearch:
    def _tasks(self, store):
        store.replace_records("p", RecordKind.TASKS, [
            Task(id="t1", project_id="p", name="b", status="Done", actual_hours=None, order=2),
            Task(id="t2", project_id="p", name="a", status="Backlog", actual_hours=Decimal("3"), order=1),
            Task(id="t3", project_id="p", name="c", status="Done", actual_hours=Decimal("1"), order=0),
        ])

    def test_default_sort(self, empty_store, attachments, audit_logger):
        self._tasks(empty_store)
        ws = _workspace(empty_store, attachments, audit_logger, "p", RecordKind.TASKS)
        assert [t.id for t in ws.visible_records()] == ["t3", "t2", "t1"]

    def test_ties_keep_stored_order(self, empty_store, attachments, audit_logger):
        self._tasks(empty_store)
        ws = _workspace(empty_store, attachments, audit_logger, "p", RecordKind.TASKS)
        ws.request_sort("status")
        assert [t.id for t in ws.visible_records()] == ["t2", "t1", "t3"]
        ws.request_sort("status")
        assert ws.sort.direction == SortDirection.DESCENDING
        assert [t.id for t in ws.visible_records()] == ["t1", "t3", "t2"]

    def test_missing_values_last_both_ways(self, empty_store, attachments, audit_logger):
        self._tasks(empty_store)
        ws = _workspace(empty_store, attachments, audit_logger, "p", RecordKind.TASKS)
        ws.request_sort("actual_hours")
        assert [t.id for t in ws.visible_records()] == ["t3", "t2", "t1"]
        ws.request_sort("actual_hours")
        assert [t.id for t in ws.visible_records()] == ["t2", "t3", "t1"]

    def test_switching_kind_resets_sort(self, admin_workspace):
        admin_workspace.request_sort("qty")
        admin_workspace.set_search("rebar")
        admin_workspace.select_kind(RecordKind.LABOR)
        assert admin_workspace.sort.key == "start_date"
        assert admin_workspace.sort.direction == SortDirection.DESCENDING
        assert admin_workspace.search == ""

    def test_search_is_case_insensitive(self, admin_workspace):
        admin_workspace.set_search("REBAR")
        assert len(admin_workspace.visible_records()) == 1
        admin_workspace.set_search("cement")
        assert admin_workspace.visible_records() == []


class TestCsvImport:
    def test_import_appends_with_new_ids(self, store, attachments, audit_logger):
        ws = _workspace(store, attachments, audit_logger, "project-farm", RecordKind.LABOR)
        text = "id,crew_role,qty,rate,cost,paid\nlabor-old,Mason,2,700,1,true\n,Helper,3,400,,false\n"

        result = ws.import_csv(text)

        assert result.ok
        assert result.notice == "Imported 2 rows."
        labor = store.get_records("project-farm", RecordKind.LABOR)
        assert len(labor) == 3
        mason, helper = labor[1], labor[2]
        assert mason.id != "labor-old"
        assert mason.cost == Decimal("1400")
        assert mason.paid is True
        assert helper.cost == Decimal("1200")
        assert AuditEventType.CSV_IMPORTED in _event_types(audit_logger)

    def test_import_nothing(self, admin_workspace):
        result = admin_workspace.import_csv("item,qty\n")
        assert not result.ok
        assert result.notice == "No rows found to import."
