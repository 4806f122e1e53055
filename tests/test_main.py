"""Tests for the command-line entry point."""

import json

import pytest

from careledger.audit import AuditAction, AuditLedger, AuditStatus, ResourceType
from careledger.main import build_parser, main, query_audit, render_audit_table


@pytest.fixture
def populated_ledger():
    ledger = AuditLedger()
    ledger.record("patient-1", "patient", AuditAction.CREATE, ResourceType.APPOINTMENT,
                  "Appointment created", resource_id="appt-1", correlation_id="corr-a")
    ledger.record("clinician-2", "clinician", AuditAction.CANCEL, ResourceType.APPOINTMENT,
                  "Denied cancel_appointment", status=AuditStatus.FAILURE,
                  resource_id="appt-1", correlation_id="corr-b")
    ledger.record("anonymous", "patient", AuditAction.LOGIN, ResourceType.PATIENT,
                  "Login failed - patient not found", status=AuditStatus.FAILURE)
    return ledger


class TestParser:
    """Tests for argument parsing."""

    def test_command_required(self):
        """Test that a subcommand is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_audit_defaults(self):
        """Test that the audit command defaults to 50 rows as a table."""
        args = build_parser().parse_args(["audit"])
        assert args.limit == 50
        assert args.json is False

    def test_selectors_are_exclusive(self):
        """Test that only one ledger filter may be chosen."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["audit", "--actor", "a", "--correlation-id", "c"])


class TestQueryAudit:
    """Tests for routing CLI filters to ledger queries."""

    def query(self, ledger, *argv):
        return query_audit(build_parser().parse_args(["audit", *argv]), ledger)

    def test_no_filter_lists_recent(self, populated_ledger):
        """Test that no filter lists the most recent entries."""
        assert len(self.query(populated_ledger)) == 3
        assert len(self.query(populated_ledger, "--limit", "1")) == 1

    def test_by_correlation_id(self, populated_ledger):
        """Test that --correlation-id selects one request's entries."""
        records = self.query(populated_ledger, "--correlation-id", "corr-b")
        assert [r.actor_id for r in records] == ["clinician-2"]

    def test_by_actor(self, populated_ledger):
        """Test that --actor selects one actor's entries."""
        records = self.query(populated_ledger, "--actor", "patient-1")
        assert [r.action for r in records] == ["CREATE"]

    def test_by_resource_type(self, populated_ledger):
        """Test that --resource-type selects one kind of resource."""
        records = self.query(populated_ledger, "--resource-type", "patient")
        assert [r.action for r in records] == ["LOGIN"]

    def test_by_resource(self, populated_ledger):
        """Test that --resource-type with --resource-id selects one resource's trail."""
        records = self.query(populated_ledger, "--resource-type", "appointment", "--resource-id", "appt-1")
        assert [r.correlation_id for r in records] == ["corr-b", "corr-a"]


class TestRenderAuditTable:
    """Tests for the rich audit table."""

    def test_one_row_per_record(self, populated_ledger):
        """Test that the table has one row per record."""
        table = render_audit_table(populated_ledger.for_resource_type(ResourceType.APPOINTMENT))
        assert table.row_count == 2
        assert "2 records" in table.title

    def test_empty(self):
        """Test that an empty result renders an empty table."""
        assert render_audit_table([]).row_count == 0


class TestMain:
    """Tests for running the CLI."""

    def test_init(self, capsys):
        """Test that init creates the database."""
        assert main(["init"]) == 0
        assert "Database initialized" in capsys.readouterr().out

    def test_audit_json_filtered_by_resource(self, populated_ledger, capsys):
        """Test that --json prints one object per record, newest first."""
        assert main(["audit", "--resource-type", "appointment", "--resource-id", "appt-1", "--json"]) == 0

        out = capsys.readouterr().out
        decoder = json.JSONDecoder()
        records, idx = [], 0
        while idx < len(out):
            if out[idx].isspace():
                idx += 1
                continue
            record, idx = decoder.raw_decode(out, idx)
            records.append(record)

        assert [r["correlation_id"] for r in records] == ["corr-b", "corr-a"]

    def test_resource_id_needs_resource_type(self, capsys):
        """Test that --resource-id alone is a usage error."""
        with pytest.raises(SystemExit):
            main(["audit", "--resource-id", "appt-1"])
        assert "--resource-id requires --resource-type" in capsys.readouterr().err

    def test_audit_table(self, populated_ledger, capsys):
        """Test that the table title counts the records."""
        assert main(["audit", "--actor", "anonymous"]) == 0
        out = capsys.readouterr().out
        assert "Audit ledger (1 records)" in out
