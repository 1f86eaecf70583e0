"""
UpdateSimulationHandler: optimistic concurrency, domain rules, audit trail.
"""

import base64
from datetime import timedelta
from unittest import mock

from django.test import TestCase
from django.utils import timezone

from apps.audit.models import AuditAction, AuditEntry
from apps.simulations.handlers import (
    SimulationPatch,
    UpdateSimulationCommand,
    UpdateSimulationHandler,
)
from apps.simulations.models import Simulation, SimulationStatus
from apps.simulations.tokens import ConcurrencyToken


def make_simulation(**overrides):
    values = {
        "name": "Orig",
        "start_time": (timezone.now() + timedelta(days=1)).replace(microsecond=0),
        "file_name": "a.csv",
        "status": SimulationStatus.NOT_STARTED,
        "row_version": bytes([1, 2, 3, 4]),
    }
    values.update(overrides)
    return Simulation.objects.create(**values)


def wire(raw):
    return base64.b64encode(bytes(raw)).decode("ascii")


class UpdateSimulationHandlerTests(TestCase):
    def setUp(self):
        self.handler = UpdateSimulationHandler()
        self.simulation = make_simulation()

    def _update(self, if_match, **patch):
        return self.handler.handle(
            UpdateSimulationCommand(
                id=self.simulation.id,
                if_match=if_match,
                patch=SimulationPatch(**patch),
                actor="alice",
                correlation_id="corr-1",
            )
        )

    def test_matching_token_updates_and_rotates_token(self):
        result = self._update(wire([1, 2, 3, 4]), name="X")

        self.assertTrue(result.ok)
        self.assertEqual(result.value.name, "X")
        self.assertNotEqual(result.token.to_wire(), wire([1, 2, 3, 4]))
        self.assertEqual(Simulation.objects.get(pk=self.simulation.id).name, "X")

    def test_wrong_token_conflicts_and_reports_current_token(self):
        for attempt in range(3):
            with self.subTest(attempt=attempt):
                result = self._update(wire([9, 9, 9, 9]), name="Y")

                self.assertFalse(result.ok)
                self.assertEqual(result.code, "CONCURRENCY_CONFLICT")
                self.assertEqual(
                    result.error.details["currentVersion"], wire([1, 2, 3, 4])
                )
                stored = Simulation.objects.get(pk=self.simulation.id)
                self.assertEqual(stored.name, "Orig")
                self.assertEqual(bytes(stored.row_version), bytes([1, 2, 3, 4]))

        self.assertFalse(AuditEntry.objects.exists())

    def test_started_simulation_rejects_data_source_change(self):
        Simulation.objects.filter(pk=self.simulation.id).update(
            status=SimulationStatus.IN_PROGRESS
        )

        result = self._update(wire([1, 2, 3, 4]), file_name="b.csv")

        self.assertEqual(result.code, "IMMUTABILITY_VIOLATION")
        self.assertIn("DataSource", result.error.message)
        self.assertEqual(result.error.details["field"], "fileName")
        self.assertEqual(Simulation.objects.get(pk=self.simulation.id).file_name, "a.csv")

    def test_started_simulation_rejects_start_time_change(self):
        Simulation.objects.filter(pk=self.simulation.id).update(
            status=SimulationStatus.IN_PROGRESS
        )

        result = self._update(
            wire([1, 2, 3, 4]),
            start_time=self.simulation.start_time + timedelta(hours=2),
        )

        self.assertEqual(result.code, "IMMUTABILITY_VIOLATION")
        self.assertEqual(result.error.details["field"], "startTime")

    def test_not_started_cannot_jump_to_completed(self):
        result = self._update(wire([1, 2, 3, 4]), status=SimulationStatus.COMPLETED)

        self.assertEqual(result.code, "ILLEGAL_TRANSITION")
        self.assertEqual(
            Simulation.objects.get(pk=self.simulation.id).status,
            SimulationStatus.NOT_STARTED,
        )

    def test_forward_transitions_succeed_in_sequence(self):
        first = self._update(wire([1, 2, 3, 4]), status=SimulationStatus.IN_PROGRESS)
        self.assertTrue(first.ok)

        second = self._update(first.token.to_wire(), status=SimulationStatus.COMPLETED)
        self.assertTrue(second.ok)
        self.assertEqual(second.value.status, SimulationStatus.COMPLETED)

        backwards = self._update(
            second.token.to_wire(), status=SimulationStatus.IN_PROGRESS
        )
        self.assertEqual(backwards.code, "ILLEGAL_TRANSITION")

    def test_unknown_status_is_a_validation_failure(self):
        result = self._update(wire([1, 2, 3, 4]), status="Bogus")

        self.assertFalse(result.ok)
        self.assertEqual(result.code, "VALIDATION_ERROR")
        self.assertEqual(
            Simulation.objects.get(pk=self.simulation.id).status,
            SimulationStatus.NOT_STARTED,
        )

    def test_fractional_start_time_matching_stored_value_is_not_a_change(self):
        Simulation.objects.filter(pk=self.simulation.id).update(
            status=SimulationStatus.IN_PROGRESS
        )

        result = self._update(
            wire([1, 2, 3, 4]),
            start_time=self.simulation.start_time.replace(microsecond=250000),
        )

        self.assertTrue(result.ok)

    def test_past_start_time_is_rejected(self):
        result = self._update(
            wire([1, 2, 3, 4]), start_time=timezone.now() - timedelta(minutes=5)
        )
        self.assertEqual(result.code, "VALIDATION_ERROR")

    def test_invalid_token_is_rejected_without_touching_the_store(self):
        with self.assertNumQueries(0):
            result = self._update("%%% not base64 %%%", name="Z")

        self.assertEqual(result.code, "INVALID_TOKEN")

    def test_missing_simulation_is_not_found(self):
        result = self.handler.handle(
            UpdateSimulationCommand(
                id=424242, if_match=wire([1, 2, 3, 4]), patch=SimulationPatch(name="Z")
            )
        )
        self.assertEqual(result.code, "NOT_FOUND")

    def test_non_positive_id_is_validation_error(self):
        result = self.handler.handle(
            UpdateSimulationCommand(id=0, if_match=wire([1, 2, 3, 4]))
        )
        self.assertEqual(result.code, "VALIDATION_ERROR")

    def test_second_writer_with_same_token_loses(self):
        """Two callers read the same token; only the first write lands."""
        token = wire([1, 2, 3, 4])

        first = self._update(token, name="First")
        second = self._update(token, name="Second")

        self.assertTrue(first.ok)
        self.assertEqual(second.code, "CONCURRENCY_CONFLICT")
        self.assertEqual(second.error.details["currentVersion"], first.token.to_wire())
        self.assertEqual(Simulation.objects.get(pk=self.simulation.id).name, "First")
        self.assertEqual(AuditEntry.objects.count(), 1)

    def test_snapshot_loaded_before_a_concurrent_write_still_conflicts(self):
        """The CAS guards a snapshot that went stale after validation."""
        repository = self.handler.repository
        original_get = repository.get_tracked

        def get_then_race(simulation_id):
            snapshot = original_get(simulation_id)
            racer = Simulation.objects.get(pk=simulation_id)
            racer.name = "Racer"
            repository.cas_update(racer, racer.token)
            return snapshot

        with mock.patch.object(repository, "get_tracked", side_effect=get_then_race):
            result = self._update(wire([1, 2, 3, 4]), name="Late")

        self.assertEqual(result.code, "CONCURRENCY_CONFLICT")
        self.assertEqual(Simulation.objects.get(pk=self.simulation.id).name, "Racer")


class UpdateAuditTrailTests(TestCase):
    def setUp(self):
        self.simulation = make_simulation()

    def test_audit_entry_lists_only_changed_fields(self):
        result = UpdateSimulationHandler().handle(
            UpdateSimulationCommand(
                id=self.simulation.id,
                if_match=wire([1, 2, 3, 4]),
                patch=SimulationPatch(name="Renamed", file_name="a.csv"),
                actor="alice",
                correlation_id="corr-42",
            )
        )

        self.assertTrue(result.ok)
        entry = AuditEntry.objects.get(simulation_id=self.simulation.id)
        self.assertEqual(entry.action, AuditAction.UPDATE)
        self.assertEqual(entry.actor, "alice")
        self.assertEqual(entry.correlation_id, "corr-42")
        self.assertEqual(
            entry.changes, [{"field": "name", "before": "Orig", "after": "Renamed"}]
        )
        self.assertEqual(entry.prev_token, wire([1, 2, 3, 4]))
        self.assertEqual(entry.new_token, result.token.to_wire())

    def test_no_op_patch_still_writes_one_empty_audit_entry(self):
        result = UpdateSimulationHandler().handle(
            UpdateSimulationCommand(id=self.simulation.id, if_match=wire([1, 2, 3, 4]))
        )

        self.assertTrue(result.ok)
        self.assertNotEqual(result.token, ConcurrencyToken(bytes([1, 2, 3, 4])))
        entry = AuditEntry.objects.get(simulation_id=self.simulation.id)
        self.assertEqual(entry.changes, [])
        self.assertEqual(entry.actor, "anonymous")

    def test_rejected_update_writes_no_audit_entry(self):
        UpdateSimulationHandler().handle(
            UpdateSimulationCommand(
                id=self.simulation.id,
                if_match=wire([1, 2, 3, 4]),
                patch=SimulationPatch(status=SimulationStatus.COMPLETED),
            )
        )
        self.assertFalse(AuditEntry.objects.exists())

    def test_audit_failure_does_not_fail_committed_update(self):
        recorder = mock.Mock()
        recorder.record.side_effect = RuntimeError("audit store down")
        handler = UpdateSimulationHandler(audit_recorder=recorder)

        with self.assertLogs("apps.audit", level="WARNING") as logs:
            result = handler.handle(
                UpdateSimulationCommand(
                    id=self.simulation.id,
                    if_match=wire([1, 2, 3, 4]),
                    patch=SimulationPatch(name="Kept"),
                )
            )

        self.assertTrue(result.ok)
        self.assertEqual(Simulation.objects.get(pk=self.simulation.id).name, "Kept")
        self.assertTrue(any("audit_write_failed" in line for line in logs.output))
        recorder.record.assert_called_once()
