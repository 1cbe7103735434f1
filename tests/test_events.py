import unittest

from pipeline.events import (
    RawExecution,
    build_stage_bundle,
    map_status,
    materialize,
    merge_events,
    resolve_bundle_stage,
)
from pipeline.models import EventStatus, NormalizedEvent

JAN_1 = 1704067200000  # 2024-01-01T00:00:00Z


def raw(name, start, end, status="Passed", user=None, external_id="100"):
    return RawExecution(name=name, external_id=external_id, status=status, start=start, end=end, user_email=user)


class TestMapStatus(unittest.TestCase):
    def test_substring_classification(self) -> None:
        cases = {
            "Passed": EventStatus.PASSED,
            "PASS": EventStatus.PASSED,
            "Failed": EventStatus.FAILED,
            "fail - known issue": EventStatus.FAILED,
            "Skipped": EventStatus.SKIPPED,
            "Blocked": EventStatus.SKIPPED,
            "Incomplete": EventStatus.PASSED,
            "Unexecuted": EventStatus.PASSED,
        }
        for status, expected in cases.items():
            self.assertEqual(expected, map_status(status), msg=status)

    def test_missing_status_is_skipped(self) -> None:
        self.assertEqual(EventStatus.SKIPPED, map_status(None))
        self.assertEqual(EventStatus.SKIPPED, map_status(""))


class TestMaterialize(unittest.TestCase):
    def test_drift_is_applied_to_both_ends(self) -> None:
        events = materialize([raw("Login", "2024-01-01T00:00:00Z", "2024-01-01T00:00:01Z")], 250)

        self.assertEqual(1, len(events))
        self.assertEqual(JAN_1 + 250, events[0].start)
        self.assertEqual(JAN_1 + 1000 + 250, events[0].end)
        self.assertEqual("100", events[0].external_id)

    def test_logs_without_both_timestamps_are_dropped(self) -> None:
        logs = [
            raw("no-end", "2024-01-01T00:00:00Z", None),
            raw("no-start", None, "2024-01-01T00:00:00Z"),
            raw("ok", "2024-01-01T00:00:00Z", "2024-01-01T00:00:00Z"),
        ]
        self.assertEqual(["ok"], [e.name for e in materialize(logs, 0)])

    def test_inverted_and_malformed_logs_are_dropped(self) -> None:
        logs = [
            raw("inverted", "2024-01-01T00:00:05Z", "2024-01-01T00:00:00Z"),
            raw("garbage", "yesterday", "2024-01-01T00:00:00Z"),
        ]
        self.assertEqual([], materialize(logs, 0))

    def test_events_are_sorted_by_start(self) -> None:
        logs = [
            raw("late", "2024-01-01T00:10:00Z", "2024-01-01T00:11:00Z"),
            raw("early", "2024-01-01T00:00:00Z", "2024-01-01T00:01:00Z"),
        ]
        self.assertEqual(["early", "late"], [e.name for e in materialize(logs, 0)])


class TestMergeEvents(unittest.TestCase):
    def _event(self, name, start):
        return NormalizedEvent(name=name, external_id="1", start=start, end=start + 10, status=EventStatus.PASSED)

    def test_merge_is_concatenation_plus_stable_sort(self) -> None:
        existing = [self._event("a", 1), self._event("c", 5)]
        new = [self._event("b", 1), self._event("d", 3)]

        merged = merge_events(existing, new)

        self.assertEqual(["a", "b", "d", "c"], [e.name for e in merged])

    def test_merge_keeps_duplicates(self) -> None:
        events = [self._event("a", 1)]
        self.assertEqual(2, len(merge_events(events, events)))
        self.assertEqual(events, merge_events(events, []))


class TestStageBundle(unittest.TestCase):
    def test_mapped_stage_and_lab(self) -> None:
        logs = [
            raw("Login", "2024-01-01T00:00:00Z", "2024-01-01T00:00:01Z", user="qa@acme.io"),
            raw("Logout", "2024-01-01T00:00:02Z", "2024-01-01T00:00:03Z", user="dev@acme.io"),
        ]
        bundle = build_stage_bundle(
            logs,
            project_name="Shop",
            suite_name="Nightly",
            drift_ms=0,
            stage_mapping={"Shop / Nightly": "Regression"},
            user_lab_mapping={"qa@acme.io": "lab-qa", "dev@acme.io": "lab-dev"},
        )

        self.assertEqual("Regression", bundle.test_stage)
        self.assertEqual("lab-qa", bundle.lab_id)
        self.assertEqual(2, len(bundle.events))

    def test_unmapped_suite_uses_its_name(self) -> None:
        self.assertEqual("Nightly", resolve_bundle_stage("Shop", "Nightly", {"Nightly": "Other"}))

    def test_unknown_user_has_no_lab(self) -> None:
        bundle = build_stage_bundle(
            [raw("Login", "2024-01-01T00:00:00Z", "2024-01-01T00:00:01Z", user="ghost@acme.io")],
            project_name="Shop",
            suite_name="Nightly",
            drift_ms=0,
            stage_mapping={},
            user_lab_mapping={},
        )
        self.assertIsNone(bundle.lab_id)
        self.assertNotIn("labId", bundle.to_dict())

    def test_to_dict_shape(self) -> None:
        bundle = build_stage_bundle(
            [raw("Login", "2024-01-01T00:00:00Z", "2024-01-01T00:00:01Z", status=None, user="qa@acme.io")],
            project_name="Shop",
            suite_name="Nightly",
            drift_ms=-5,
            stage_mapping={},
            user_lab_mapping={"qa@acme.io": "lab-qa"},
        )
        self.assertEqual(
            {
                "testStage": "Nightly",
                "projectName": "Shop",
                "labId": "lab-qa",
                "clockDriftMs": -5,
                "events": [
                    {"name": "Login", "externalId": "100", "start": JAN_1 - 5, "end": JAN_1 + 995, "status": "skipped"}
                ],
            },
            bundle.to_dict(),
        )


if __name__ == "__main__":
    unittest.main()
