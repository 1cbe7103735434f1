import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from pipeline.exports import SUMMARY_FILE_NAME, BundleWriter, bundle_file_name
from pipeline.models import EventStatus, NormalizedEvent, StageBundle


def _event(name, start):
    return NormalizedEvent(name=name, external_id="7", start=start, end=start + 1, status=EventStatus.PASSED)


class TestBundleFileName(unittest.TestCase):
    def test_project_then_stage(self) -> None:
        self.assertEqual("shop_regression.json", bundle_file_name("Regression", "Shop"))

    def test_unsafe_characters_and_spaces_collapse(self) -> None:
        self.assertEqual("web_shop_smoke_nightly_.json", bundle_file_name("Smoke / Nightly!", "Web  Shop"))
        self.assertEqual("a-b_c_d.json", bundle_file_name("c__d", "A-b"))


class TestBundleWriter(unittest.TestCase):
    def test_write_then_merge(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            writer = BundleWriter(Path(td))
            first = StageBundle("Regression", "Shop", 0, [_event("b", 20)], lab_id="lab-qa")
            path = writer.write_bundle(first)

            second = StageBundle("Regression", "Shop", 12, [_event("a", 10), _event("c", 30)], lab_id="lab-qa")
            self.assertEqual(path, writer.write_bundle(second))

            data = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(["a", "b", "c"], [e["name"] for e in data["events"]])
            self.assertEqual(12, data["clockDriftMs"])
            self.assertEqual(3, len(second.events))

    def test_unreadable_existing_file_is_overwritten(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            writer = BundleWriter(Path(td))
            (Path(td) / "shop_regression.json").write_text("{not json", encoding="utf-8")

            with contextlib.redirect_stdout(io.StringIO()):
                path = writer.write_bundle(StageBundle("Regression", "Shop", 0, [_event("a", 1)]))

            data = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(["a"], [e["name"] for e in data["events"]])

    def test_summary(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            writer = BundleWriter(Path(td))
            bundles = [
                StageBundle("Regression", "Shop", 0, [_event("a", 1), _event("b", 2)], lab_id="lab-qa"),
                StageBundle("Smoke", "Shop", 0, [_event("c", 3)]),
            ]
            path = writer.write_summary(bundles)

            self.assertEqual(SUMMARY_FILE_NAME, path.name)
            data = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(2, data["totalTestStages"])
            self.assertEqual(3, data["totalEvents"])
            self.assertTrue(data["extractedAt"].endswith("Z"))
            self.assertEqual(
                [
                    {"testStage": "Regression", "projectName": "Shop", "labId": "lab-qa", "eventCount": 2},
                    {"testStage": "Smoke", "projectName": "Shop", "labId": None, "eventCount": 1},
                ],
                data["testStages"],
            )


if __name__ == "__main__":
    unittest.main()
