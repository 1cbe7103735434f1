import unittest
from pathlib import Path
import tempfile


from tools.io import read_json, write_json


class TestSafeIO(unittest.TestCase):
    def test_write_json_is_atomic_and_cleans_temp(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            out_dir = root / "out"
            out_path = out_dir / "state.json"

            payload = {"a": 1, "b": True, "c": None, "nested": {"x": "y"}}
            write_json(out_path, payload)

            # File written and readable
            self.assertTrue(out_path.exists())
            self.assertEqual(payload, read_json(out_path))

            # No temp files left behind on success
            tmp_files = list(out_dir.glob("*.tmp"))
            self.assertEqual([], tmp_files)

    def test_write_json_replaces_existing_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "bundle.json"
            write_json(out_path, {"events": [1, 2, 3]})
            write_json(out_path, {"events": []})

            self.assertEqual({"events": []}, read_json(out_path))
            self.assertTrue(out_path.read_text(encoding="utf-8").endswith("\n"))

    def test_write_json_keeps_non_ascii(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "names.json"
            write_json(out_path, {"name": "Überprüfung"})
            self.assertIn("Überprüfung", out_path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
