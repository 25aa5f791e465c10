import contextlib
import csv
import io
import json
import tempfile
import unittest
from pathlib import Path

from seatplan.__main__ import main
from seatplan.banquet import BanquetLayout
from seatplan.layouts import compile_layout, new_layout, parse_configuration
from seatplan.plan import LayoutError
from seatplan.render import render_ascii
from seatplan.storage import load_layout, maybe_init_layout, save_layout
from seatplan.theater import TheaterLayout


class TestConfiguration(unittest.TestCase):
    def test_kind_selects_model(self):
        for kind, cls in (("theater", TheaterLayout), ("banquet", BanquetLayout)):
            layout = parse_configuration(new_layout(kind).model_dump(mode="json"))
            self.assertIsInstance(layout, cls)
        self.assertEqual(parse_configuration({"kind": "hybrid"}).kind, "hybrid")

    def test_invalid_configuration(self):
        with self.assertRaises(LayoutError):
            parse_configuration({"kind": "stadium"})
        with self.assertRaises(LayoutError):
            parse_configuration(["theater"])
        with self.assertRaises(LayoutError):
            parse_configuration({"kind": "theater", "column_count": 0})
        with self.assertRaises(LayoutError):
            new_layout("stadium")


class TestStorage(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_save_and_load(self):
        layout = BanquetLayout()
        layout.add_table(label="Head", chair_count=10)
        path = self.dir / "nested" / "banquet.json"
        save_layout(layout, path)
        loaded = load_layout(path)
        self.assertIsInstance(loaded, BanquetLayout)
        self.assertEqual(compile_layout(loaded).capacity, 10)
        self.assertEqual(json.loads(path.read_text())["kind"], "banquet")

    def test_load_errors(self):
        with self.assertRaises(LayoutError):
            load_layout(self.dir / "missing.json")
        bad = self.dir / "bad.json"
        bad.write_text("{not json")
        with self.assertRaises(LayoutError):
            load_layout(bad)

    def test_init_keeps_existing_file(self):
        path = self.dir / "layout.json"
        maybe_init_layout(path, rows=3, cols=4)
        again = maybe_init_layout(path, rows=1, cols=1)
        self.assertEqual(compile_layout(again).capacity, 12)
        fresh = maybe_init_layout(path, kind="hybrid", overwrite=True)
        self.assertEqual(fresh.kind, "hybrid")


class TestRender(unittest.TestCase):
    def test_grid(self):
        layout = TheaterLayout.create(2, 3)
        layout.toggle_walkway_row(layout.rows[1].id)
        layout.toggle_walkway_column(1)
        lines = render_ascii(layout).splitlines()
        self.assertIn("|", lines[0])
        self.assertIn("A1", lines[1])
        self.assertIn("A2", lines[1])
        self.assertNotIn("A3", lines[1])
        self.assertIn("====", lines[2])
        self.assertEqual(lines[-1], "capacity: 2")


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = str(Path(self._tmp.name) / "layout.json")

    def tearDown(self):
        self._tmp.cleanup()

    def _run(self, *argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(list(argv))
        return code, out.getvalue()

    def test_theater_workflow(self):
        code, out = self._run("init", "--file", self.path, "--rows", "2", "--cols", "3")
        self.assertEqual(code, 0)
        self.assertIn("capacity 6", out)

        self.assertEqual(self._run("walkway-column", "--file", self.path, "--col", "1")[0], 0)
        code, out = self._run("toggle-seat", "--file", self.path, "--row", "0", "--col", "1")
        self.assertEqual(code, 1)
        self.assertIn("locked", out)

        self.assertEqual(self._run("walkway-row", "--file", self.path, "--row", "1")[0], 0)
        self.assertEqual(self._run("resize", "--file", self.path, "--cols", "4")[0], 0)
        layout = load_layout(self.path)
        self.assertEqual(layout.walkway_columns, [1])
        self.assertEqual(layout.column_count, 4)
        self.assertTrue(layout.rows[1].is_walkway)

        code, out = self._run("show", "--file", self.path)
        self.assertEqual(code, 0)
        self.assertIn("capacity: 3", out)

    def test_compile_warns_over_venue_limit(self):
        self._run("init", "--file", self.path, "--rows", "2", "--cols", "2")
        code, out = self._run("compile", "--file", self.path, "--venue-max", "3")
        self.assertEqual(code, 1)
        self.assertIn("Capacity exceeds venue limit (3).", out)
        self.assertEqual(self._run("compile", "--file", self.path, "--venue-max", "4")[0], 0)

    def test_export_csv(self):
        self._run("init", "--file", self.path, "--rows", "1", "--cols", "2")
        target = Path(self._tmp.name) / "out" / "seats.csv"
        self.assertEqual(self._run("export-csv", "--file", self.path, "--output", str(target))[0], 0)
        with target.open(newline="") as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[0][:3], ["row", "number", "label"])
        self.assertEqual([r[2] for r in rows[1:]], ["A1", "A2"])

    def test_errors(self):
        code, out = self._run("show", "--file", self.path)
        self.assertEqual(code, 2)
        self.assertIn("Error:", out)

        self._run("init", "--file", self.path, "--kind", "banquet")
        code, out = self._run("resize", "--file", self.path, "--rows", "2")
        self.assertEqual(code, 2)
        self.assertIn("theater", out)


if __name__ == "__main__":
    unittest.main()
