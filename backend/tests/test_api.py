import os
import tempfile
import unittest

from seatplan.banquet import BanquetLayout
from seatplan.theater import TheaterLayout


def _theater_config(rows: int, cols: int, section_name: str = "") -> dict:
    layout = TheaterLayout.create(rows, cols)
    if section_name:
        layout.rename_section(layout.sections[0].id, section_name)
    return layout.model_dump(mode="json")


class TestSeatPlanAPI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        # Point the app at a temporary sqlite DB for tests.
        cls._tmpdir = tempfile.TemporaryDirectory()
        os.environ["SEATPLAN_DATA_DIR"] = cls._tmpdir.name
        os.environ.pop("SEATPLAN_DB_URL", None)
        os.environ["SEATPLAN_SYNC_REQUEST_DELAY"] = "0"
        os.environ["SEATPLAN_SYNC_RETRY_BASE_DELAY"] = "0"
        # Import after env vars are set so db uses the temp dir.
        from fastapi.testclient import TestClient

        from backend.app.db import init_db
        from backend.app.main import app

        init_db()
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls):
        cls._tmpdir.cleanup()

    def _create(self, configuration: dict, name: str = "Hall") -> dict:
        r = self.client.post("/layouts", json={"name": name, "configuration": configuration})
        self.assertEqual(r.status_code, 200, r.text)
        return r.json()

    def _seats(self, layout_id: str) -> dict:
        return {f"{s['row']}{s['number']}": s for s in self.client.get(f"/layouts/{layout_id}/seats").json()}

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"ok": True})

    def test_default_layout(self):
        layout = self._create({})
        self.assertEqual(layout["kind"], "theater")
        self.assertEqual(layout["total_capacity"], 1)

    def test_invalid_configuration(self):
        r = self.client.post("/layouts", json={"name": "Bad", "configuration": {"kind": "stadium"}})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(self.client.get("/layouts/nope").status_code, 404)

    def test_preview_and_sync(self):
        layout = self._create(_theater_config(2, 3))
        layout_id = layout["id"]
        self.assertEqual(layout["total_capacity"], 6)

        preview = self.client.post(f"/layouts/{layout_id}/preview", json={"venue_max_capacity": 5}).json()
        self.assertEqual(len(preview["seats"]), 6)
        self.assertEqual(preview["summary"]["capacity"], 6)
        self.assertEqual(preview["duplicate_keys"], [])
        self.assertEqual(preview["capacity_warning"], "Capacity exceeds venue limit (5).")

        # previewing an unsaved edit does not touch the stored layout
        draft = self.client.post(f"/layouts/{layout_id}/preview", json={"configuration": _theater_config(1, 1)}).json()
        self.assertEqual(draft["summary"]["capacity"], 1)
        self.assertIsNone(draft["capacity_warning"])

        r = self.client.post(f"/layouts/{layout_id}/sync")
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["created"], 6)
        self.assertEqual(sorted(self._seats(layout_id)), ["A1", "A2", "A3", "B1", "B2", "B3"])

        again = self.client.post(f"/layouts/{layout_id}/sync").json()
        self.assertEqual((again["created"], again["unchanged"]), (0, 6))

    def test_configuration_change_updates_in_place(self):
        layout_id = self._create(_theater_config(1, 2))["id"]
        self.client.post(f"/layouts/{layout_id}/sync")
        before = self._seats(layout_id)

        r = self.client.put(f"/layouts/{layout_id}/configuration", json={"configuration": _theater_config(1, 3, "Stalls")})
        self.assertEqual(r.json()["total_capacity"], 3)
        result = self.client.post(f"/layouts/{layout_id}/sync").json()
        self.assertEqual((result["deleted"], result["updated"], result["created"]), (0, 2, 1))

        after = self._seats(layout_id)
        self.assertEqual(after["A1"]["id"], before["A1"]["id"])
        self.assertEqual(after["A1"]["type"], "Stalls")

    def test_hold_blocks_delete(self):
        layout_id = self._create(_theater_config(1, 2))["id"]
        self.client.post(f"/layouts/{layout_id}/sync")
        seat_id = self._seats(layout_id)["A2"]["id"]
        hold = self.client.post(f"/layouts/{layout_id}/seats/{seat_id}/holds", json={"reference": "cart-1"}).json()
        self.assertEqual([h["seat"] for h in self.client.get(f"/layouts/{layout_id}/holds").json()], ["A2"])

        self.client.put(f"/layouts/{layout_id}/configuration", json={"configuration": _theater_config(1, 1)})
        r = self.client.post(f"/layouts/{layout_id}/sync")
        self.assertEqual(r.status_code, 409)
        detail = r.json()["detail"]
        self.assertEqual(detail["code"], "SEAT_DELETE_FAILED")
        self.assertEqual(detail["details"], ["A2: seat A2 is referenced by 1 active hold(s)"])
        self.assertTrue(detail["hint"])
        self.assertIn("A2", self._seats(layout_id))

        self.assertEqual(self.client.request("DELETE", f"/holds/{hold['id']}").status_code, 200)
        r = self.client.post(f"/layouts/{layout_id}/sync")
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["deleted"], 1)
        self.assertEqual(list(self._seats(layout_id)), ["A1"])

    def test_duplicate_seat_keys_rejected(self):
        config = TheaterLayout.create(2, 2)
        config.update_row(config.rows[1].id, label="A")
        layout = self._create(config.model_dump(mode="json"), name="Twins")
        layout_id = layout["id"]

        preview = self.client.post(f"/layouts/{layout_id}/preview", json={}).json()
        self.assertEqual(preview["duplicate_keys"], ["A-1", "A-2"])

        r = self.client.post(f"/layouts/{layout_id}/sync")
        self.assertEqual(r.status_code, 422)
        detail = r.json()["detail"]
        self.assertEqual(detail["code"], "SEAT_KEYS_DUPLICATED")
        self.assertEqual(detail["details"], ["A-1", "A-2"])
        self.assertEqual(self._seats(layout_id), {})

    def test_banquet_sync(self):
        banquet = BanquetLayout()
        banquet.add_table(chair_count=4)
        layout_id = self._create(banquet.model_dump(mode="json"), name="Gala")["id"]
        result = self.client.post(f"/layouts/{layout_id}/sync").json()
        self.assertEqual(result["created"], 4)
        self.assertEqual(result["capacity"], 4)
        self.assertEqual(sorted(s["label"] for s in self._seats(layout_id).values()), ["T1-1", "T1-2", "T1-3", "T1-4"])

    def test_manual_seat_crud(self):
        layout_id = self._create({}, name="Manual")["id"]
        self.assertEqual(self.client.post(f"/layouts/{layout_id}/seats", json={"row": "  ", "number": 1}).status_code, 422)

        seat = self.client.post(f"/layouts/{layout_id}/seats", json={"row": " Z ", "number": 1}).json()
        self.assertEqual(seat["row"], "Z")
        updated = self.client.put(
            f"/layouts/{layout_id}/seats/{seat['id']}", json={"row": "Z", "number": 2, "label": "Z2"}
        ).json()
        self.assertEqual((updated["number"], updated["label"]), (2, "Z2"))

        self.assertEqual(self.client.request("DELETE", f"/layouts/{layout_id}/seats/{seat['id']}").status_code, 200)
        self.assertEqual(self.client.request("DELETE", f"/layouts/{layout_id}/seats/{seat['id']}").status_code, 404)


if __name__ == "__main__":
    unittest.main()
