import os
import sys
import datetime
import unittest
from fastapi.testclient import TestClient

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from models import Session
from rest_api import LiftLogAPI


PLAN = {
    "name": "Full Body",
    "days_per_week": 3,
    "days": [
        {
            "name": "Day A",
            "exercises": [
                {"name": "Back Squat", "sets": 2, "reps": "5"},
                {"name": "Bench Press", "sets": 1, "reps": "5"},
            ],
        },
        {"name": "Day B", "exercises": [{"name": "Deadlift", "sets": 1, "reps": "5"}]},
    ],
}


class APITestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_api.db"
        self.yaml_path = "test_api.yaml"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        if os.path.exists(self.yaml_path):
            os.remove(self.yaml_path)
        self.api = LiftLogAPI(db_path=self.db_path, yaml_path=self.yaml_path)
        self.client = TestClient(self.api.app)

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        if os.path.exists(self.yaml_path):
            os.remove(self.yaml_path)

    def _exercise_id(self, name: str) -> str:
        response = self.client.get("/exercises", params={"query": name})
        return next(e["id"] for e in response.json() if e["name"] == name)

    def test_exercise_library(self) -> None:
        response = self.client.get("/exercises")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), self.api.exercises.count())
        self.assertGreater(len(response.json()), 0)

        response = self.client.get("/exercises", params={"modality": "climb"})
        self.assertTrue(all(e["modality"] == "climb" for e in response.json()))

        response = self.client.post(
            "/exercises",
            params={
                "name": "Hangboard",
                "modality": "climb",
                "muscle_groups": "Forearms, Fingers",
            },
        )
        self.assertEqual(response.status_code, 200)
        ex_id = response.json()["id"]
        detail = self.client.get(f"/exercises/{ex_id}").json()
        self.assertTrue(detail["is_custom"])
        self.assertEqual(detail["muscle_groups"], ["forearms", "fingers"])
        self.assertEqual(detail["modality_name"], "Climb")

        response = self.client.post("/exercises", params={"name": "  "})
        self.assertEqual(response.status_code, 400)

        self.assertEqual(self.client.delete(f"/exercises/{ex_id}").status_code, 200)
        self.assertEqual(self.client.get(f"/exercises/{ex_id}").status_code, 404)
        self.assertEqual(self.client.delete(f"/exercises/{ex_id}").status_code, 404)

    def test_planned_workout_flow(self) -> None:
        response = self.client.post("/plans", json=PLAN)
        self.assertEqual(response.status_code, 200)
        plan_id = response.json()["id"]

        active = self.client.get("/plans/active").json()
        self.assertEqual(active["id"], plan_id)
        self.assertEqual(active["days"][0]["exercises"][0]["prescription"], "2 × 5")
        self.assertEqual(self.client.get("/plans/next_day").json()["name"], "Day A")

        response = self.client.post("/session/start", params={"next_day": True})
        self.assertEqual(response.status_code, 200)
        state = response.json()
        self.assertEqual(state["mode"], "planned")
        self.assertEqual(state["exercise"], "Back Squat")
        self.assertEqual(state["set_number"], 1)
        self.assertEqual(state["target_sets"], 2)

        response = self.client.post("/session/start")
        self.assertEqual(response.status_code, 409)

        self.client.post("/session/rpe", params={"value": 8})
        response = self.client.post("/session/sets")
        self.assertIsNotNone(response.json()["set_id"])
        self.assertEqual(response.json()["session"]["set_number"], 2)
        self.client.post("/session/sets")
        state = self.client.get("/session").json()
        self.assertEqual(state["exercise"], "Bench Press")
        self.assertIsNone(state["rpe"])
        self.client.post("/session/sets", params={"weight": 185, "reps": 3})
        state = self.client.get("/session").json()
        self.assertEqual(state["state"], "plan_exhausted")

        response = self.client.post("/session/sets")
        self.assertIsNone(response.json()["set_id"])

        response = self.client.post("/session/finish")
        self.assertEqual(response.status_code, 200)
        finished = response.json()
        self.assertEqual(finished["sets"], 3)
        self.assertEqual(finished["exercise_count"], 2)
        self.assertEqual(finished["total_volume"], 135.0 * 5 * 2 + 185.0 * 3)
        self.assertEqual(self.client.get("/session").status_code, 404)

        self.assertEqual(self.client.get("/plans/next_day").json()["name"], "Day A")
        self.assertEqual(self.client.get("/sessions").json(), [])

        session_id = finished["id"]
        response = self.client.post(
            f"/sessions/{session_id}/complete",
            params={"rpe": 3, "pain_tags": ["Knees", "Lower Back"], "notes": ""},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/plans/next_day").json()["name"], "Day B")

        sessions = self.client.get("/sessions").json()
        self.assertEqual(len(sessions), 1)
        self.assertEqual(sessions[0]["plan_day"], "Day A")
        detail = self.client.get(f"/sessions/{session_id}").json()
        self.assertEqual(detail["pain_tags"], ["Knees", "Lower Back"])
        self.assertIsNone(detail["notes"])
        self.assertEqual(
            [g["exercise"] for g in detail["exercises"]], ["Back Squat", "Bench Press"]
        )
        self.assertAlmostEqual(detail["exercises"][1]["best_estimate"], 185.0 * 1.1)

        response = self.client.post(f"/sessions/{session_id}/complete", params={"rpe": 9})
        self.assertEqual(response.status_code, 400)
        response = self.client.post("/sessions/missing/complete", params={"rpe": 3})
        self.assertEqual(response.status_code, 404)

        today = datetime.date.today().isoformat()
        volume = self.client.get("/stats/weekly_volume", params={"today": today}).json()
        self.assertEqual(len(volume), 4)
        self.assertEqual(volume[-1]["volume"], finished["total_volume"])
        consistency = self.client.get("/stats/consistency", params={"today": today}).json()
        self.assertEqual(consistency["days_trained"], 1)

        squat_id = self._exercise_id("Back Squat")
        best = self.client.get(f"/stats/exercises/{squat_id}/best").json()
        self.assertAlmostEqual(best["best_estimate"], 135.0 * (1 + 5 / 30))
        history = self.client.get(f"/stats/exercises/{squat_id}/history").json()
        self.assertEqual(len(history), 2)
        self.assertEqual(self.client.get("/stats/exercises/missing/best").status_code, 404)

        self.assertEqual(self.client.delete(f"/sessions/{session_id}").status_code, 200)
        self.assertEqual(self.client.get(f"/sessions/{session_id}").status_code, 404)

    def test_quick_session(self) -> None:
        self.assertEqual(self.client.get("/session").status_code, 404)
        state = self.client.post("/session/start").json()
        self.assertEqual(state["mode"], "quick")
        self.assertEqual(state["state"], "awaiting_exercise")

        response = self.client.post("/session/sets")
        self.assertIsNone(response.json()["set_id"])
        self.assertEqual(self.client.post("/session/finish").status_code, 400)

        bench_id = self._exercise_id("Bench Press")
        state = self.client.post("/session/exercises", params={"exercise_id": bench_id}).json()
        self.assertEqual(state["exercise"], "Bench Press")
        self.client.post("/session/weight/up")
        self.client.post("/session/reps/down")
        state = self.client.get("/session").json()
        self.assertEqual(state["weight"], 140.0)
        self.assertEqual(state["reps"], 4)
        self.assertEqual(self.client.post("/session/weight/sideways").status_code, 400)

        response = self.client.post("/session/sets", params={"reps": 0})
        self.assertEqual(response.status_code, 400)
        self.client.post("/session/sets")
        self.assertEqual(self.client.get("/session").json()["set_number"], 2)

        response = self.client.post("/session/exercises", params={"exercise_id": "missing"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.client.post("/session/finish").status_code, 200)

        sessions = self.client.get("/sessions", params={"completed_only": False}).json()
        self.assertEqual(len(sessions), 1)
        self.assertIsNone(sessions[0]["plan_day"])
        self.assertEqual(sessions[0]["total_volume"], 560.0)

    def test_discard_session(self) -> None:
        self.client.post("/plans", json=PLAN)
        self.client.post("/session/start", params={"next_day": True})
        self.client.post("/session/sets")
        self.assertEqual(self.client.delete("/session").status_code, 200)
        self.assertEqual(self.api.sessions.count(), 0)
        self.assertEqual(self.api.sets.count(), 0)
        self.assertEqual(self.client.delete("/session").status_code, 404)
        self.assertEqual(self.client.post("/session/start").status_code, 200)

    def test_plan_management(self) -> None:
        first = self.client.post("/plans", json=PLAN).json()["id"]
        second = self.client.post(
            "/plans", json={"name": "Minimal", "days": [{"exercises": []}]}
        ).json()["id"]
        self.assertEqual(self.client.get("/plans/active").json()["id"], second)
        self.assertEqual(self.client.get("/plans/next_day").json()["name"], "Day 1")

        self.assertEqual(self.client.post(f"/plans/{first}/activate").status_code, 200)
        self.assertEqual(self.client.get("/plans/active").json()["id"], first)
        plans = self.client.get("/plans").json()
        self.assertEqual(sum(p["is_active"] for p in plans), 1)

        day_id = self.client.get("/plans/next_day").json()["id"]
        response = self.client.put(f"/plan_days/{day_id}/name", params={"name": "Heavy"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/plans/next_day").json()["name"], "Heavy")

        response = self.client.post("/plans", json={"name": "Empty", "days": []})
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            "/plans", json={"name": "Bad", "days_per_week": 9, "days": [{}]}
        )
        self.assertEqual(response.status_code, 400)

        self.assertEqual(self.client.delete(f"/plans/{first}").status_code, 200)
        self.assertIsNone(self.client.get("/plans/active").json())
        self.assertIsNone(self.client.get("/plans/next_day").json())
        self.assertEqual(self.client.delete(f"/plans/{first}").status_code, 404)

        response = self.client.post("/session/start", params={"plan_day_id": "missing"})
        self.assertEqual(response.status_code, 404)

    def test_settings(self) -> None:
        settings = self.client.get("/settings").json()
        self.assertEqual(settings["weight_unit"], "lbs")
        response = self.client.put("/settings/weight_unit", params={"value": "kg"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/settings").json()["weight_unit"], "kg")
        response = self.client.put("/settings/weight_unit", params={"value": "stone"})
        self.assertEqual(response.status_code, 400)
        response = self.client.put("/settings/colour", params={"value": "red"})
        self.assertEqual(response.status_code, 404)

        state = self.client.post("/session/start").json()
        self.assertEqual(state["weight_unit"], "kg")

    def test_complete_requires_finished_session(self) -> None:
        session_id = self.client.post("/session/start").json()["session_id"]
        bench_id = self._exercise_id("Bench Press")
        self.client.post("/session/exercises", params={"exercise_id": bench_id})
        self.client.post("/session/sets")

        response = self.client.post(f"/sessions/{session_id}/complete", params={"rpe": 3})
        self.assertEqual(response.status_code, 409)
        self.assertIsNone(self.api.sessions.fetch_detail(session_id).completed_at)

        self.assertEqual(self.client.post("/session/finish").status_code, 200)
        response = self.client.post(
            f"/sessions/{session_id}/complete",
            params={"rpe": 3, "pain_tags": ["Left knee | sharp", "Wrists"]},
        )
        self.assertEqual(response.status_code, 200)
        stored = self.api.sessions.fetch_detail(session_id)
        self.assertIsNotNone(stored.completed_at)
        self.assertIsNotNone(stored.duration)
        self.assertEqual(stored.session_rpe, 3)
        self.assertEqual(stored.pain_tags, ["Left knee | sharp", "Wrists"])

        unfinished = Session()
        self.api.sessions.add(unfinished)
        response = self.client.post(f"/sessions/{unfinished.id}/complete", params={"rpe": 3})
        self.assertEqual(response.status_code, 409)
        response = self.client.post("/sessions/missing/complete", params={"rpe": 3})
        self.assertEqual(response.status_code, 404)

    def test_stats_reject_malformed_date(self) -> None:
        response = self.client.get("/stats/weekly_volume", params={"today": "bad"})
        self.assertEqual(response.status_code, 400)
        response = self.client.get("/stats/consistency", params={"today": "2026-13-40"})
        self.assertEqual(response.status_code, 400)

    def test_pain_tags(self) -> None:
        tags = self.client.get("/sessions/pain_tags").json()
        self.assertIn("Shoulders", tags)


if __name__ == "__main__":
    unittest.main()
