import unittest

from app import app, db
from models.project import Project
from models.stage import Stage
from models.task import Task
from tests.utils.db import drop_schema, reset_schema


class ProjectApiTestCase(unittest.TestCase):
    def setUp(self):
        app.config["TESTING"] = True
        reset_schema(app, db)
        self.client = app.test_client()

    def tearDown(self):
        drop_schema(app, db)

    def _create_project(self, **overrides):
        payload = {
            "name": "Platform migration",
            "description": "Move services to the new cluster",
            "start_date": "2024-01-01",
            "end_date": "2024-01-11",
            "planned_weeks": 2,
            "stages": [
                {"name": "Discovery", "percentage": 20, "color": "#4361ee"},
                {"name": "Build", "percentage": 50, "color": "#06d6a0"},
                {"name": "Rollout", "percentage": 30, "color": "#ff006e"},
            ],
        }
        payload.update(overrides)
        response = self.client.post("/api/projects", json=payload)
        self.assertEqual(response.status_code, 201, response.get_json())
        return response.get_json()["id"]

    def test_create_and_read_back_preserves_stage_order(self):
        project_id = self._create_project()

        response = self.client.get(f"/api/projects/{project_id}")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual([s["name"] for s in data["stages"]], ["Discovery", "Build", "Rollout"])
        self.assertEqual([s["order_index"] for s in data["stages"]], [0, 1, 2])
        self.assertEqual(sum(s["percentage"] for s in data["stages"]), 100)
        self.assertTrue(all(s["progress"] == 0 for s in data["stages"]))
        self.assertEqual(data["start_date"], "2024-01-01")
        self.assertEqual(data["tasks"], [])

        listing = self.client.get("/api/projects").get_json()
        self.assertEqual([p["id"] for p in listing], [project_id])

    def test_planning_project_defaults(self):
        response = self.client.post("/api/projects", json={"name": "Idea", "stages": []})
        self.assertEqual(response.status_code, 201)
        data = self.client.get(f"/api/projects/{response.get_json()['id']}").get_json()
        self.assertIsNone(data["start_date"])
        self.assertIsNone(data["end_date"])
        self.assertEqual(data["planned_weeks"], 10)

        timeline = self.client.get(f"/api/projects/{data['id']}/timeline").get_json()
        self.assertTrue(timeline["planning"])
        self.assertEqual(timeline["stage_ranges"], [])

    def test_stage_percentages_must_total_100(self):
        response = self.client.post(
            "/api/projects",
            json={"name": "Broken", "stages": [{"name": "Only", "percentage": 70}]},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("100%", response.get_json()["error"])
        with app.app_context():
            self.assertEqual(Project.query.count(), 0)

    def test_numeric_names_are_stored_as_text(self):
        response = self.client.post(
            "/api/projects",
            json={"name": 123, "notes": 5, "stages": [{"name": 7, "percentage": 100, "color": 1}]},
        )
        self.assertEqual(response.status_code, 201, response.get_json())
        project_id = response.get_json()["id"]

        data = self.client.get(f"/api/projects/{project_id}").get_json()
        self.assertEqual(data["name"], "123")
        self.assertEqual(data["notes"], "5")
        self.assertEqual(data["stages"][0]["name"], "7")

        renamed = self.client.put(f"/api/projects/{project_id}", json={"name": 4.5})
        self.assertEqual(renamed.status_code, 200)
        self.assertEqual(renamed.get_json()["project"]["name"], "4.5")

    def test_missing_name_is_rejected(self):
        response = self.client.post("/api/projects", json={"stages": []})
        self.assertEqual(response.status_code, 400)
        self.assertIn("name", response.get_json()["errors"])

    def test_end_date_before_start_date_is_rejected(self):
        response = self.client.post(
            "/api/projects",
            json={"name": "Backwards", "start_date": "2024-02-01", "end_date": "2024-01-01"},
        )
        self.assertEqual(response.status_code, 400)

    def test_missing_project_returns_404(self):
        for method in ("get", "put", "delete"):
            response = getattr(self.client, method)("/api/projects/999", json={})
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.get_json(), {"error": "Project not found"})

    def test_stage_replacement_keeps_progress_and_resources_of_matched_stages(self):
        project_id = self._create_project()
        stages = self.client.get(f"/api/projects/{project_id}").get_json()["stages"]
        discovery, build, rollout = stages
        self.client.put(f"/api/stages/{build['id']}", json={"progress": 60, "devops": 2, "engineers": 3})
        self.client.put(f"/api/stages/{rollout['id']}", json={"progress": 10, "devops": 1})

        response = self.client.put(
            f"/api/projects/{project_id}",
            json={
                "description": "Re-planned",
                "stages": [
                    {"id": build["id"], "name": "Build", "percentage": 60},
                    {"id": discovery["id"], "name": "Discovery", "percentage": 10},
                    {"name": "Hardening", "percentage": 30, "progress": 5},
                ],
            },
        )
        self.assertEqual(response.status_code, 200, response.get_json())

        data = self.client.get(f"/api/projects/{project_id}").get_json()
        self.assertEqual(data["name"], "Platform migration")
        self.assertEqual(data["description"], "Re-planned")
        self.assertEqual([s["name"] for s in data["stages"]], ["Build", "Discovery", "Hardening"])
        build_after, discovery_after, hardening = data["stages"]
        self.assertEqual(build_after["id"], build["id"])
        self.assertEqual(
            (build_after["progress"], build_after["devops"], build_after["engineers"]), (60, 2, 3)
        )
        self.assertEqual(build_after["percentage"], 60)
        self.assertEqual(discovery_after["progress"], 0)
        self.assertEqual((hardening["progress"], hardening["devops"], hardening["engineers"]), (5, 0, 0))
        with app.app_context():
            self.assertIsNone(db.session.get(Stage, rollout["id"]))

    def test_update_without_stages_leaves_stages_untouched(self):
        project_id = self._create_project()
        response = self.client.put(f"/api/projects/{project_id}", json={"start_date": None, "end_date": None})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["project"]
        self.assertIsNone(data["start_date"])
        self.assertEqual(len(data["stages"]), 3)

    def test_stage_update_fields_are_independent(self):
        project_id = self._create_project()
        stage_id = self.client.get(f"/api/projects/{project_id}").get_json()["stages"][0]["id"]

        self.client.put(f"/api/stages/{stage_id}", json={"devops": 4})
        response = self.client.put(f"/api/stages/{stage_id}", json={"progress": 75})
        stage = response.get_json()["stage"]
        self.assertEqual((stage["progress"], stage["devops"], stage["engineers"]), (75, 4, 0))

        invalid = self.client.put(f"/api/stages/{stage_id}", json={"progress": 140})
        self.assertEqual(invalid.status_code, 400)
        missing = self.client.put("/api/stages/999", json={"progress": 10})
        self.assertEqual(missing.status_code, 404)

    def test_overall_progress_is_weighted(self):
        project_id = self._create_project()
        discovery, build, _ = self.client.get(f"/api/projects/{project_id}").get_json()["stages"]
        self.client.put(f"/api/stages/{discovery['id']}", json={"progress": 100})
        self.client.put(f"/api/stages/{build['id']}", json={"progress": 50})

        data = self.client.get(f"/api/projects/{project_id}").get_json()
        self.assertAlmostEqual(data["overall_progress"], 45)

    def test_timeline_endpoint(self):
        project_id = self._create_project()
        discovery = self.client.get(f"/api/projects/{project_id}").get_json()["stages"][0]
        self.client.put(f"/api/stages/{discovery['id']}", json={"progress": 100})

        response = self.client.get(f"/api/projects/{project_id}/timeline?today=2024-01-06")
        data = response.get_json()
        self.assertFalse(data["planning"])
        self.assertAlmostEqual(data["timeline"]["expected_progress"], 50)
        self.assertAlmostEqual(data["timeline"]["actual_progress"], 20)
        self.assertEqual(data["timeline"]["status"], "behind")
        self.assertEqual(data["stage_ranges"][0]["end_date"], "2024-01-02")
        self.assertEqual(data["stage_ranges"][-1]["end_date"], "2024-01-11")

        bad = self.client.get(f"/api/projects/{project_id}/timeline?today=yesterday")
        self.assertEqual(bad.status_code, 400)

    def test_delete_cascades_to_stages_and_tasks(self):
        project_id = self._create_project()
        stage_id = self.client.get(f"/api/projects/{project_id}").get_json()["stages"][0]["id"]
        task_id = self.client.post(
            "/api/tasks", json={"project_id": project_id, "stage_id": stage_id, "title": "Inventory"}
        ).get_json()["id"]
        other_id = self._create_project(name="Other")

        response = self.client.delete(f"/api/projects/{project_id}")
        self.assertEqual(response.status_code, 200)

        self.assertEqual(self.client.get(f"/api/projects/{project_id}").status_code, 404)
        self.assertEqual(self.client.put(f"/api/stages/{stage_id}", json={"progress": 1}).status_code, 404)
        self.assertEqual(self.client.put(f"/api/tasks/{task_id}", json={"title": "x"}).status_code, 404)
        self.assertEqual([p["id"] for p in self.client.get("/api/projects").get_json()], [other_id])
        with app.app_context():
            self.assertEqual(Stage.query.filter_by(project_id=project_id).count(), 0)
            self.assertEqual(Task.query.filter_by(project_id=project_id).count(), 0)


class TaskApiTestCase(unittest.TestCase):
    def setUp(self):
        app.config["TESTING"] = True
        reset_schema(app, db)
        self.client = app.test_client()
        response = self.client.post(
            "/api/projects",
            json={"name": "Tasks", "stages": [{"name": "A", "percentage": 40}, {"name": "B", "percentage": 60}]},
        )
        self.project_id = response.get_json()["id"]
        stages = self.client.get(f"/api/projects/{self.project_id}").get_json()["stages"]
        self.stage_ids = [stage["id"] for stage in stages]

    def tearDown(self):
        drop_schema(app, db)

    def test_task_crud(self):
        response = self.client.post(
            "/api/tasks",
            json={
                "project_id": self.project_id,
                "stage_id": self.stage_ids[0],
                "title": "Write runbook",
                "due_date": "2024-01-05",
            },
        )
        self.assertEqual(response.status_code, 201)
        task = response.get_json()["task"]
        self.assertEqual(task["status"], "todo")
        self.assertEqual(task["due_date"], "2024-01-05")

        response = self.client.put(
            f"/api/tasks/{task['id']}", json={"status": "in_progress", "stage_id": self.stage_ids[1]}
        )
        updated = response.get_json()["task"]
        self.assertEqual(updated["status"], "in_progress")
        self.assertEqual(updated["stage_id"], self.stage_ids[1])
        self.assertEqual(updated["title"], "Write runbook")
        self.assertEqual(updated["due_date"], "2024-01-05")

        project = self.client.get(f"/api/projects/{self.project_id}").get_json()
        self.assertEqual([t["id"] for t in project["tasks"]], [task["id"]])
        self.assertEqual([s["progress"] for s in project["stages"]], [0, 0])

        self.assertEqual(self.client.delete(f"/api/tasks/{task['id']}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/tasks/{task['id']}").status_code, 404)

    def test_numeric_title_is_stored_as_text(self):
        response = self.client.post("/api/tasks", json={"project_id": self.project_id, "title": 42})
        self.assertEqual(response.status_code, 201, response.get_json())
        task_id = response.get_json()["id"]
        self.assertEqual(response.get_json()["task"]["title"], "42")

        updated = self.client.put(f"/api/tasks/{task_id}", json={"title": 7, "description": 3})
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.get_json()["task"]["title"], "7")
        self.assertEqual(updated.get_json()["task"]["description"], "3")

    def test_invalid_task_payloads(self):
        no_title = self.client.post("/api/tasks", json={"project_id": self.project_id})
        self.assertEqual(no_title.status_code, 400)
        bad_status = self.client.post(
            "/api/tasks", json={"project_id": self.project_id, "title": "x", "status": "blocked"}
        )
        self.assertEqual(bad_status.status_code, 400)
        unknown_project = self.client.post("/api/tasks", json={"project_id": 999, "title": "x"})
        self.assertEqual(unknown_project.status_code, 404)
        bad_date = self.client.post(
            "/api/tasks", json={"project_id": self.project_id, "title": "x", "due_date": "soon"}
        )
        self.assertEqual(bad_date.status_code, 400)

    def test_removed_stage_detaches_its_tasks(self):
        task_id = self.client.post(
            "/api/tasks",
            json={"project_id": self.project_id, "stage_id": self.stage_ids[1], "title": "Orphan"},
        ).get_json()["id"]

        self.client.put(
            f"/api/projects/{self.project_id}",
            json={"stages": [{"id": self.stage_ids[0], "name": "A", "percentage": 100}]},
        )

        project = self.client.get(f"/api/projects/{self.project_id}").get_json()
        self.assertEqual(len(project["stages"]), 1)
        self.assertEqual(project["tasks"][0]["id"], task_id)
        self.assertIsNone(project["tasks"][0]["stage_id"])


if __name__ == "__main__":
    unittest.main()
