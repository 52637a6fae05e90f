from datetime import datetime

from models import Meeting, Project, Task, INACTIVE
from tests.helpers import ApiTestCase


class TaskApiTestCase(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.project = self.make_project(self.user)

    def test_fast_create_assigns_caller(self):
        response = self.client.post(
            "/task/fast-create",
            json={"projectId": self.project.id, "title": "x"},
            headers=self.auth(self.user),
        )
        self.assertEqual(response.status_code, 201)
        task = response.json()["task"]
        self.assertEqual(task["assignedTo"], self.user.id)
        self.assertEqual(task["priority"], "mid")
        self.assertEqual(task["taskStatus"], "pending")

    def test_mutations_need_a_token(self):
        response = self.client.post("/task/fast-create", json={"projectId": self.project.id, "title": "x"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"success": False, "error": "Authentication required"})
        self.assertEqual(self.client.post("/task/create", json={"title": "x"}).status_code, 401)

    def test_create_defaults_assignee_to_caller(self):
        response = self.client.post("/task/create", json={"title": "Mine"}, headers=self.auth(self.user))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["task"]["assignedTo"], self.user.id)

    def test_list_envelope_and_links(self):
        for i in range(3):
            self.make_task(f"t{i}", assigned_to=self.user.id)

        response = self.client.get("/task?per_page=2", headers=self.auth(self.user))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(len(body["data"]), 2)
        self.assertEqual((body["total"], body["page"], body["lastPage"]), (3, 1, 2))
        self.assertEqual((body["from"], body["to"]), (1, 2))

        labels = [link["label"] for link in body["links"]]
        self.assertEqual(labels, ["Previous", "1", "2", "Next"])
        self.assertIsNone(body["links"][0]["url"])
        self.assertTrue(body["links"][1]["active"])
        self.assertIn("page=2", body["links"][-1]["url"])
        self.assertIn("per_page=2", body["links"][-1]["url"])

    def test_list_defaults_to_callers_tasks(self):
        other = self.make_user(name="Bob")
        self.make_task("mine", assigned_to=self.user.id)
        self.make_task("theirs", assigned_to=other.id)

        mine = self.client.get("/task", headers=self.auth(self.user)).json()["data"]
        self.assertEqual([t["title"] for t in mine], ["mine"])
        everyone = self.client.get("/task").json()["data"]
        self.assertEqual(len(everyone), 2)

    def test_bad_query_is_400(self):
        response = self.client.get("/task?project_id=abc")
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_update_and_soft_delete(self):
        task = self.make_task("draft", assigned_to=self.user.id)
        response = self.client.post(
            f"/task/{task.id}/update",
            json={"title": "final", "executionDate": "2024-01-01T09:00:00",
                  "completionDate": "2024-01-01T09:30:00"},
            headers=self.auth(self.user),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["task"]["totalDuration"], 30)

        response = self.client.post(f"/task/{task.id}/delete", headers=self.auth(self.user))
        self.assertEqual(response.json(), {"success": True, "message": "Task deleted successfully"})
        self.assertEqual(self.reload(Task, task.id).status, INACTIVE)
        self.assertEqual(self.client.get("/task").json()["total"], 0)

    def test_other_users_task_is_forbidden(self):
        other = self.make_user(name="Bob")
        task = self.make_task("theirs", assigned_to=other.id)
        response = self.client.post(f"/task/{task.id}/update", json={"title": "mine now"},
                                    headers=self.auth(self.user))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.reload(Task, task.id).title, "theirs")

    def test_single_task_and_subtasks(self):
        parent = self.make_task("parent", project_id=self.project.id)
        self.make_task("child", parent_task_id=parent.id)

        body = self.client.get(f"/task/{parent.id}").json()
        self.assertEqual(body["task"]["projectName"], self.project.title)
        subtasks = self.client.get(f"/task/{parent.id}/subtasks").json()["subtasks"]
        self.assertEqual([t["title"] for t in subtasks], ["child"])
        self.assertEqual(self.client.get("/task/999").status_code, 404)

    def test_set_target_date(self):
        task = self.make_task("someday", assigned_to=self.user.id)
        response = self.client.post(
            "/task/set-target-date",
            json={"taskId": task.id, "targetDate": "2024-07-01T10:00:00"},
            headers=self.auth(self.user),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.reload(Task, task.id).target_date, datetime(2024, 7, 1, 10, 0))

    def test_aggregate_endpoints(self):
        self.make_task("done", assigned_to=self.user.id, task_status="completed",
                       completion_date=datetime(2024, 2, 10, 12, 0))
        headers = self.auth(self.user)

        self.assertEqual(self.client.get("/task/stats", headers=headers).json()["stats"]["total"], 1)
        analytics = self.client.get("/task/analytics", headers=headers).json()["analytics"]
        self.assertEqual(len(analytics), 5)
        self.assertIn(2024, self.client.get("/task/calendar-years", headers=headers).json()["years"])
        data = self.client.get("/task/calendar?year=2024&month=2", headers=headers).json()["data"]
        self.assertEqual(data, {"10": 1})
        self.assertEqual(self.client.get("/task/calendar?year=2024&month=0").status_code, 400)

    def test_kanban(self):
        task = self.make_task("card", assigned_to=self.user.id)
        response = self.client.patch(
            "/kanban-update-task",
            json={"taskId": task.id, "taskStatus": "in_progress", "orderedIds": [task.id]},
            headers=self.auth(self.user),
        )
        self.assertEqual(response.status_code, 200)
        columns = self.client.get("/kanban-tasks", headers=self.auth(self.user)).json()["columns"]
        column = next(c for c in columns if c["status"] == "in_progress")
        self.assertEqual([t["id"] for t in column["tasks"]], [task.id])

    def test_validation_error_is_400(self):
        response = self.client.patch("/kanban-update-task", json={"taskStatus": "hold"},
                                     headers=self.auth(self.user))
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])


class ProjectApiTestCase(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.owner = self.make_user(name="Owner")
        self.stranger = self.make_user(name="Stranger")
        self.project = self.make_project(self.owner, title="Roadmap")

    def test_create(self):
        response = self.client.post("/project/create", json={"title": "New"}, headers=self.auth(self.stranger))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["project"]["creator"], self.stranger.id)

    def test_list_scoped_to_caller(self):
        self.make_project(self.stranger, title="Theirs")
        projects = self.client.get("/project", headers=self.auth(self.owner)).json()["projects"]
        self.assertEqual([p["title"] for p in projects], ["Roadmap"])
        self.assertEqual(len(self.client.get("/project").json()["projects"]), 2)

    def test_only_creator_may_update_or_delete(self):
        url = f"/project/{self.project.id}"
        response = self.client.post(f"{url}/update", json={"title": "Mine"}, headers=self.auth(self.stranger))
        self.assertEqual(response.status_code, 403)
        response = self.client.post(f"{url}/delete", headers=self.auth(self.stranger))
        self.assertEqual(response.status_code, 403)
        self.assertIsNotNone(self.reload(Project, self.project.id))

        response = self.client.post(f"{url}/update", json={"title": "Renamed"}, headers=self.auth(self.owner))
        self.assertEqual(response.json()["project"]["title"], "Renamed")

    def test_delete_detaches_tasks(self):
        task = self.make_task("orphan", project_id=self.project.id)
        response = self.client.post(f"/project/{self.project.id}/delete", headers=self.auth(self.owner))
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.reload(Project, self.project.id))
        self.assertIsNone(self.reload(Task, task.id).project_id)

    def test_missing_project(self):
        self.assertEqual(self.client.get("/project/999").status_code, 404)
        response = self.client.post("/project/999/update", json={"title": "x"}, headers=self.auth(self.owner))
        self.assertEqual(response.status_code, 404)

    def test_project_tasks(self):
        self.make_task("a", project_id=self.project.id, task_status="hold")
        self.make_task("b", project_id=self.project.id)
        response = self.client.get(f"/project/{self.project.id}/tasks?task_status=hold,failed")
        self.assertEqual([t["title"] for t in response.json()["tasks"]], ["a"])


class MeetingApiTestCase(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.project = self.make_project(self.user)

    def test_create_and_lookup_by_slug(self):
        response = self.client.post(
            "/meeting/create",
            json={"title": "Sprint Review", "projectId": self.project.id},
            headers=self.auth(self.user),
        )
        self.assertEqual(response.status_code, 201)
        slug = response.json()["meeting"]["slug"]
        self.assertEqual(slug, "sprint-review")

        found = self.client.get(f"/meeting/slug/{slug}").json()["meeting"]
        self.assertEqual(found["projectId"], self.project.id)
        self.assertEqual(self.client.get("/meeting/slug/nope").status_code, 404)

    def test_duplicate_title_gets_a_distinct_slug(self):
        headers = self.auth(self.user)
        payload = {"title": "Standup", "projectId": self.project.id}
        first = self.client.post("/meeting/create", json=payload, headers=headers).json()["meeting"]
        second = self.client.post("/meeting/create", json=payload, headers=headers).json()["meeting"]
        self.assertNotEqual(first["slug"], second["slug"])
        self.assertTrue(second["slug"].startswith("standup-"))

    def test_explicit_slug_conflict(self):
        self.make_meeting(self.project, self.user, slug="kickoff")
        response = self.client.post(
            "/meeting/create",
            json={"title": "Kickoff", "slug": "kickoff", "projectId": self.project.id},
            headers=self.auth(self.user),
        )
        self.assertEqual(response.status_code, 409)

    def test_only_creator_may_delete(self):
        meeting = self.make_meeting(self.project, self.user)
        stranger = self.make_user(name="Eve")
        response = self.client.post(f"/meeting/{meeting.id}/delete", headers=self.auth(stranger))
        self.assertEqual(response.status_code, 403)
        response = self.client.post(f"/meeting/{meeting.id}/delete", headers=self.auth(self.user))
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.reload(Meeting, meeting.id))

    def test_list_by_project(self):
        self.make_meeting(self.project, self.user, title="One")
        meetings = self.client.get(f"/meeting?project_id={self.project.id}").json()["meetings"]
        self.assertEqual([m["title"] for m in meetings], ["One"])
        self.assertEqual(self.client.get("/meeting?project_id=x").status_code, 400)


class UserApiTestCase(ApiTestCase):

    def test_register_and_duplicate_email(self):
        payload = {"name": "Carol", "email": "carol@example.com", "password": "pw123456"}
        response = self.client.post("/user/create", json=payload)
        self.assertEqual(response.status_code, 201)
        self.assertNotIn("password", response.json()["user"])
        self.assertEqual(self.client.post("/user/create", json=payload).status_code, 409)

    def test_update_own_account_only(self):
        me = self.make_user(name="Me")
        other = self.make_user(name="Other")
        response = self.client.post(f"/user/{other.id}/update", json={"name": "Hacked"}, headers=self.auth(me))
        self.assertEqual(response.status_code, 403)
        response = self.client.post(f"/user/{me.id}/update", json={"name": "Renamed"}, headers=self.auth(me))
        self.assertEqual(response.json()["user"]["name"], "Renamed")


class AppTestCase(ApiTestCase):

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"success": True, "status": "ok"})

    def test_unknown_route_uses_envelope(self):
        response = self.client.get("/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "error": "Not Found"})
