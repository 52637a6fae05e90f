import unittest
from datetime import datetime

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models import Meeting, Project, Task, User, ACTIVE
from security import create_user_token, get_password_hash


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory database per test, plus row factories."""

    def setUp(self):
        self.engine = create_engine(
            "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.db = self.Session()
        self._emails = 0

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def add(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def make_user(self, name="Alice", email=None, password="secret123"):
        self._emails += 1
        return self.add(User(
            name=name,
            email=email or f"user{self._emails}@example.com",
            password=get_password_hash(password),
        ))

    def make_project(self, creator, title="Website"):
        return self.add(Project(title=title, creator=creator.id))

    def make_meeting(self, project, creator, title="Weekly sync", slug=None):
        return self.add(Meeting(
            title=title,
            slug=slug or f"meeting-{project.id}-{title.lower().replace(' ', '-')}",
            project_id=project.id,
            creator=creator.id,
        ))

    def make_task(self, title="Task", **fields):
        fields.setdefault("priority", "mid")
        fields.setdefault("task_status", "pending")
        fields.setdefault("status", ACTIVE)
        fields.setdefault("submission_date", datetime(2024, 1, 1, 9, 0))
        return self.add(Task(title=title, **fields))


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase with the app's session dependency pointed at the test database."""

    def setUp(self):
        super().setUp()

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        super().tearDown()

    def auth(self, user):
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    def reload(self, model, pk):
        self.db.expire_all()
        return self.db.get(model, pk)
