import unittest
from datetime import timedelta

from jose import jwt

import config
from models import User
from security import (
    create_access_token,
    create_user_token,
    get_password_hash,
    verify_password,
    verify_token,
)
from services.auth import authenticate, get_authenticated_user
from tests.helpers import ApiTestCase, DatabaseTestCase


class PasswordTestCase(unittest.TestCase):

    def test_hash_is_not_plaintext(self):
        hashed = get_password_hash("hunter22")
        self.assertNotEqual(hashed, "hunter22")
        self.assertTrue(verify_password("hunter22", hashed))
        self.assertFalse(verify_password("hunter23", hashed))

    def test_garbage_hash_never_matches(self):
        self.assertFalse(verify_password("hunter22", "hunter22"))
        self.assertFalse(verify_password("hunter22", None))
        self.assertFalse(verify_password("", get_password_hash("x")))


class TokenTestCase(unittest.TestCase):

    def setUp(self):
        self.user = User(id=7, name="Alice", email="alice@example.com")

    def test_round_trip(self):
        payload = verify_token(create_user_token(self.user))
        self.assertEqual(payload["userId"], 7)
        self.assertEqual(payload["email"], "alice@example.com")
        self.assertEqual(payload["name"], "Alice")
        self.assertEqual(payload["exp"] - payload["iat"], config.ACCESS_TOKEN_EXPIRE_MINUTES * 60)

    def test_expired(self):
        token = create_user_token(self.user, expires_delta=timedelta(seconds=-10))
        self.assertIsNone(verify_token(token))

    def test_wrong_signature(self):
        forged = jwt.encode({"userId": 7}, "not-the-secret", algorithm=config.ALGORITHM)
        self.assertIsNone(verify_token(forged))

    def test_tampered_payload(self):
        header, _, signature = create_user_token(self.user).split(".")
        other_payload = create_access_token({"userId": 1}).split(".")[1]
        self.assertIsNone(verify_token(".".join([header, other_payload, signature])))

    def test_user_id_must_be_an_integer(self):
        self.assertIsNone(verify_token(create_access_token({"email": "a@b.c"})))
        self.assertIsNone(verify_token(create_access_token({"userId": "7"})))

    def test_blank_and_garbage(self):
        self.assertIsNone(verify_token(None))
        self.assertIsNone(verify_token(""))
        self.assertIsNone(verify_token("not.a.jwt"))


class AuthenticateTestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.user = self.make_user(email="alice@example.com", password="correct horse")

    def test_success(self):
        result = authenticate(self.db, "alice@example.com", "correct horse")
        self.assertTrue(result.success)
        self.assertEqual(result.data["user"]["email"], "alice@example.com")
        self.assertNotIn("password", result.data["user"])
        self.assertEqual(verify_token(result.data["token"])["userId"], self.user.id)

    def test_wrong_password_and_unknown_email_look_the_same(self):
        wrong = authenticate(self.db, "alice@example.com", "battery staple")
        unknown = authenticate(self.db, "nobody@example.com", "correct horse")
        self.assertEqual((wrong.status_code, wrong.error), (401, "Invalid email or password"))
        self.assertEqual((unknown.status_code, unknown.error), (401, "Invalid email or password"))

    def test_missing_fields(self):
        self.assertEqual(authenticate(self.db, "", "x").status_code, 400)
        self.assertEqual(authenticate(self.db, "alice@example.com", None).status_code, 400)

    def test_profile_for_deleted_user(self):
        token = create_user_token(self.user)
        self.assertTrue(get_authenticated_user(self.db, token).success)
        self.db.delete(self.user)
        self.db.commit()
        self.assertEqual(get_authenticated_user(self.db, token).status_code, 404)


class AuthApiTestCase(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.user = self.make_user(email="alice@example.com", password="correct horse")

    def test_login(self):
        response = self.client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "correct horse"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Login successful")
        self.assertEqual(body["user"]["id"], self.user.id)
        self.assertIn("token", body)

    def test_bad_login(self):
        response = self.client.post("/auth/login", json={"email": "alice@example.com", "password": "nope"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"success": False, "error": "Invalid email or password"})

    def test_profile(self):
        response = self.client.get("/auth/profile", headers=self.auth(self.user))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["email"], "alice@example.com")

    def test_profile_requires_token(self):
        response = self.client.get("/auth/profile")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Authorization token required")

        response = self.client.get("/auth/profile", headers={"Authorization": "Bearer junk"})
        self.assertEqual(response.status_code, 401)
