"""
End-to-end tests through the HTTP API.
"""

import time
import uuid

from auth.jwt import TokenService
from conftest import TEST_SECRET, bearer, login, register, signup


class TestRoot:
    def test_greeting(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.text == "Hello, World!"
        assert "X-Process-Time" in resp.headers


class TestRegisterAndLogin:
    def test_register_returns_public_user(self, client):
        resp = register(client)
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "User: Ann registered successfully"
        user = body["data"]
        assert set(user) == {"id", "name", "email", "created_at", "updated_at"}
        assert "Secret123" not in resp.text
        assert "password" not in resp.text

    def test_duplicate_email_conflicts(self, client):
        assert register(client).status_code == 200
        resp = register(client, name="Ann Again")
        assert resp.status_code == 409
        assert resp.json() == {
            "error": "Conflict",
            "message": "User with this email already exists",
        }

    def test_validation_error_envelope(self, client):
        resp = register(client, email="nope")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Validation Error", "message": "Invalid email format"}

        resp = register(client, password="short")
        assert resp.status_code == 400
        assert "8 characters" in resp.json()["message"]

    def test_missing_field_uses_error_envelope(self, client):
        resp = client.post("/auth/register", json={"name": "Ann"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Validation Error"
        assert "email" in body["message"]

    def test_login_returns_token_and_user(self, client):
        register(client)
        resp = client.post("/auth/login", json={"email": "ann@x.com", "password": "Secret123"})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["user"]["email"] == "ann@x.com"
        claims = TokenService(TEST_SECRET).verify_token(data["token"])
        assert claims.sub == data["user"]["id"]
        assert claims.exp - claims.iat == 86400

    def test_login_failures_are_indistinguishable(self, client):
        register(client)
        wrong_password = client.post(
            "/auth/login", json={"email": "ann@x.com", "password": "Wrong1234"}
        )
        unknown_email = client.post(
            "/auth/login", json={"email": "ghost@x.com", "password": "Secret123"}
        )
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {
            "error": "Unauthorized",
            "message": "Invalid email or password",
        }

    def test_oversized_password_login_looks_like_any_failure(self, client):
        register(client)
        too_long = "x" * 80
        known = client.post("/auth/login", json={"email": "ann@x.com", "password": too_long})
        unknown = client.post("/auth/login", json={"email": "ghost@x.com", "password": too_long})
        assert known.status_code == unknown.status_code == 401
        assert known.json() == unknown.json() == {
            "error": "Unauthorized",
            "message": "Invalid email or password",
        }

    def test_register_ignores_bad_token(self, client):
        resp = client.post(
            "/auth/register",
            json={"name": "Ann", "email": "ann@x.com", "password": "Secret123"},
            headers=bearer("garbage"),
        )
        assert resp.status_code == 200


class TestProfile:
    def test_requires_token(self, client):
        resp = client.get("/auth/profile")
        assert resp.status_code == 401
        assert resp.json() == {
            "error": "Unauthorized",
            "message": "No authorization header found",
        }

    def test_rejects_invalid_token(self, client):
        resp = client.get("/auth/profile", headers=bearer("not.valid"))
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid token"

    def test_rejects_expired_token(self, client):
        token = signup(client)
        user_id = TokenService(TEST_SECRET).verify_token(token).sub
        stale = TokenService(TEST_SECRET).create_token(user_id, now=int(time.time()) - 90000)
        assert client.get("/auth/profile", headers=bearer(stale)).status_code == 401

    def test_bearer_scheme_is_case_insensitive(self, client):
        token = signup(client)
        resp = client.get("/auth/profile", headers={"Authorization": f"bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == "ann@x.com"

    def test_get_profile(self, client):
        token = signup(client)
        resp = client.get("/auth/profile", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Ann"

    def test_profile_of_vanished_user(self, client):
        token = TokenService(TEST_SECRET).create_token(str(uuid.uuid4()))
        resp = client.get("/auth/profile", headers=bearer(token))
        assert resp.status_code == 404
        assert resp.json()["message"] == "User not found"

    def test_partial_update_name_only(self, client):
        token = signup(client)
        before = client.get("/auth/profile", headers=bearer(token)).json()["data"]

        time.sleep(0.01)
        resp = client.put("/auth/profile", json={"name": "Annie"}, headers=bearer(token))
        assert resp.status_code == 200
        after = resp.json()["data"]
        assert after["name"] == "Annie"
        assert after["email"] == before["email"]
        assert after["updated_at"] != before["updated_at"]

        # password untouched
        assert login(client)

    def test_update_password_is_hashed(self, client):
        token = signup(client)
        resp = client.put(
            "/auth/profile", json={"password": "NewSecret456"}, headers=bearer(token)
        )
        assert resp.status_code == 200
        assert "NewSecret456" not in resp.text
        assert login(client, password="NewSecret456")
        old = client.post("/auth/login", json={"email": "ann@x.com", "password": "Secret123"})
        assert old.status_code == 401

    def test_update_to_taken_email_conflicts(self, client):
        signup(client, name="Bob", email="bob@x.com")
        token = signup(client)
        resp = client.put("/auth/profile", json={"email": "bob@x.com"}, headers=bearer(token))
        assert resp.status_code == 409

    def test_update_rejects_bad_email(self, client):
        token = signup(client)
        resp = client.put("/auth/profile", json={"email": "bad"}, headers=bearer(token))
        assert resp.status_code == 400


class TestPosts:
    def _create(self, client, token, title="Hi", content="World"):
        return client.post(
            "/posts", json={"title": title, "content": content}, headers=bearer(token)
        )

    def test_end_to_end_ownership(self, client):
        ann = signup(client)
        bob = signup(client, name="Bob", email="bob@x.com")

        created = self._create(client, ann)
        assert created.status_code == 200
        post = created.json()["data"]
        assert created.json()["message"] == "Post 'Hi' created successfully"
        assert post["author"]["name"] == "Ann"
        assert "password" not in created.text

        foreign = client.put(f"/posts/{post['id']}", json={"title": "Hacked"}, headers=bearer(bob))
        assert foreign.status_code == 404
        assert foreign.json()["error"] == "Not Found"

        anonymous = client.put(f"/posts/{post['id']}", json={"title": "Hacked"})
        assert anonymous.status_code == 401
        assert anonymous.json()["error"] == "Unauthorized"

        still = client.get(f"/posts/{post['id']}").json()["data"]
        assert still["title"] == "Hi"

    def test_foreign_and_missing_posts_look_the_same(self, client):
        ann = signup(client)
        bob = signup(client, name="Bob", email="bob@x.com")
        post_id = self._create(client, ann).json()["data"]["id"]
        missing_id = str(uuid.uuid4())

        foreign = client.put(f"/posts/{post_id}", json={"title": "x"}, headers=bearer(bob))
        missing = client.put(f"/posts/{missing_id}", json={"title": "x"}, headers=bearer(bob))
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json()

        foreign = client.delete(f"/posts/{post_id}", headers=bearer(bob))
        missing = client.delete(f"/posts/{missing_id}", headers=bearer(bob))
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json()

        assert client.get(f"/posts/{post_id}").status_code == 200

    def test_owner_updates_and_deletes(self, client):
        ann = signup(client)
        post_id = self._create(client, ann).json()["data"]["id"]

        resp = client.put(f"/posts/{post_id}", json={"content": "Everyone"}, headers=bearer(ann))
        assert resp.status_code == 200
        assert resp.json()["data"]["title"] == "Hi"
        assert resp.json()["data"]["content"] == "Everyone"

        resp = client.delete(f"/posts/{post_id}", headers=bearer(ann))
        assert resp.status_code == 200
        assert resp.json() == {"message": "Post deleted successfully", "data": None}

        resp = client.get(f"/posts/{post_id}")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found", "message": "Post not found"}

    def test_create_for_vanished_user(self, client):
        token = TokenService(TEST_SECRET).create_token(str(uuid.uuid4()))
        resp = client.post(
            "/posts", json={"title": "Hi", "content": "World"}, headers=bearer(token)
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found", "message": "User not found"}
        assert client.get("/posts").json()["data"] == []

    def test_create_requires_token(self, client):
        resp = client.post("/posts", json={"title": "Hi", "content": "World"})
        assert resp.status_code == 401

    def test_blank_title_or_content_rejected(self, client):
        ann = signup(client)
        assert self._create(client, ann, title="   ").status_code == 400
        assert self._create(client, ann, content="").status_code == 400

        post_id = self._create(client, ann).json()["data"]["id"]
        resp = client.put(f"/posts/{post_id}", json={"title": " "}, headers=bearer(ann))
        assert resp.status_code == 400

    def test_owner_comes_from_token_not_payload(self, client):
        ann = signup(client)
        bob_user = register(client, name="Bob", email="bob@x.com").json()["data"]
        resp = client.post(
            "/posts",
            json={"title": "Hi", "content": "World", "author_id": bob_user["id"]},
            headers=bearer(ann),
        )
        assert resp.json()["data"]["author"]["name"] == "Ann"

    def test_all_posts_newest_first(self, client):
        ann = signup(client)
        bob = signup(client, name="Bob", email="bob@x.com")
        p1 = self._create(client, ann, title="P1").json()["data"]["id"]
        time.sleep(0.01)
        p2 = self._create(client, bob, title="P2").json()["data"]["id"]

        resp = client.get("/posts")
        assert resp.status_code == 200
        assert resp.json()["message"] == "Retrieved 2 posts"
        posts = resp.json()["data"]
        assert [p["id"] for p in posts] == [p2, p1]
        assert [p["author"]["name"] for p in posts] == ["Bob", "Ann"]

    def test_my_posts(self, client):
        ann = signup(client)
        bob = signup(client, name="Bob", email="bob@x.com")
        a1 = self._create(client, ann, title="A1").json()["data"]["id"]
        self._create(client, bob, title="B1")
        time.sleep(0.01)
        a2 = self._create(client, ann, title="A2").json()["data"]["id"]

        resp = client.get("/posts/my", headers=bearer(ann))
        assert resp.status_code == 200
        posts = resp.json()["data"]
        assert [p["id"] for p in posts] == [a2, a1]
        assert "author" not in posts[0]
        assert client.get("/posts/my").status_code == 401

    def test_invalid_post_id(self, client):
        resp = client.get("/posts/not-a-uuid")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Validation Error"


class TestUsers:
    def test_public_listing(self, client):
        signup(client)
        time.sleep(0.01)
        signup(client, name="Bob", email="bob@x.com")

        resp = client.get("/users")
        assert resp.status_code == 200
        users = resp.json()["data"]
        assert [u["name"] for u in users] == ["Bob", "Ann"]
        assert all("password_hash" not in u for u in users)
