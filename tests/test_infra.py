import pytest
import redis
from sqlalchemy.exc import InvalidRequestError

import error
from core.db import CreateDBSession
from service import auth
from service.auth import TokenManager
from service.redis import Redis

API = "/api/v1"


class BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("connection refused")

    def delete(self, *keys):
        raise redis.ConnectionError("connection refused")


class TestTokens:
    def test_claims_survive(self):
        token = TokenManager.create_access_token({"user_id": "user-9", "role": "aluno"})
        claims = TokenManager.decode_token(token)
        assert claims["user_id"] == "user-9"
        assert claims["role"] == "aluno"

    def test_expired_token(self):
        token = TokenManager.create_access_token({"user_id": "user-9"}, expires_in_minutes=-1)
        with pytest.raises(error.AuthenticationError):
            TokenManager.decode_token(token)
        assert TokenManager.decode_token(token, check_expiry=False)["user_id"] == "user-9"

    def test_cached_claims_expire_with_token(self, client, fake_redis, monkeypatch):
        token = TokenManager.create_access_token({"user_id": "user-9"}, expires_in_minutes=1)
        headers = {"Authorization": f"Bearer {token}"}
        assert client.get(f"{API}/study-plans", headers=headers).status_code == 200

        (key,) = [k for k in fake_redis.store if k.startswith("token_payload:")]
        assert 0 < fake_redis.expiries[key] <= 60

        expiry = TokenManager.decode_token(token)["exp"]
        monkeypatch.setattr(auth, "_now", lambda: expiry + 5)
        response = client.get(f"{API}/study-plans", headers=headers)
        assert response.status_code == 401
        assert response.json()["message"].startswith("Token expired")

    def test_garbage_token_is_rejected(self, client):
        response = client.get(f"{API}/study-plans", headers={"Authorization": "Bearer abc.def"})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid token"}


class TestCache:
    def test_unreachable_redis_is_a_miss(self):
        cache = Redis()
        cache.redis_client = BrokenRedis()
        assert cache.get_json("user_study_plans:user-1") is None
        cache.set_json("user_study_plans:user-1", [])
        cache.delete("user_study_plans:user-1")

    def test_requests_work_without_redis(self, client, auth_headers):
        Redis().redis_client = BrokenRedis()
        response = client.get(f"{API}/study-plans", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == []


class TestErrors:
    def test_orm_errors_become_database_errors(self):
        with pytest.raises(error.DatabaseError):
            with CreateDBSession():
                raise InvalidRequestError("detached instance")

    def test_other_errors_pass_through(self):
        with pytest.raises(error.ResourceNotFoundError):
            with CreateDBSession():
                raise error.ResourceNotFoundError("missing")

    def test_validation_message_names_the_field(self, client, auth_headers):
        response = client.post(
            f"{API}/study-sessions", json={"plan_id": 1, "subject_id": 1}, headers=auth_headers
        )
        assert response.status_code == 422
        assert response.json()["message"].startswith("Invalid started_at:")
