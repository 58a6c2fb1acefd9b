"""
Integration tests for profile completion and edits.
"""

from tests.conftest import TEST_USER_ID


def test_new_user_profile_is_incomplete(client):
    response = client.get("/api/profile")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == TEST_USER_ID
    assert data["profile_complete"] is False


def test_complete_profile(client, store):
    response = client.post("/api/profile/complete", json={"age": 34, "gender": "female", "height": 168})

    assert response.status_code == 200
    assert response.json()["profile_complete"] is True
    assert store.profiles[TEST_USER_ID]["height"] == 168


def test_complete_profile_validation(client):
    assert client.post("/api/profile/complete", json={"age": 34, "gender": "female"}).status_code == 422
    assert client.post("/api/profile/complete", json={"age": 0, "gender": "male", "height": 180}).status_code == 422
    assert client.post("/api/profile/complete", json={"age": 30, "gender": "robot", "height": 180}).status_code == 422
    assert client.post("/api/profile/complete", json={"age": 30, "gender": "male", "height": 300}).status_code == 422


def test_update_single_field(client, store):
    client.post("/api/profile/complete", json={"age": 34, "gender": "female", "height": 168})

    response = client.patch("/api/profile", json={"age": 35})

    assert response.status_code == 200
    data = response.json()
    assert data["age"] == 35
    assert data["gender"] == "female"
    assert data["profile_complete"] is True


def test_partial_profile_is_incomplete(client):
    response = client.patch("/api/profile", json={"gender": "prefer-not-to-say"})

    assert response.status_code == 200
    assert response.json()["profile_complete"] is False


def test_empty_update_is_rejected(client):
    assert client.patch("/api/profile", json={}).status_code == 400


def test_profile_store_failure(client, store):
    store.fail_with = ConnectionError("offline")
    assert client.get("/api/profile").status_code == 503
