import pytest

pytestmark = pytest.mark.integration


@pytest.fixture()
def csrf_client(app):
    app.config["WTF_CSRF_ENABLED"] = True
    return app.test_client()


def test_post_without_token_is_rejected(csrf_client):
    csrf_client.get("/sign-in")
    resp = csrf_client.post("/sign-in", json={"identifier": "441234567", "password": "x"})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "csrf_failed"


def test_header_or_body_token_accepted(csrf_client, provider):
    provider.add_user("441234567@qu.edu.sa", second_factor=True)
    token = csrf_client.get("/sign-in").get_json()["csrf_token"]

    resp = csrf_client.post(
        "/sign-in",
        json={"identifier": "441234567", "password": "secret-pass"},
        headers={"X-CSRF-Token": token},
    )
    assert resp.status_code == 200

    resp = csrf_client.post("/sign-in/back", json={"csrf_token": token})
    assert resp.status_code == 200


def test_token_rotates_on_sign_in(csrf_client, provider):
    provider.add_user("441234567@qu.edu.sa")
    token = csrf_client.get("/sign-in").get_json()["csrf_token"]
    resp = csrf_client.post(
        "/sign-in",
        json={"identifier": "441234567", "password": "secret-pass"},
        headers={"X-CSRF-Token": token},
    )
    new_token = resp.get_json()["csrf_token"]
    assert new_token and new_token != token

    resp = csrf_client.delete("/onboarding", headers={"X-CSRF-Token": token})
    assert resp.status_code == 403
    resp = csrf_client.delete("/onboarding", headers={"X-CSRF-Token": new_token})
    assert resp.status_code == 200
