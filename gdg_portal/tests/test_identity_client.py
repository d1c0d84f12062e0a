import json
from unittest import mock

import pytest
import requests

from gdg_portal.core.identity.client import IdentityClient
from gdg_portal.core.identity.errors import IdentityProviderError

pytestmark = pytest.mark.unit


def _response(status, body=None, reason="OK"):
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    resp._content = json.dumps(body).encode() if body is not None else b""
    return resp


@pytest.fixture()
def http():
    return requests.Session()


@pytest.fixture()
def client(http):
    return IdentityClient("http://identity.test/", "sk_test", timeout=3, session=http)


def test_auth_header_set(client, http):
    assert http.headers["Authorization"] == "Bearer sk_test"


def test_create_sign_in_posts_payload(client, http):
    body = {"id": "sia_1", "status": "needs_second_factor", "supported_second_factors": [
        {"strategy": "email_code", "email_address_id": "idn_1"}
    ]}
    with mock.patch.object(http, "request", return_value=_response(200, body)) as req:
        attempt = client.create_sign_in("441234567@qu.edu.sa", password="pw")

    req.assert_called_once_with(
        "POST",
        "http://identity.test/v1/sign_ins",
        json={"identifier": "441234567@qu.edu.sa", "password": "pw"},
        timeout=3,
    )
    assert attempt.email_code_second_factor().email_address_id == "idn_1"


def test_get_session_token(client, http):
    with mock.patch.object(http, "request", return_value=_response(200, {"jwt": "abc.def.ghi"})):
        assert client.get_session_token("sess_1") == "abc.def.ghi"


def test_error_body_is_parsed(client, http):
    body = {"errors": [{"code": "form_code_incorrect", "message": "Incorrect code", "long_message": "Try again"}]}
    with mock.patch.object(http, "request", return_value=_response(422, body, "Unprocessable")):
        with pytest.raises(IdentityProviderError) as exc_info:
            client.attempt_second_factor("sia_1", "000000")
    err = exc_info.value
    assert err.status_code == 422
    assert err.has_code("form_code_incorrect")
    assert err.first_long_message == "Try again"


def test_error_without_body(client, http):
    with mock.patch.object(http, "request", return_value=_response(503, None, "Service Unavailable")):
        with pytest.raises(IdentityProviderError) as exc_info:
            client.get_user("user_1")
    assert exc_info.value.first_code == "http_503"


def test_network_failure(client, http):
    with mock.patch.object(http, "request", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(IdentityProviderError) as exc_info:
            client.end_session("sess_1")
    assert exc_info.value.first_code == "network_error"
    assert exc_info.value.status_code is None


def test_unexpected_shape(client, http):
    with mock.patch.object(http, "request", return_value=_response(200, {"unexpected": True})):
        with pytest.raises(IdentityProviderError) as exc_info:
            client.set_active_session("sess_1")
    assert exc_info.value.first_code == "invalid_response"


def test_update_metadata_uses_patch(client, http):
    body = {"id": "user_1", "public_metadata": {"onboardingComplete": True}}
    with mock.patch.object(http, "request", return_value=_response(200, body)) as req:
        user = client.update_user_metadata("user_1", {"onboardingComplete": True})
    assert req.call_args.args[:2] == ("PATCH", "http://identity.test/v1/users/user_1/metadata")
    assert user.public_metadata["onboardingComplete"] is True


def test_has_code_matches_suffixed_codes():
    err = IdentityProviderError.single("form_code_incorrect_attempts", "x")
    assert err.has_code("form_code_incorrect")
    assert not err.has_code("resource_not_found")


def test_prepare_first_factor_includes_address(client, http):
    body = {"id": "sia_1", "status": "needs_first_factor"}
    with mock.patch.object(http, "request", return_value=_response(200, body)) as req:
        client.prepare_first_factor("sia_1", "reset_password_email_code", email_address_id="idn_1")
    assert req.call_args.kwargs["json"] == {
        "strategy": "reset_password_email_code",
        "email_address_id": "idn_1",
    }
