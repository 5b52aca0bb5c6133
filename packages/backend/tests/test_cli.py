"""CLI tests — commands run against a mocked HTTP backend.

Learn: _client() is swapped for an httpx client over MockTransport, so
each test sees exactly which requests a command sends and controls the
responses, without a running server.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from profilehub.cli import main as cli


@pytest.fixture()
def backend(monkeypatch):
    """Install a fake backend; returns (responses, captured requests)."""
    responses: dict[tuple[str, str], httpx.Response] = {}
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        key = (request.method, request.url.path)
        if key not in responses:
            return httpx.Response(404, json={"message": "Not Found"})
        return responses[key]

    def _client():
        return httpx.AsyncClient(
            base_url="http://api.test", transport=httpx.MockTransport(handler)
        )

    monkeypatch.setattr(cli, "_client", _client)
    monkeypatch.delenv("PROFILEHUB_TOKEN", raising=False)
    return responses, seen


@pytest.fixture()
def runner():
    return CliRunner()


def test_register(runner, backend):
    responses, seen = backend
    responses[("POST", "/api/auth/register")] = httpx.Response(
        201, json={"message": "User registered"}
    )

    result = runner.invoke(cli.main, [
        "register", "--name", "A", "--email", "a@x.com",
        "--dob", "2000-01-01", "--gender", "Male", "--password", "p1",
    ])
    assert result.exit_code == 0, result.output
    assert "User registered" in result.output
    assert json.loads(seen[0].content) == {
        "name": "A",
        "email": "a@x.com",
        "dateOfBirth": "2000-01-01",
        "gender": "Male",
        "password": "p1",
    }


def test_register_conflict_exits_nonzero(runner, backend):
    responses, _ = backend
    responses[("POST", "/api/auth/register")] = httpx.Response(
        409, json={"message": "Email already registered"}
    )

    result = runner.invoke(cli.main, [
        "register", "--name", "A", "--email", "a@x.com",
        "--dob", "2000-01-01", "--gender", "Male", "--password", "p1",
    ])
    assert result.exit_code == 1
    assert "Email already registered" in result.output


def test_login_quiet_prints_only_token(runner, backend):
    responses, _ = backend
    responses[("POST", "/api/auth/login")] = httpx.Response(
        200, json={"message": "Login successful", "token": "abc.def.ghi"}
    )

    result = runner.invoke(cli.main, ["login", "--email", "a@x.com", "--password", "p1", "-q"])
    assert result.exit_code == 0
    assert result.output.strip() == "abc.def.ghi"


def test_profile(runner, backend):
    responses, seen = backend
    responses[("GET", "/api/auth/profile/a@x.com")] = httpx.Response(200, json={
        "id": 1,
        "name": "A",
        "email": "a@x.com",
        "dateOfBirth": "2000-01-01",
        "gender": "Male",
        "profileImage": None,
    })

    result = runner.invoke(cli.main, ["profile", "a@x.com"])
    assert result.exit_code == 0
    assert "A <a@x.com>" in result.output
    assert "Authorization" not in seen[0].headers


def test_profile_quotes_email_in_path(runner, backend):
    responses, seen = backend
    responses[("GET", "/api/auth/profile/a#b?c@x.com")] = httpx.Response(200, json={
        "id": 2,
        "name": "AB",
        "email": "a#b?c@x.com",
        "dateOfBirth": "2000-01-01",
        "gender": "Other",
        "profileImage": None,
    })

    result = runner.invoke(cli.main, ["profile", "a#b?c@x.com"])
    assert result.exit_code == 0, result.output
    assert seen[0].url.raw_path == b"/api/auth/profile/a%23b%3Fc@x.com"
    assert seen[0].url.query == b""


def test_update_profile_requires_token(runner, backend):
    _, seen = backend
    result = runner.invoke(cli.main, ["update-profile", "--name", "B"])
    assert result.exit_code == 1
    assert "PROFILEHUB_TOKEN" in result.output
    assert seen == []


def test_update_profile_sends_bearer_token(runner, backend, monkeypatch):
    responses, seen = backend
    responses[("PUT", "/api/auth/profile")] = httpx.Response(
        200, json={"message": "Profile updated successfully"}
    )
    monkeypatch.setenv("PROFILEHUB_TOKEN", "tok-123")

    result = runner.invoke(cli.main, ["update-profile", "--name", "B", "--clear-image"])
    assert result.exit_code == 0, result.output
    assert seen[0].headers["Authorization"] == "Bearer tok-123"
    assert json.loads(seen[0].content) == {"name": "B", "profileImage": None}


def test_upload_image(runner, backend, tmp_path):
    responses, seen = backend
    responses[("POST", "/api/auth/upload-profile-image")] = httpx.Response(
        200, json={"message": "Image uploaded", "imageUrl": "http://api.test/uploads/A/profile.png"}
    )
    image = tmp_path / "me.png"
    image.write_bytes(b"\x89PNG-data")

    result = runner.invoke(cli.main, ["upload-image", str(image), "--token", "tok"])
    assert result.exit_code == 0, result.output
    assert "http://api.test/uploads/A/profile.png" in result.output
    body = seen[0].content
    assert b'name="profile_image"' in body
    assert b'filename="me.png"' in body


def test_delete_image_expired_token(runner, backend):
    responses, _ = backend
    responses[("DELETE", "/api/auth/profile-image")] = httpx.Response(
        401, json={"message": "Invalid token"}
    )

    result = runner.invoke(cli.main, ["delete-image", "--token", "stale"])
    assert result.exit_code == 1
    assert "Invalid token" in result.output
