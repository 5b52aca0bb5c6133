"""ProfileHub CLI — run the server and drive the account API from a shell.

Usage:
    profilehub serve                                   # Run the API with uvicorn
    profilehub health                                  # Server + database status
    profilehub register --name A --email a@x.com \\
        --dob 2000-01-01 --gender Male                 # Prompts for password
    profilehub login --email a@x.com --quiet           # Prints just the token
    export PROFILEHUB_TOKEN=...                        # Used by the commands below
    profilehub profile a@x.com                         # Public profile lookup
    profilehub update-profile --name "A. Person"       # Change own profile
    profilehub upload-image ./me.jpg                   # Upload own avatar
    profilehub delete-image                            # Remove own avatar
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import click
import httpx

from profilehub import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("PROFILEHUB_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the ProfileHub backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        runner = asyncio.run
    else:
        def runner(c):
            with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
                return pool.submit(asyncio.run, c).result()

    try:
        return runner(coro)
    except httpx.ConnectError:
        click.secho(f"Error: backend not reachable at {_api_url()}", fg="red", err=True)
        sys.exit(1)


def _token_from_ctx(token: Optional[str]) -> str:
    """Resolve the session token from --token or PROFILEHUB_TOKEN."""
    tok = token or os.environ.get("PROFILEHUB_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set PROFILEHUB_TOKEN; get one with `profilehub login`)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _check(r: httpx.Response) -> dict:
    """Return the JSON body, or print the server's message and exit 1."""
    try:
        body = r.json()
    except ValueError:
        body = {}
    if r.status_code >= 400:
        message = body.get("message") if isinstance(body, dict) else None
        click.secho(f"Error ({r.status_code}): {message or r.text}", fg="red", err=True)
        sys.exit(1)
    return body


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


token_option = click.option(
    "--token", help="Session token (or set PROFILEHUB_TOKEN)"
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="profilehub")
def main():
    """ProfileHub — accounts, sessions and profiles for the mobile app."""


# ---------------------------------------------------------------------------
# profilehub serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: PROFILEHUB_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: PROFILEHUB_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from profilehub.config import Settings

    settings = Settings()
    uvicorn.run(
        "profilehub.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# profilehub health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Show server and database status."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        data = _check(await c.get("/api/health"))
    color = "green" if data.get("status") == "healthy" else "yellow"
    click.secho(f"Status:   {data.get('status')}", fg=color)
    click.echo(f"Version:  {data.get('version')}")
    click.echo(f"Database: {data.get('database')}")


# ---------------------------------------------------------------------------
# profilehub register / login
# ---------------------------------------------------------------------------


@main.command()
@click.option("--name", required=True)
@click.option("--email", required=True)
@click.option("--dob", "date_of_birth", required=True, help="Date of birth, e.g. 2000-01-01")
@click.option("--gender", required=True)
@click.password_option()
def register(name: str, email: str, date_of_birth: str, gender: str, password: str):
    """Create a new account."""
    _run(_register_impl(name, email, date_of_birth, gender, password))


async def _register_impl(name, email, date_of_birth, gender, password):
    async with _client() as c:
        data = _check(await c.post("/api/auth/register", json={
            "name": name,
            "email": email,
            "dateOfBirth": date_of_birth,
            "gender": gender,
            "password": password,
        }))
    click.secho(data["message"], fg="green")


@main.command()
@click.option("--email", required=True)
@click.option("--password", prompt=True, hide_input=True)
@click.option("--quiet", "-q", is_flag=True, help="Print only the token")
def login(email: str, password: str, quiet: bool):
    """Log in and print a session token (valid for one hour)."""
    _run(_login_impl(email, password, quiet))


async def _login_impl(email, password, quiet):
    async with _client() as c:
        data = _check(await c.post("/api/auth/login", json={
            "email": email,
            "password": password,
        }))
    if quiet:
        click.echo(data["token"])
        return
    click.secho(data["message"], fg="green")
    click.echo(f"Token: {data['token']}")
    click.echo("Export it for the other commands: export PROFILEHUB_TOKEN=<token>")


# ---------------------------------------------------------------------------
# profilehub profile / update-profile
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def profile(email: str, as_json: bool):
    """Look up a profile by email."""
    _run(_profile_impl(email, as_json))


async def _profile_impl(email, as_json):
    async with _client() as c:
        data = _check(await c.get(f"/api/auth/profile/{quote(email, safe='@')}"))
    if as_json:
        click.echo(_pretty_json(data))
        return
    click.secho(f"{data['name']} <{data['email']}>", bold=True)
    click.echo(f"  Id:            {data['id']}")
    click.echo(f"  Date of birth: {data['dateOfBirth']}")
    click.echo(f"  Gender:        {data['gender']}")
    click.echo(f"  Image:         {data['profileImage'] or '—'}")


@main.command("update-profile")
@click.option("--name")
@click.option("--dob", "date_of_birth")
@click.option("--gender")
@click.option("--image", "profile_image", help="Profile image URL")
@click.option("--clear-image", is_flag=True, help="Unset the profile image")
@token_option
def update_profile(name, date_of_birth, gender, profile_image, clear_image, token):
    """Update your own profile."""
    body: dict = {}
    if name:
        body["name"] = name
    if date_of_birth:
        body["dateOfBirth"] = date_of_birth
    if gender:
        body["gender"] = gender
    if profile_image:
        body["profileImage"] = profile_image
    if clear_image:
        body["profileImage"] = None
    if not body:
        click.secho("Nothing to update.", fg="yellow")
        return
    _run(_update_profile_impl(body, _token_from_ctx(token)))


async def _update_profile_impl(body, token):
    async with _client() as c:
        data = _check(await c.put("/api/auth/profile", json=body, headers=_auth(token)))
    click.secho(data["message"], fg="green")


# ---------------------------------------------------------------------------
# profilehub upload-image / delete-image
# ---------------------------------------------------------------------------


@main.command("upload-image")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@token_option
def upload_image(path: Path, token: Optional[str]):
    """Upload PATH as your profile image."""
    _run(_upload_image_impl(path, _token_from_ctx(token)))


async def _upload_image_impl(path: Path, token: str):
    async with _client() as c:
        files = {"profile_image": (path.name, path.read_bytes())}
        data = _check(await c.post(
            "/api/auth/upload-profile-image", files=files, headers=_auth(token)
        ))
    click.secho(data["message"], fg="green")
    click.echo(f"URL: {data['imageUrl']}")


@main.command("delete-image")
@token_option
def delete_image(token: Optional[str]):
    """Remove your profile image."""
    _run(_delete_image_impl(_token_from_ctx(token)))


async def _delete_image_impl(token: str):
    async with _client() as c:
        data = _check(await c.delete("/api/auth/profile-image", headers=_auth(token)))
    click.secho(data["message"], fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
