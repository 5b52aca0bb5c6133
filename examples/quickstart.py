#!/usr/bin/env python3
"""
ProfileHub Quickstart — the mobile app's account lifecycle in one script.

Register → duplicate check → bad login → login → profile lookup →
update → avatar upload → avatar delete.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: profilehub serve  (http://localhost:5000)
"""

import sys
import uuid

import httpx

BASE = "http://localhost:5000/api"

# 1x1 transparent PNG
PIXEL = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c63000100000500010d0a2db40000000049454e44ae426082"
)


def main():
    run_id = uuid.uuid4().hex[:6]
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        sys.exit(1)
    health = resp.json()
    print(f"  Database: {'✓' if health.get('database') == 'ok' else '✗'}")

    email = f"demo-{run_id}@example.com"
    user = {
        "name": f"Demo{run_id}",
        "email": email,
        "dateOfBirth": "2000-01-01",
        "gender": "Other",
        "password": "demo-password-123",
    }

    # ── Register ──────────────────────────────────────────────────
    print("\n1. Registering...")
    resp = client.post("/auth/register", json=user)
    assert resp.status_code == 201, f"Failed: {resp.text}"
    print(f"   {resp.json()['message']} ({email})")

    resp = client.post("/auth/register", json=user)
    assert resp.status_code == 409, f"Expected 409, got {resp.status_code}"
    print(f"   Second attempt rejected: {resp.json()['message']}")

    # ── Login ─────────────────────────────────────────────────────
    print("\n2. Logging in...")
    resp = client.post("/auth/login", json={"email": email, "password": "wrong"})
    assert resp.status_code == 401
    print(f"   Wrong password: {resp.json()['message']}")

    resp = client.post("/auth/login", json={"email": email, "password": user["password"]})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    token = resp.json()["token"]
    auth = {"Authorization": f"Bearer {token}"}
    print(f"   Token: {token[:24]}... (valid for one hour)")

    # ── Profile ───────────────────────────────────────────────────
    print("\n3. Looking up profile (no token needed)...")
    profile = client.get(f"/auth/profile/{email}").json()
    print(f"   #{profile['id']} {profile['name']} — image: {profile['profileImage']}")

    print("\n4. Updating profile...")
    resp = client.put("/auth/profile", json={"gender": "Female"}, headers=auth)
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   {resp.json()['message']}")

    resp = client.put("/auth/profile", json={"gender": "Female"})
    print(f"   Without token: {resp.status_code} {resp.json()['message']}")

    # ── Avatar ────────────────────────────────────────────────────
    print("\n5. Uploading avatar...")
    resp = client.post(
        "/auth/upload-profile-image",
        files={"profile_image": ("avatar.png", PIXEL, "image/png")},
        headers=auth,
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   {resp.json()['imageUrl']}")

    print("\n6. Deleting avatar...")
    resp = client.delete("/auth/profile-image", headers=auth)
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   {resp.json()['message']}")

    resp = client.delete("/auth/profile-image", headers=auth)
    print(f"   Again: {resp.status_code} {resp.json()['message']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
