"""Request payloads and small helpers shared by the API tests."""

from typing import Any

PASSWORD = "secret123"

# Smallest valid PNG; content is never decoded server-side
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\nIDATx\x9cc\x00\x01"
    b"\x00\x00\x05\x00\x01\r\n-\xb4\x00\x00\x00\x00IEND\xaeB`\x82"
)


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def task_payload(assigned_to: str, **overrides: Any) -> dict[str, Any]:
    payload = {
        "title": "Build login page",
        "shortDescription": "Login form with validation",
        "longDescription": "Email and password fields, error states.",
        "priority": "high",
        "deadline": "2030-01-15",
        "assignedTo": assigned_to,
        "group": "Frontend",
    }
    payload.update(overrides)
    return payload


def png_upload(name: str = "site.png", content: bytes = PNG_BYTES) -> dict[str, Any]:
    return {"photo": (name, content, "image/png")}
