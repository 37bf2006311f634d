"""Live smoke test for the onboarding lifecycle against a running API."""

import os
import uuid

import httpx

base = os.environ.get("ONBOARDING_API", "http://localhost:8000/api/v1")
admin_email = os.environ.get("FIRST_SUPERUSER", "admin@example.com")
admin_password = os.environ.get("FIRST_SUPERUSER_PASSWORD", "changethis")

# Minimal but well-formed PDF body, enough for the media type checks
PDF_BYTES = (
    b"%PDF-1.4\n1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
    b"2 0 obj<</Type/Pages/Kids[]/Count 0>>endobj\ntrailer<</Root 1 0 R>>\n%%EOF\n"
)


def login(email: str, password: str) -> dict[str, str]:
    tok = httpx.post(
        f"{base}/login/access-token",
        data={"username": email, "password": password},
        timeout=30,
    )
    tok.raise_for_status()
    return {"Authorization": f"Bearer {tok.json()['access_token']}"}


# --- Candidate ---

email = f"candidate-{uuid.uuid4().hex[:6]}@example.com"
httpx.post(
    f"{base}/users/signup",
    json={"email": email, "password": "testpass123", "full_name": "Smoke Candidate"},
    timeout=30,
).raise_for_status()
headers = login(email, "testpass123")

app_resp = httpx.post(
    f"{base}/applications/",
    headers=headers,
    json={
        "form_data": {
            "post_applied_for": "Software Engineer",
            "full_name": "Smoke Candidate",
            "father_or_husband_name": "Parent Candidate",
            "permanent_address": "12 Lake Road, Pune",
            "communication_address": "12 Lake Road, Pune",
            "date_of_birth": "1994-05-02",
            "sex": "female",
            "marital_status": "single",
            "mobile_no": "9876543210",
            "email": email,
            "bank_name": "State Bank",
            "declaration": True,
        }
    },
    timeout=30,
)
app_resp.raise_for_status()
application = app_resp.json()
app_id = application["id"]
print(f"Draft {app_id}: progress={application['progress_percent']}")

for document_type in ("pan_card", "aadhar_card"):
    httpx.post(
        f"{base}/applications/{app_id}/documents",
        headers=headers,
        data={"document_type": document_type},
        files={"file": (f"{document_type}.pdf", PDF_BYTES, "application/pdf")},
        timeout=30,
    ).raise_for_status()

submitted = httpx.post(
    f"{base}/applications/{app_id}/submit", headers=headers, timeout=30
)
submitted.raise_for_status()
print(
    f"Submitted: status={submitted.json()['status']}, "
    f"progress={submitted.json()['progress_percent']}"
)

# --- Administrator ---

admin_headers = login(admin_email, admin_password)
httpx.post(
    f"{base}/applications/{app_id}/review", headers=admin_headers, timeout=30
).raise_for_status()
approved = httpx.post(
    f"{base}/applications/{app_id}/approve",
    headers=admin_headers,
    json={"notes": "Smoke test approval"},
    timeout=30,
)
approved.raise_for_status()
print(f"Decision: status={approved.json()['status']}")

late_reject = httpx.post(
    f"{base}/applications/{app_id}/reject",
    headers=admin_headers,
    json={"reason": "too late"},
    timeout=30,
)
print(f"Second decision answered {late_reject.status_code} (expected 409)")

# --- Timeline and notifications ---

timeline = httpx.get(
    f"{base}/applications/{app_id}/timeline", headers=headers, timeout=30
).json()
print("\n=== TIMELINE ===")
for event in timeline["events"]:
    print(
        f"  {event['created_at']} {event['event_type']}: {event['description']} "
        f"({event.get('actor_name') or 'system'})"
    )

notifications = httpx.get(
    f"{base}/notifications/", headers=headers, timeout=30
).json()
print(f"\n=== NOTIFICATIONS ({notifications['unread_count']} unread) ===")
for item in notifications["data"]:
    print(f"  [{item['severity']}] {item['title']}: {item['message']}")

stats = httpx.get(
    f"{base}/applications/stats", headers=admin_headers, timeout=30
).json()
print(f"\nStatistics: {stats}")
print("SMOKE TEST COMPLETE")
