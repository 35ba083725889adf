"""End-to-end tests for the HTTP surface."""

from datetime import timedelta

from sqlmodel import select

from app.core.config import get_settings
from app.models.admin import AdminAddress, AdminIdentity
from app.models.log_event import LogEvent
from app.models.tenant import ProvisioningStatus, Tenant, TenantPlan
from app.utils.time import utc_now

from conftest import ADMIN_ADDRESS, ADMIN_EMAIL

COOKIE = get_settings().session_cookie_name


def test_root_and_health_endpoints(client) -> None:
    assert client.get("/").json()["docs"] == "/docs"
    assert client.get("/health/").json()["status"] == "healthy"
    assert client.get("/health/live").json() == {"status": "alive"}
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_code_request_always_succeeds(client, outbox, monkeypatch) -> None:
    monkeypatch.setattr(get_settings(), "admin_emails", "boss@example.com")

    response = client.post("/auth/code", json={"email": "stranger@example.com"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert outbox == {}


def test_code_request_rejects_malformed_email(client) -> None:
    response = client.post("/auth/code", json={"email": "not-an-email"})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "validation_error",
        "message": "A valid email address is required",
    }


def test_login_sets_http_only_cookie(client, outbox) -> None:
    headers = {"X-Forwarded-For": ADMIN_ADDRESS}
    client.post("/auth/code", json={"email": ADMIN_EMAIL}, headers=headers)

    response = client.post(
        "/auth/login",
        json={"email": ADMIN_EMAIL, "code": outbox[ADMIN_EMAIL][-1]},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["is_authenticated"] is True
    assert body["data"]["authorized_addresses"] == [ADMIN_ADDRESS]
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{COOKIE}=")
    assert "HttpOnly" in set_cookie
    assert "samesite=lax" in set_cookie.lower()


def test_code_redeems_once_over_http(client, outbox) -> None:
    client.post("/auth/code", json={"email": ADMIN_EMAIL})
    payload = {"email": ADMIN_EMAIL, "code": outbox[ADMIN_EMAIL][-1]}

    assert client.post("/auth/login", json=payload).status_code == 200
    response = client.post("/auth/login", json=payload)

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_code"


def test_two_code_requests_both_succeed(client, outbox) -> None:
    assert client.post("/auth/code", json={"email": ADMIN_EMAIL}).status_code == 200
    assert client.post("/auth/code", json={"email": ADMIN_EMAIL}).status_code == 200
    first, second = outbox[ADMIN_EMAIL]

    assert client.post("/auth/login", json={"email": ADMIN_EMAIL, "code": second}).status_code == 200
    assert client.post("/auth/login", json={"email": ADMIN_EMAIL, "code": first}).status_code == 200
    assert client.post("/auth/login", json={"email": ADMIN_EMAIL, "code": second}).status_code == 401


def test_session_endpoint(client, login) -> None:
    anonymous = client.get("/auth/session")
    assert anonymous.status_code == 200
    assert anonymous.json()["data"]["is_authenticated"] is False

    headers = login()
    current = client.get("/auth/session", headers=headers).json()["data"]

    assert current["is_authenticated"] is True
    assert current["email"] == ADMIN_EMAIL


def test_guarded_routes_require_session(client) -> None:
    for path in ("/monitoring/logs", "/monitoring/dashboard", "/analytics/dashboard", "/security/events"):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json()["error"] == "authentication_required"


def test_unknown_address_is_denied_uniformly(client, login, run_db) -> None:
    login()

    response = client.get("/monitoring/logs", headers={"X-Forwarded-For": "203.0.113.9"})

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "authentication_required",
        "message": "Authentication required",
    }

    async def denials(db):
        result = await db.execute(select(LogEvent).where(LogEvent.category == "security"))
        return [e.metadata_json.get("event") for e in result.scalars().all()]

    assert "unauthorized_access" in run_db(denials)


def test_deleted_identity_is_denied_and_session_dropped(client, login, run_db) -> None:
    headers = login()

    async def delete_admin(db):
        for address in (await db.execute(select(AdminAddress))).scalars().all():
            await db.delete(address)
        admin = (await db.execute(select(AdminIdentity))).scalars().one()
        await db.delete(admin)
        await db.commit()

    run_db(delete_admin)

    assert client.get("/monitoring/logs", headers=headers).status_code == 401
    assert client.get("/auth/session", headers=headers).json()["data"]["is_authenticated"] is False


def test_logout_invalidates_session(client, login) -> None:
    headers = login()
    token = client.cookies.get(COOKIE)

    assert client.post("/auth/logout", headers=headers).status_code == 200

    client.cookies.set(COOKIE, token)
    assert client.get("/monitoring/logs", headers=headers).status_code == 401


def test_ingest_and_query(client, login) -> None:
    headers = login()

    created = client.post(
        "/monitoring/logs",
        json={
            "level": "error",
            "message": "Webhook delivery failed",
            "source": "tenant-7",
            "category": "webhooks",
            "timestamp": "1999-01-01T00:00:00Z",
            "metadata": {"attempts": 3},
        },
        headers=headers,
    )
    assert created.status_code == 201
    event = created.json()["data"]
    assert event["resolved"] is False
    assert not event["timestamp"].startswith("1999")

    listing = client.get(
        "/monitoring/logs",
        params={"source": "tenant-7", "level": "error", "limit": 1000},
        headers=headers,
    ).json()["data"]

    assert [e["id"] for e in listing["logs"]] == [event["id"]]
    assert listing["pagination"] == {"page": 1, "limit": 100, "total": 1, "pages": 1}
    assert listing["filters"] == {"level": "error", "source": "tenant-7"}

    fetched = client.get(f"/monitoring/logs/{event['id']}", headers=headers)
    assert fetched.json()["data"]["metadata"] == {"attempts": 3}


def test_ingest_validation(client, login) -> None:
    headers = login()

    missing = client.post("/monitoring/logs", json={"message": "no level"}, headers=headers)
    bad_level = client.post(
        "/monitoring/logs",
        json={"level": "fatal", "message": "m", "source": "s"},
        headers=headers,
    )

    assert missing.status_code == 400
    assert missing.json()["error"] == "validation_error"
    assert "level" in missing.json()["message"]
    assert bad_level.status_code == 400


def test_unknown_log_is_not_found(client, login) -> None:
    headers = login()

    assert client.get("/monitoring/logs/9999", headers=headers).status_code == 404
    assert client.put("/monitoring/logs/9999/resolve", headers=headers).status_code == 404


def test_resolve_defaults_to_current_admin(client, login) -> None:
    headers = login()
    event_id = client.post(
        "/monitoring/logs",
        json={"level": "critical", "message": "down", "source": "tenant-7"},
        headers=headers,
    ).json()["data"]["id"]

    resolved = client.put(f"/monitoring/logs/{event_id}/resolve", headers=headers).json()["data"]
    again = client.put(
        f"/monitoring/logs/{event_id}/resolve",
        json={"resolved_by": "someone-else@example.com"},
        headers=headers,
    ).json()["data"]

    assert resolved["resolved_by"] == ADMIN_EMAIL
    assert resolved["resolved_at"] is not None
    assert again["resolved_by"] == ADMIN_EMAIL
    assert again["resolved_at"] == resolved["resolved_at"]


def test_bulk_resolve_skips_unknown_ids(client, login) -> None:
    headers = login()
    ids = [
        client.post(
            "/monitoring/logs",
            json={"level": "error", "message": f"e{i}", "source": "tenant-1"},
            headers=headers,
        ).json()["data"]["id"]
        for i in range(3)
    ]

    first = client.post("/monitoring/logs/resolve", json={"ids": ids + [9999]}, headers=headers)
    second = client.post("/monitoring/logs/resolve", json={"ids": ids}, headers=headers)

    assert first.json()["data"] == {"affected": 3}
    assert second.json()["data"] == {"affected": 0}


def test_sources_endpoint(client, login) -> None:
    headers = login()
    for source, category in (("zeta", "db"), ("alpha", "api")):
        client.post(
            "/monitoring/logs",
            json={"level": "info", "message": "m", "source": source, "category": category},
            headers=headers,
        )

    data = client.get("/monitoring/sources", headers=headers).json()["data"]

    # The login itself was recorded under source "system"
    assert data["sources"] == ["alpha", "system", "zeta"]
    assert data["categories"] == ["api", "db", "security"]


def dashboard(client, headers) -> dict:
    response = client.get("/monitoring/dashboard", headers=headers)
    assert response.status_code == 200
    return response.json()["data"]


def test_critical_event_moves_health_by_ten(client, login) -> None:
    headers = login()

    # Saturate the 24h critical penalty so only the unresolved count moves
    ids = [
        client.post(
            "/monitoring/logs",
            json={"level": "critical", "message": f"c{i}", "source": "tenant-1"},
            headers=headers,
        ).json()["data"]["id"]
        for i in range(5)
    ]
    client.post("/monitoring/logs/resolve", json={"ids": ids}, headers=headers)
    before = dashboard(client, headers)

    event_id = client.post(
        "/monitoring/logs",
        json={"level": "critical", "message": "Database down", "source": "tenant-7"},
        headers=headers,
    ).json()["data"]["id"]
    during = dashboard(client, headers)

    client.put(f"/monitoring/logs/{event_id}/resolve", headers=headers)
    after = dashboard(client, headers)

    assert during["logs"]["unresolved"]["critical"] == before["logs"]["unresolved"]["critical"] + 1
    assert during["system_health"]["score"] == before["system_health"]["score"] - 10
    assert after["logs"]["unresolved"]["critical"] == before["logs"]["unresolved"]["critical"]
    assert after["system_health"]["score"] == during["system_health"]["score"] + 10


def test_dashboard_payload(client, login, run_db) -> None:
    headers = login()
    now = utc_now()

    async def add_tenants(db):
        for name, status, verified, age in (
            ("acme", ProvisioningStatus.COMPLETED, True, 2),
            ("globex", ProvisioningStatus.FAILED, False, 20),
            ("initech", ProvisioningStatus.IN_PROGRESS, False, 1),
        ):
            db.add(Tenant(
                name=name, custom_domain=f"{name}.example.com", admin_email=f"a@{name}.com",
                provisioning_status=status, email_verified=verified,
                created_at=now - timedelta(days=age), updated_at=now - timedelta(days=age),
            ))
        await db.commit()

    run_db(add_tenants)

    data = dashboard(client, headers)

    assert data["tenants"] == {
        "total": 3, "active": 1, "pending": 1, "failed": 1, "recent_registrations": 2,
    }
    # 100 - (1/3)*30 = 90
    assert data["system_health"] == {"score": 90, "status": "good"}
    assert data["trends"][-1]["levels"]["info"] >= 1


def test_analytics_dashboard(client, login, run_db) -> None:
    headers = login()
    now = utc_now()

    async def add_tenants(db):
        for i, plan in enumerate((TenantPlan.FREE, TenantPlan.FREE, TenantPlan.FREE, TenantPlan.PREMIUM)):
            db.add(Tenant(
                name=f"t{i}", custom_domain=f"t{i}.example.com", admin_email="a@example.com",
                plan=plan, user_count=10, ticket_count=5,
                created_at=now - timedelta(days=i + 1), updated_at=now,
            ))
        await db.commit()

    run_db(add_tenants)

    response = client.get("/analytics/dashboard", params={"range": "7d"}, headers=headers)
    data = response.json()["data"]

    assert data["days"] == 7
    assert data["overview"]["total_tenants"] == 4
    assert data["overview"]["total_users"] == 40
    assert data["overview"]["tenant_growth_rate"] == 100.0
    assert {p["name"]: p["percentage"] for p in data["tenant_metrics"]["by_plan"]} == {
        "free": 75, "premium": 25,
    }
    assert data["tenant_metrics"]["registration_trend"][-1]["cumulative"] == 4

    fallback = client.get("/analytics/dashboard", params={"range": "forever"}, headers=headers)
    assert fallback.json()["data"]["days"] == 365


def test_system_health_checks(client, login) -> None:
    headers = login()

    data = client.get("/monitoring/health", headers=headers).json()["data"]

    assert data["status"] == "healthy"
    assert [c["name"] for c in data["checks"]] == ["Database", "Error Rate"]


def test_security_events(client, login) -> None:
    headers = login()
    client.post(
        "/monitoring/logs",
        json={"level": "info", "message": "unrelated", "source": "tenant-1"},
        headers=headers,
    )

    data = client.get("/security/events", headers=headers).json()["data"]

    events = [e["metadata"]["event"] for e in data["logs"]]
    assert "login_success" in events
    assert "code_requested" in events
    assert all(e["category"] == "security" for e in data["logs"])


def test_tenant_and_resolved_query_parameters(client, login) -> None:
    headers = login()
    ids = [
        client.post(
            "/monitoring/logs",
            json={"level": "error", "message": f"e{i}", "source": "tenant-1", "tenant_id": tenant},
            headers=headers,
        ).json()["data"]["id"]
        for i, tenant in enumerate(("t1", "t1", "t2"))
    ]
    client.put(f"/monitoring/logs/{ids[0]}/resolve", headers=headers)

    unresolved = client.get(
        "/monitoring/logs", params={"tenant_id": "t1", "resolved": "false"}, headers=headers
    ).json()["data"]
    resolved = client.get(
        "/monitoring/logs", params={"tenant_id": "t1", "resolved": "true"}, headers=headers
    ).json()["data"]

    assert [e["id"] for e in unresolved["logs"]] == [ids[1]]
    assert [e["id"] for e in resolved["logs"]] == [ids[0]]
    assert unresolved["filters"] == {"tenant_id": "t1", "resolved": False}


def test_unknown_route_uses_error_envelope(client) -> None:
    missing = client.get("/nope")
    wrong_method = client.delete("/health/live")

    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "not_found", "message": "Not Found"}
    assert wrong_method.status_code == 405
    assert wrong_method.json()["success"] is False
    assert wrong_method.json()["error"] == "method_not_allowed"
