"""Tests for triage and candidate-review endpoints (via TestClient with auth overrides)."""

from datetime import datetime, timezone

from app.models import Candidate, QuotaRecord, User
from app.services.icp_service import DEFAULT_CONTACT_TITLES
from app.services.quota import quota_today


def test_triage_empty(client):
    resp = client.get("/api/triage")
    assert resp.status_code == 200
    data = resp.json()
    assert data["state"] == "idle"
    assert data["current"] is None
    assert data["quota"]["daily_limit"] == 25


def test_triage_presents_best_fit(client, make_candidate):
    make_candidate(name="Low", fit_score=20)
    make_candidate(name="High", fit_score=95)
    data = client.get("/api/triage").json()
    assert data["state"] == "presenting"
    assert data["current"]["name"] == "High"
    assert data["pending"] == 2


def test_decide_and_undo(client, make_candidate, db_session):
    top = make_candidate(fit_score=90)
    nxt = make_candidate(fit_score=80)

    resp = client.post("/api/triage/decide", json={"direction": "accept"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["decided"] == {"candidate_id": top.id, "status": "accepted"}
    assert data["current"]["id"] == nxt.id
    assert data["quota"]["accepted_today"] == 1
    assert data["can_undo"] is True

    resp = client.post("/api/triage/undo")
    data = resp.json()
    assert data["undone"] is True
    assert data["current"]["id"] == top.id
    assert data["quota"]["accepted_today"] == 0
    assert db_session.get(Candidate, top.id).status == "pending"


def test_undo_noop(client):
    data = client.post("/api/triage/undo").json()
    assert data["undone"] is False
    assert data["candidate_id"] is None


def test_bad_direction_is_422(client, make_candidate):
    make_candidate()
    resp = client.post("/api/triage/decide", json={"direction": "sideways"})
    assert resp.status_code == 422
    assert resp.json()["error"] == "Validation error"


def test_decide_with_nothing_presented_is_409(client):
    resp = client.post("/api/triage/decide", json={"direction": "reject"})
    assert resp.status_code == 409


def test_quota_exceeded_is_429_with_review_link(client, make_candidate, db_session, test_user):
    c = make_candidate()
    today = quota_today(datetime.now(timezone.utc))
    db_session.add(QuotaRecord(user_id=test_user.id, daily_accept_count=25, quota_date=today))
    db_session.commit()

    resp = client.post("/api/triage/decide", json={"direction": "accept"})

    assert resp.status_code == 429
    body = resp.json()
    assert body["limit"] == 25
    assert body["review_url"] == "/api/candidates?status=accepted"
    assert db_session.get(Candidate, c.id).status == "pending"

    assert client.post("/api/triage/decide", json={"direction": "reject"}).status_code == 200


def test_first_accept_seeds_contact_titles(client, make_candidate, db_session, test_user):
    make_candidate()
    data = client.post("/api/triage/decide", json={"direction": "accept"}).json()
    assert data["first_accept"] is True
    assert db_session.get(User, test_user.id).contact_titles == DEFAULT_CONTACT_TITLES


def test_refill(client, make_candidate):
    make_candidate(provider_id="known")
    resp = client.post(
        "/api/triage/refill",
        json={"candidates": [{"provider_id": "known"}, {"provider_id": "new", "name": "New Co"}]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["added"]) == 1
    assert data["pending"] == 2


def test_refill_scores_against_saved_icp(client, test_profile):
    client.post(
        "/api/triage/refill",
        json={"candidates": [{
            "provider_id": "fit",
            "industry": "Software",
            "location": "CA",
            "employee_size_range": "21-50",
            "revenue_range": "$1M-$2M",
        }]},
    )
    assert client.get("/api/triage").json()["current"]["fit_score"] == 100


# ── Review list and archive ──────────────────────────────────────────


def test_accepted_review_list(client, make_candidate):
    make_candidate(status="accepted", fit_score=60)
    make_candidate(status="accepted", fit_score=90)
    make_candidate(status="rejected")
    data = client.get("/api/candidates").json()
    assert data["total"] == 2
    assert [c["fit_score"] for c in data["items"]] == [90, 60]


def test_archive_and_unarchive(client, accepted_candidate):
    resp = client.post(f"/api/candidates/{accepted_candidate.id}/archive")
    assert resp.status_code == 200
    assert resp.json()["status"] == "archived"
    assert resp.json()["archived_at"] is not None
    assert client.get("/api/candidates?status=archived").json()["total"] == 1

    resp = client.post(f"/api/candidates/{accepted_candidate.id}/unarchive")
    assert resp.json()["status"] == "accepted"
    assert resp.json()["archived_at"] is None


def test_archive_pending_is_409(client, make_candidate):
    c = make_candidate()
    assert client.post(f"/api/candidates/{c.id}/archive").status_code == 409


def test_archive_other_users_candidate_is_404(client, make_candidate, other_user):
    c = make_candidate(user=other_user, status="accepted")
    assert client.post(f"/api/candidates/{c.id}/archive").status_code == 404


def test_bad_status_filter(client):
    assert client.get("/api/candidates?status=deleted").status_code == 422
