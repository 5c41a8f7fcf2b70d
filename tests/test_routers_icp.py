"""Tests for ICP endpoints: read, save + rescore, score breakdown."""

from app.models import Candidate

PROFILE = {
    "industries": ["Software", " Software ", ""],
    "locations": ["CA"],
    "is_nationwide": False,
    "company_sizes": ["21-50"],
    "revenue_ranges": ["$1M-$2M"],
    "weights": {"industry": 50, "location": 25, "employee_size": 15, "revenue": 10},
}


def test_get_without_profile_returns_defaults(client):
    data = client.get("/api/icp").json()
    assert data["industries"] == []
    assert data["weights"] == {"industry": 50, "location": 25, "employee_size": 15, "revenue": 10}


def test_save_rescores_candidates(client, make_candidate, db_session):
    c = make_candidate(industry="Retail", fit_score=0)
    resp = client.put("/api/icp", json=PROFILE)
    assert resp.status_code == 200
    data = resp.json()
    assert data["industries"] == ["Software"]
    assert data["rescored"] == 1
    assert data["last_rescored_at"] is not None
    assert db_session.get(Candidate, c.id).fit_score == 50


def test_weights_must_add_to_100(client, test_profile):
    bad = {**PROFILE, "weights": {"industry": 60, "location": 25, "employee_size": 15, "revenue": 10}}
    resp = client.put("/api/icp", json=bad)
    assert resp.status_code == 422
    assert "add to 100" in str(resp.json()["detail"])
    assert client.get("/api/icp").json()["company_sizes"] == ["11-20", "21-50"]


def test_unknown_bucket_rejected(client):
    resp = client.put("/api/icp", json={**PROFILE, "company_sizes": ["lots"]})
    assert resp.status_code == 422


def test_save_resets_live_queue_order(client, make_candidate):
    a = make_candidate(industry="Retail", fit_score=90)
    b = make_candidate(industry="Software", fit_score=10)
    assert client.get("/api/triage").json()["current"]["id"] == a.id

    client.put("/api/icp", json=PROFILE)
    assert client.get("/api/triage").json()["current"]["id"] == b.id


def test_breakdown(client, test_profile, make_candidate):
    c = make_candidate(employee_size_range="51-100")
    data = client.get(f"/api/icp/breakdown/{c.id}").json()
    assert data["candidate_id"] == c.id
    assert data["components"]["employee_size"]["match"] == 50
    assert data["final_score"] == 93


def test_breakdown_without_profile_is_404(client, make_candidate):
    c = make_candidate()
    resp = client.get(f"/api/icp/breakdown/{c.id}")
    assert resp.status_code == 404
    assert resp.json()["error"] == "No ICP profile saved yet"
