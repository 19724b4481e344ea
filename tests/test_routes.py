import httpx
import pytest

from ledgerscan.core.database import get_db
from main import app

HDFC_RULE = {
    "name": "HDFC card",
    "sender_match": "HDFCBK",
    "amount_regex": [r"Rs\.?\s*([\d,]+\.?\d*)"],
    "merchant_extractions": [{"start_text": "to", "end_text": "on"}],
    "priority": 20,
}
SWIGGY = {
    "id": "sms-1",
    "sender": "VM-HDFCBK",
    "text": "Rs.250.00 debited from a/c XX1234 to Swiggy on 12-05-23",
    "date": 1709294400000,
}


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"
    assert response.json()["enabled_rules"] == 0


async def test_rule_crud(client):
    created = await client.post("/api/rules", json=HDFC_RULE)
    assert created.status_code == 201
    rule = created.json()
    assert rule["sender_match"] == ["HDFCBK"]
    assert rule["merchant_extractions"] == [{"start_text": "to", "end_text": "on", "start_index": 1}]

    updated = await client.put(f"/api/rules/{rule['id']}", json={"priority": 5, "skip_condition": "refund"})
    assert updated.status_code == 200
    assert updated.json()["priority"] == 5
    assert updated.json()["skip_condition"] == ["refund"]

    toggled = await client.post(f"/api/rules/{rule['id']}/toggle", json={"enabled": False})
    assert toggled.json()["enabled"] is False

    listing = await client.get("/api/rules")
    assert [r["name"] for r in listing.json()] == ["HDFC card"]

    assert (await client.delete(f"/api/rules/{rule['id']}")).status_code == 204
    assert (await client.delete(f"/api/rules/{rule['id']}")).status_code == 404


async def test_create_rule_requires_patterns(client):
    response = await client.post("/api/rules", json={**HDFC_RULE, "amount_regex": []})
    assert response.status_code == 422


async def test_update_cannot_empty_an_enabled_rule(client):
    rule = (await client.post("/api/rules", json=HDFC_RULE)).json()
    response = await client.put(f"/api/rules/{rule['id']}", json={"sender_match": []})
    assert response.status_code == 400


async def test_missing_rule_is_404(client):
    assert (await client.put("/api/rules/999", json={"priority": 1})).status_code == 404
    assert (await client.post("/api/rules/999/toggle", json={"enabled": True})).status_code == 404


async def test_scan_stores_then_flags_duplicates(client):
    await client.post("/api/rules", json=HDFC_RULE)

    first = await client.post("/api/scan", json={"messages": [SWIGGY]})
    second = await client.post("/api/scan", json={"messages": [SWIGGY]})

    body = first.json()
    assert first.status_code == 200
    assert body["success_count"] == 1
    assert body["total_processed"] == 1
    assert body["transactions"][0]["merchant_name"] == "Swiggy"
    assert body["transactions"][0]["source"] == "sms"
    assert second.json()["duplicate_count"] == 1

    stored = (await client.get("/api/transactions")).json()
    assert len(stored) == 1
    assert stored[0]["external_id"] == "sms-1"

    # the rule matched on both scans even though the second one was a duplicate
    rules = (await client.get("/api/rules")).json()
    assert rules[0]["success_count"] == 2


async def test_scan_rejects_unknown_fields(client):
    response = await client.post("/api/scan", json={"messages": [], "window": 5})
    assert response.status_code == 422


async def test_rule_tester_does_not_persist(client):
    await client.post("/api/rules", json=HDFC_RULE)

    response = await client.post("/api/rules/test", json={"message": SWIGGY})

    body = response.json()
    assert body["matched"] is True
    assert body["rule_name"] == "HDFC card"
    assert body["merchant_name"] == "Swiggy"
    assert float(body["amount"]) == 250.0
    assert (await client.get("/api/transactions")).json() == []
    assert (await client.get("/api/rules")).json()[0]["success_count"] == 0


async def test_rule_tester_with_inline_rules(client):
    payload = {
        "message": {**SWIGGY, "text": "Rs.250 refund processed"},
        "rules": [{**HDFC_RULE, "skip_condition": ["refund"]}],
    }

    body = (await client.post("/api/rules/test", json=payload)).json()

    assert body["matched"] is False
    assert body["globally_skipped"] is True


async def test_suggest_patterns(client):
    response = await client.post(
        "/api/rules/suggest", json={"text": "Rs.250 debited at Swiggy on 12-05-23"}
    )
    body = response.json()
    assert body["amount_patterns"][0] == r"(?:Rs|INR|₹)\.?\s*([\d,.]+)"
    assert body["merchant_patterns"]
    assert r"^(.+?)\s+on\s+\d+" in body["merchant_cleaning_patterns"]


async def test_enrich_endpoint(client, db):
    from conftest import make_transaction
    from ledgerscan.domain.transactions.repository import TransactionRepository

    repo = TransactionRepository(db)
    await repo.add(make_transaction(category="dining", notes=""))
    await repo.add(make_transaction(merchant_name="swiggy"))

    response = await client.post("/api/transactions/enrich")

    assert response.json() == {"updated": 1}
    categories = sorted(t["category"] for t in (await client.get("/api/transactions")).json())
    assert categories == ["dining", "dining"]


async def test_merchant_note_crud(client):
    created = await client.post(
        "/api/merchant-notes", json={"merchant_name": "Swiggy", "category": "dining"}
    )
    assert created.status_code == 201
    note = created.json()
    assert note["notes"] == ""

    conflict = await client.post("/api/merchant-notes", json={"merchant_name": "swiggy"})
    assert conflict.status_code == 409

    updated = await client.put(f"/api/merchant-notes/{note['id']}", json={"notes": "food delivery"})
    assert updated.json()["notes"] == "food delivery"
    assert updated.json()["category"] == "dining"

    assert [n["merchant_name"] for n in (await client.get("/api/merchant-notes")).json()] == ["Swiggy"]
    assert (await client.delete(f"/api/merchant-notes/{note['id']}")).status_code == 204
    assert (await client.delete(f"/api/merchant-notes/{note['id']}")).status_code == 404


async def test_merchant_note_rejects_blank_name(client):
    response = await client.post("/api/merchant-notes", json={"merchant_name": "   "})
    assert response.status_code == 422


async def test_scan_applies_merchant_note(client):
    await client.post("/api/rules", json=HDFC_RULE)
    await client.post(
        "/api/merchant-notes",
        json={"merchant_name": "Swiggy", "category": "dining", "notes": "food delivery"},
    )

    body = (await client.post("/api/scan", json={"messages": [SWIGGY]})).json()

    assert body["transactions"][0]["category"] == "dining"
    assert body["transactions"][0]["notes"] == "food delivery"
