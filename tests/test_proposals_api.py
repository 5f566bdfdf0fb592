import asyncio

from sqlalchemy.exc import IntegrityError

from conftest import create_project, register, submit_proposal
from app.repositories.contract_repo import ContractRepository


async def _get_proposal(client, owner, proposal_id):
    resp = await client.get(f"/proposals/{proposal_id}", headers=owner["headers"])
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


async def _get_project(client, owner, project_id):
    resp = await client.get(f"/projects/{project_id}", headers=owner["headers"])
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


async def _contracts(client, user):
    resp = await client.get("/contracts", headers=user["headers"])
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


async def test_submit_proposal(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)

    assert proposal["status"] == "submitted"
    assert proposal["bid_amount"] == 4200
    assert proposal["freelancer_id"] == freelancer_a["user"]["freelancer_profile"]["id"]


async def test_only_freelancers_submit_proposals(client, client_user):
    project = await create_project(client, client_user)
    resp = await client.post(
        "/proposals", json={"project_id": project["id"], "bid_amount": 100}, headers=client_user["headers"]
    )
    assert resp.status_code == 403


async def test_duplicate_proposal_is_rejected(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    first = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)

    resp = await client.post(
        "/proposals",
        json={"project_id": project["id"], "bid_amount": 3900},
        headers=freelancer_a["headers"],
    )
    assert resp.status_code == 409

    stored = await _get_proposal(client, freelancer_a, first["id"])
    assert stored["bid_amount"] == 4200
    assert stored["status"] == "submitted"


async def test_price_field_must_match_project_type(client, client_user, freelancer_a):
    fixed = await create_project(client, client_user)
    resp = await client.post(
        "/proposals", json={"project_id": fixed["id"], "hourly_rate": 50}, headers=freelancer_a["headers"]
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "bid_amount is required for fixed projects"

    hourly = await create_project(client, client_user, title="Support", project_type="hourly")
    resp = await client.post(
        "/proposals", json={"project_id": hourly["id"], "bid_amount": 500}, headers=freelancer_a["headers"]
    )
    assert resp.status_code == 400


async def test_cannot_submit_to_closed_project(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    await client.patch(f"/projects/{project['id']}", json={"status": "cancelled"}, headers=client_user["headers"])

    resp = await client.post(
        "/proposals", json={"project_id": project["id"], "bid_amount": 100}, headers=freelancer_a["headers"]
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/proposals", json={"project_id": "missing", "bid_amount": 100}, headers=freelancer_a["headers"]
    )
    assert resp.status_code == 404


async def test_accept_proposal_awards_project_and_creates_contract(client, client_user, freelancer_a, freelancer_b):
    project = await create_project(client, client_user)
    a = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    b = await submit_proposal(client, freelancer_b, project["id"], bid_amount=4800)

    resp = await client.post(f"/proposals/{a['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["proposal"]["status"] == "accepted"

    contract = body["data"]["contract"]
    assert contract["project_id"] == project["id"]
    assert contract["freelancer_id"] == a["freelancer_id"]
    assert contract["client_id"] == project["client_id"]
    assert contract["contract_type"] == "fixed"
    assert contract["agreed_amount"] == 4200
    assert contract["hourly_rate"] is None
    assert contract["currency"] == "USD"
    assert contract["status"] == "active"

    assert (await _get_proposal(client, client_user, b["id"]))["status"] == "rejected"
    assert (await _get_project(client, client_user, project["id"]))["status"] == "awarded"
    assert len(await _contracts(client, client_user)) == 1


async def test_accept_hourly_proposal_uses_hourly_rate(client, client_user, freelancer_a):
    project = await create_project(client, client_user, project_type="hourly", budget_min=30, budget_max=90)
    proposal = await submit_proposal(client, freelancer_a, project["id"], hourly_rate=65, estimated_hours=120)

    resp = await client.post(f"/proposals/{proposal['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 200, resp.text
    contract = resp.json()["data"]["contract"]
    assert contract["contract_type"] == "hourly"
    assert contract["hourly_rate"] == 65
    assert contract["agreed_amount"] is None


async def test_accept_leaves_withdrawn_proposals_alone(client, client_user, freelancer_a, freelancer_b):
    project = await create_project(client, client_user)
    a = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    b = await submit_proposal(client, freelancer_b, project["id"], bid_amount=4800)

    resp = await client.patch(f"/proposals/{b['id']}", json={"status": "withdrawn"}, headers=freelancer_b["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "withdrawn"

    resp = await client.post(f"/proposals/{a['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 200
    assert (await _get_proposal(client, client_user, b["id"]))["status"] == "withdrawn"


async def test_cannot_accept_withdrawn_proposal(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    await client.patch(f"/proposals/{proposal['id']}", json={"status": "withdrawn"}, headers=freelancer_a["headers"])

    resp = await client.post(f"/proposals/{proposal['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 400
    assert (await _get_project(client, client_user, project["id"]))["status"] == "open"


async def test_accept_twice_fails(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)

    resp = await client.post(f"/proposals/{proposal['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 200

    resp = await client.post(f"/proposals/{proposal['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 400
    assert resp.json()["message"] == "This proposal has already been accepted"
    assert len(await _contracts(client, client_user)) == 1


async def test_accept_on_awarded_project_fails(client, client_user, freelancer_a, freelancer_b):
    project = await create_project(client, client_user)
    a = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    b = await submit_proposal(client, freelancer_b, project["id"], bid_amount=4800)

    await client.post(f"/proposals/{a['id']}/accept", headers=client_user["headers"])

    # B 已被自動拒絕
    resp = await client.post(f"/proposals/{b['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 400
    assert len(await _contracts(client, client_user)) == 1


async def test_accept_on_cancelled_project_fails(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    await client.patch(f"/projects/{project['id']}", json={"status": "cancelled"}, headers=client_user["headers"])

    resp = await client.post(f"/proposals/{proposal['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 400
    assert resp.json()["message"] == "Project is not open for accepting proposals"
    assert (await _get_proposal(client, client_user, proposal["id"]))["status"] == "submitted"
    assert await _contracts(client, client_user) == []


async def test_reject_does_not_touch_other_proposals(client, client_user, freelancer_a, freelancer_b):
    project = await create_project(client, client_user)
    a = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    b = await submit_proposal(client, freelancer_b, project["id"], bid_amount=4800)

    resp = await client.post(f"/proposals/{b['id']}/reject", headers=client_user["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "rejected"

    assert (await _get_proposal(client, client_user, a["id"]))["status"] == "submitted"
    assert (await _get_project(client, client_user, project["id"]))["status"] == "open"
    assert await _contracts(client, client_user) == []


async def test_cannot_reject_accepted_proposal(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    await client.post(f"/proposals/{proposal['id']}/accept", headers=client_user["headers"])

    resp = await client.post(f"/proposals/{proposal['id']}/reject", headers=client_user["headers"])
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cannot reject an accepted proposal"


async def test_only_project_owner_decides(client, client_user, other_client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)

    for action in ("accept", "reject"):
        resp = await client.post(f"/proposals/{proposal['id']}/{action}", headers=other_client_user["headers"])
        assert resp.status_code == 403
        resp = await client.post(f"/proposals/{proposal['id']}/{action}", headers=freelancer_a["headers"])
        assert resp.status_code == 403

    assert (await _get_proposal(client, client_user, proposal["id"]))["status"] == "submitted"
    assert (await _get_project(client, client_user, project["id"]))["status"] == "open"


async def test_admin_can_accept(client, client_user, freelancer_a, admin_user):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)

    resp = await client.post(f"/proposals/{proposal['id']}/accept", headers=admin_user["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["contract"]["client_id"] == project["client_id"]


async def test_freelancer_edits_bid(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    url = f"/proposals/{proposal['id']}"

    resp = await client.patch(url, json={"bid_amount": 3900, "cover_letter": "Updated"}, headers=freelancer_a["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["bid_amount"] == 3900

    # 提案者不能自行改成 shortlisted / accepted
    resp = await client.patch(url, json={"status": "accepted"}, headers=freelancer_a["headers"])
    assert resp.status_code == 403


async def test_client_edits_status_only(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    url = f"/proposals/{proposal['id']}"

    resp = await client.patch(url, json={"bid_amount": 1}, headers=client_user["headers"])
    assert resp.status_code == 403

    resp = await client.patch(url, json={"status": "shortlisted"}, headers=client_user["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "shortlisted"

    resp = await client.patch(url, json={"status": "accepted"}, headers=client_user["headers"])
    assert resp.status_code == 400

    # shortlisted 的提案仍可被接受
    resp = await client.post(f"{url}/accept", headers=client_user["headers"])
    assert resp.status_code == 200


async def test_withdrawn_proposal_cannot_be_edited(client, client_user, freelancer_a):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    url = f"/proposals/{proposal['id']}"

    await client.patch(url, json={"status": "withdrawn"}, headers=freelancer_a["headers"])
    resp = await client.patch(url, json={"bid_amount": 100}, headers=freelancer_a["headers"])
    assert resp.status_code == 400


async def test_proposal_visibility(client, client_user, other_client_user, freelancer_a, freelancer_b):
    project = await create_project(client, client_user)
    a = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    await submit_proposal(client, freelancer_b, project["id"], bid_amount=4800)

    resp = await client.get("/proposals", headers=freelancer_a["headers"])
    data = resp.json()["data"]
    assert [p["id"] for p in data] == [a["id"]]
    assert data[0]["project"]["title"] == "React Dashboard Revamp"

    resp = await client.get("/proposals", headers=client_user["headers"])
    assert resp.json()["count"] == 2

    resp = await client.get("/proposals", headers=other_client_user["headers"])
    assert resp.json()["count"] == 0

    resp = await client.get(f"/proposals/{a['id']}", headers=freelancer_b["headers"])
    assert resp.status_code == 403


async def test_delete_proposal(client, client_user, freelancer_a, freelancer_b):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)

    resp = await client.delete(f"/proposals/{proposal['id']}", headers=freelancer_b["headers"])
    assert resp.status_code == 403

    resp = await client.delete(f"/proposals/{proposal['id']}", headers=freelancer_a["headers"])
    assert resp.status_code == 200

    # 刪除後可重新提案
    await submit_proposal(client, freelancer_a, project["id"], bid_amount=4000)


async def test_third_freelancer_is_rejected_on_accept(client, client_user, freelancer_a, freelancer_b):
    carol = await register(client, "freelancer", "carol@example.com")
    project = await create_project(client, client_user)
    a = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    b = await submit_proposal(client, freelancer_b, project["id"], bid_amount=4800)
    c = await submit_proposal(client, carol, project["id"], bid_amount=5000)
    await client.patch(f"/proposals/{c['id']}", json={"status": "shortlisted"}, headers=client_user["headers"])

    await client.post(f"/proposals/{a['id']}/accept", headers=client_user["headers"])

    resp = await client.get("/proposals", params={"project_id": project["id"]}, headers=client_user["headers"])
    statuses = {p["id"]: p["status"] for p in resp.json()["data"]}
    assert statuses == {a["id"]: "accepted", b["id"]: "rejected", c["id"]: "rejected"}


async def test_client_cannot_withdraw_for_freelancer(client, client_user, freelancer_a, admin_user):
    project = await create_project(client, client_user)
    proposal = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    url = f"/proposals/{proposal['id']}"

    for owner in (client_user, admin_user):
        resp = await client.patch(url, json={"status": "withdrawn"}, headers=owner["headers"])
        assert resp.status_code == 403
    assert (await _get_proposal(client, client_user, proposal["id"]))["status"] == "submitted"


async def test_concurrent_accepts_award_project_once(client, client_user, freelancer_a, freelancer_b):
    project = await create_project(client, client_user)
    a = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    b = await submit_proposal(client, freelancer_b, project["id"], bid_amount=4800)

    responses = await asyncio.gather(
        client.post(f"/proposals/{a['id']}/accept", headers=client_user["headers"]),
        client.post(f"/proposals/{b['id']}/accept", headers=client_user["headers"]),
    )
    assert sorted(r.status_code for r in responses) == [200, 400]

    contracts = await _contracts(client, client_user)
    assert len(contracts) == 1
    winner = next(r for r in responses if r.status_code == 200).json()["data"]["proposal"]
    assert contracts[0]["freelancer_id"] == winner["freelancer_id"]

    statuses = {
        p["id"]: (await _get_proposal(client, client_user, p["id"]))["status"] for p in (a, b)
    }
    assert sorted(statuses.values()) == ["accepted", "rejected"]
    assert (await _get_project(client, client_user, project["id"]))["status"] == "awarded"


async def test_failed_contract_insert_rolls_back_accept(
    client, client_user, freelancer_a, freelancer_b, monkeypatch
):
    project = await create_project(client, client_user)
    a = await submit_proposal(client, freelancer_a, project["id"], bid_amount=4200)
    b = await submit_proposal(client, freelancer_b, project["id"], bid_amount=4800)

    async def failing_add_contract(self, contract):
        # 前面的提案 / 案件更新已送出，最後一步才失敗
        raise IntegrityError(
            "INSERT INTO contracts", {}, Exception("CHECK constraint failed: ck_contract_pricing_matches_type")
        )

    monkeypatch.setattr(ContractRepository, "add_contract", failing_add_contract)

    resp = await client.post(f"/proposals/{a['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 400
    assert resp.json()["message"] == "Value violates constraint"

    assert (await _get_proposal(client, client_user, a["id"]))["status"] == "submitted"
    assert (await _get_proposal(client, client_user, b["id"]))["status"] == "submitted"
    assert (await _get_project(client, client_user, project["id"]))["status"] == "open"
    assert await _contracts(client, client_user) == []

    # 還原後可以正常接受
    monkeypatch.undo()
    resp = await client.post(f"/proposals/{a['id']}/accept", headers=client_user["headers"])
    assert resp.status_code == 200
