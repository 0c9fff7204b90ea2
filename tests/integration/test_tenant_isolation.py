"""
Cross-organization access tests
"""
import pytest

SCORES = {"customer_service": 7, "product_knowledge": 7, "process_efficiency": 7,
          "problem_solving": 7, "overall_score": 7}


@pytest.fixture
def tenants(make_organization, make_user, make_agent, make_transcript):
    master_org = make_organization(name="Platform", is_master=True)
    org_a = make_organization(name="Acme")
    org_b = make_organization(name="Globex")

    data = {
        "master_org": master_org,
        "org_a": org_a,
        "org_b": org_b,
        "master_admin": make_user(master_org, is_master_admin=True),
        "master_member": make_user(master_org, role="user"),
        "admin_a": make_user(org_a, role="admin"),
        "user_a": make_user(org_a, role="user"),
        "admin_b": make_user(org_b, role="admin"),
        "agent_a": make_agent(org_a),
        "agent_b": make_agent(org_b),
    }
    data["transcript_a"] = make_transcript(org_a, data["agent_a"], SCORES)
    data["transcript_b"] = make_transcript(org_b, data["agent_b"], SCORES)
    return data


class TestAgents:
    def test_list_only_own_organization(self, client, tenants, headers_for):
        response = client.get("/api/agents", headers=headers_for(tenants["admin_a"]))

        assert response.status_code == 200
        assert [a["id"] for a in response.json()["data"]] == [str(tenants["agent_a"].id)]
        assert response.json()["pagination"]["total"] == 1

    def test_other_organizations_agent_is_not_found(self, client, tenants, headers_for):
        headers = headers_for(tenants["admin_a"])
        agent_b = tenants["agent_b"]

        assert client.get(f"/api/agents/{agent_b.id}", headers=headers).status_code == 404
        assert client.put(f"/api/agents/{agent_b.id}", headers=headers, json={"first_name": "X"}).status_code == 404
        assert client.delete(f"/api/agents/{agent_b.id}", headers=headers).status_code == 404
        assert client.get(f"/api/agents/{agent_b.id}/performance", headers=headers).status_code == 404

    def test_requested_organization_ignored_for_tenant_users(self, client, tenants, headers_for):
        response = client.post("/api/agents", headers=headers_for(tenants["admin_a"]), json={
            "external_id": "AG-900",
            "first_name": "Sneaky",
            "last_name": "Agent",
            "organization_id": str(tenants["org_b"].id)
        })

        assert response.status_code == 201
        assert response.json()["organization_id"] == str(tenants["org_a"].id)

    def test_master_admin_sees_every_organization(self, client, tenants, headers_for):
        response = client.get("/api/agents", headers=headers_for(tenants["master_admin"]))

        ids = {a["id"] for a in response.json()["data"]}
        assert ids == {str(tenants["agent_a"].id), str(tenants["agent_b"].id)}

    def test_master_org_member_bypasses_scope(self, client, tenants, headers_for):
        response = client.get(f"/api/agents/{tenants['agent_b'].id}", headers=headers_for(tenants["master_member"]))
        assert response.status_code == 200

    def test_master_admin_creates_in_requested_organization(self, client, tenants, headers_for):
        headers = headers_for(tenants["master_admin"])
        payload = {"external_id": "AG-901", "first_name": "New", "last_name": "Hire"}

        default = client.post("/api/agents", headers=headers, json=payload)
        assert default.status_code == 201
        assert default.json()["organization_id"] == str(tenants["master_org"].id)

        response = client.post("/api/agents", headers=headers, json={
            **payload, "external_id": "AG-902", "organization_id": str(tenants["org_b"].id)
        })
        assert response.status_code == 201
        assert response.json()["organization_id"] == str(tenants["org_b"].id)

    def test_duplicate_external_id_in_organization(self, client, tenants, headers_for):
        response = client.post("/api/agents", headers=headers_for(tenants["admin_a"]), json={
            "external_id": tenants["agent_a"].external_id,
            "first_name": "Copy",
            "last_name": "Cat"
        })

        assert response.status_code == 400
        assert response.json()["error"] == "CONFLICT"


class TestTranscripts:
    def test_list_and_get_are_scoped(self, client, tenants, headers_for):
        headers = headers_for(tenants["user_a"])

        listed = client.get("/api/transcripts", headers=headers).json()
        assert [t["id"] for t in listed["data"]] == [str(tenants["transcript_a"].id)]
        assert "raw_transcript" not in listed["data"][0]

        assert client.get(f"/api/transcripts/{tenants['transcript_a'].id}", headers=headers).status_code == 200
        assert client.get(f"/api/transcripts/{tenants['transcript_b'].id}", headers=headers).status_code == 404
        assert client.delete(f"/api/transcripts/{tenants['transcript_b'].id}", headers=headers).status_code == 404

    def test_cannot_attach_other_organizations_agent(self, client, tenants, headers_for):
        response = client.post("/api/transcripts", headers=headers_for(tenants["user_a"]), json={
            "raw_transcript": "Agent: Hello",
            "agent_id": str(tenants["agent_b"].id)
        })

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_analytics_summary_is_scoped(self, client, tenants, headers_for):
        summary = client.get("/api/transcripts/analytics/summary", headers=headers_for(tenants["admin_b"])).json()

        assert sum(day["count"] for day in summary["timeline"]) == 1
        assert summary["timeline"][0]["avg_overall_score"] == 7.0
        assert summary["call_types"] == [{"call_type": "auto", "count": 1}]

    def test_master_admin_lists_everything(self, client, tenants, headers_for):
        listed = client.get("/api/transcripts", headers=headers_for(tenants["master_admin"])).json()
        assert listed["pagination"]["total"] == 2


class TestUsersAndOrganizations:
    def test_user_cannot_read_other_organization(self, client, tenants, headers_for):
        headers = headers_for(tenants["admin_a"])

        assert client.get(f"/api/organizations/{tenants['org_b'].id}", headers=headers).status_code == 403
        assert client.get(f"/api/organizations/{tenants['org_b'].id}/stats", headers=headers).status_code == 403
        assert client.get(f"/api/users/{tenants['admin_b'].id}", headers=headers).status_code == 403

    def test_tenant_admin_cannot_touch_organizationless_admin(self, client, db, tenants, make_user, headers_for):
        root = make_user(None, is_master_admin=True, email="root@example.com")
        headers = headers_for(tenants["admin_a"])

        assert client.get(f"/api/users/{root.id}", headers=headers).status_code == 403
        response = client.put(
            f"/api/users/{root.id}", headers=headers, json={"email": "evil@example.com", "is_active": False}
        )
        assert response.status_code == 403

        db.refresh(root)
        assert root.email == "root@example.com"
        assert root.is_active is True

    def test_master_org_member_cannot_change_roles(self, client, db, tenants, headers_for):
        member = tenants["master_member"]
        headers = headers_for(member)

        promote_self = client.put(f"/api/users/{member.id}", headers=headers, json={"role": "admin"})
        assert promote_self.status_code == 403

        other = client.put(f"/api/users/{tenants['user_a'].id}", headers=headers, json={"is_active": False})
        assert other.status_code == 403

        db.refresh(member)
        assert member.role == "user"

    def test_user_list_is_scoped(self, client, tenants, headers_for):
        listed = client.get("/api/users", headers=headers_for(tenants["admin_a"])).json()

        emails = {u["email"] for u in listed["data"]}
        assert emails == {tenants["admin_a"].email, tenants["user_a"].email}

    def test_master_admin_routes_reject_tenant_admins(self, client, tenants, headers_for):
        headers = headers_for(tenants["admin_a"])

        assert client.get("/api/master-admin/organizations", headers=headers).status_code == 403
        assert client.post("/api/agents/analytics/rebuild", headers=headers).status_code == 403
