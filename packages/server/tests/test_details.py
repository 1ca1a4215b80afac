"""
Integration tests for project details ("parts") and the audit log.

Tests cover:
- Part CRUD and listing by project or organization
- Status transitions append exactly one audit entry; unchanged status none
- Empty or same-value patch returns "No changes"; null clears location
- Legacy `newStatus` field
- Audit write failure does not undo the update
- Audit entries outlive deleted parts
- Write policy (project-level vs organization membership)
"""

from __future__ import annotations

import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from app.models.audit_log import AuditLogEntry
from app.models.project_detail import ProjectDetail
from app.services import details as detail_service
from parttrack_shared.schemas.details import DetailPatch


async def patch(client, actor, body):
    return await client.patch("/details", json=body, headers=actor.headers)


async def audit_entries(session_factory):
    async with session_factory() as s:
        return (await s.execute(select(AuditLogEntry))).scalars().all()


class TestDetailPatchSchema:
    def test_changes_only_include_supplied_fields(self):
        body = DetailPatch.model_validate({"detailId": "00000000-0000-0000-0000-000000000001", "name": "Nut"})
        assert body.changes() == {"name": "Nut"}

    def test_legacy_status_field(self):
        body = DetailPatch.model_validate(
            {"detail_id": "00000000-0000-0000-0000-000000000001", "newStatus": "delayed"}
        )
        assert body.changes() == {"status": "delayed"}

    def test_empty_patch(self):
        body = DetailPatch.model_validate({"detailId": "00000000-0000-0000-0000-000000000001"})
        assert body.changes() == {}

    def test_null_location_is_kept_null_name_is_dropped(self):
        body = DetailPatch.model_validate(
            {"detailId": "00000000-0000-0000-0000-000000000001", "location": None, "name": None}
        )
        assert body.changes() == {"location": None}


class TestUpdateDetail:
    async def test_clear_location(self, api, client, session_factory):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])
        assert detail["location"] == "Dock 4"

        response = await patch(client, owner, {"detailId": detail["id"], "location": None})
        assert response.status_code == 200
        assert response.json()["changed"] is True
        assert response.json()["detail"]["location"] is None

        async with session_factory() as s:
            stored = await s.get(ProjectDetail, uuid.UUID(detail["id"]))
            assert stored.location is None

    async def test_null_name_is_ignored(self, api, client):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"], name="Bolt")

        response = await patch(client, owner, {"detailId": detail["id"], "name": None})
        assert response.status_code == 200
        assert response.json()["changed"] is False
        assert response.json()["detail"]["name"] == "Bolt"

    async def test_same_values_report_no_changes(self, api, client, session_factory):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"], name="Bolt")
        async with session_factory() as s:
            before = (await s.get(ProjectDetail, uuid.UUID(detail["id"]))).updated_at

        response = await patch(
            client, owner, {"detailId": detail["id"], "status": "ready", "name": "Bolt"}
        )
        body = response.json()
        assert response.status_code == 200
        assert body["changed"] is False
        assert body["message"] == "No changes"
        async with session_factory() as s:
            after = (await s.get(ProjectDetail, uuid.UUID(detail["id"]))).updated_at
        assert after == before


class TestDetailCrud:
    async def test_create_and_list(self, api, client):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"], name="Bolt")
        assert detail["status"] == "ready"
        assert detail["location"] == "Dock 4"

        listing = await client.get("/details", params={"projectId": project["id"]}, headers=owner.headers)
        assert [d["id"] for d in listing.json()["project_details"]] == [detail["id"]]

    async def test_invalid_status(self, api, client):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        response = await client.post(
            "/details",
            json={"projectId": project["id"], "name": "Bolt", "status": "lost"},
            headers=owner.headers,
        )
        assert response.status_code == 400

    async def test_list_requires_a_scope(self, api, client):
        owner = await api.signup("a@example.com")
        response = await client.get("/details", headers=owner.headers)
        assert response.status_code == 400

    async def test_requires_session(self, client):
        response = await client.get("/details", params={"projectId": "00000000-0000-0000-0000-000000000001"})
        assert response.status_code == 401

    async def test_list_by_org_is_filtered(self, api, client):
        owner = await api.signup("a@example.com")
        user = await api.add_member(owner, "u@example.com")
        p1 = await api.create_project(owner, "P1")
        p2 = await api.create_project(owner, "P2")
        d1 = await api.create_detail(owner, p1["id"], name="Visible")
        await api.create_detail(owner, p2["id"], name="Hidden")
        await client.post(
            f"/projects/{p1['id']}/users", json={"userId": str(user.user_id)}, headers=owner.headers
        )

        everything = await client.get(
            "/details", params={"organizationId": str(owner.org_id)}, headers=owner.headers
        )
        assert len(everything.json()["project_details"]) == 2

        mine = await client.get(
            "/details", params={"organizationId": str(owner.org_id)}, headers=user.headers
        )
        assert [d["id"] for d in mine.json()["project_details"]] == [d1["id"]]

    async def test_delete(self, api, client):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        response = await client.request("DELETE", "/details", json={"detailId": detail["id"]}, headers=owner.headers)
        assert response.status_code == 200

        missing = await patch(client, owner, {"detailId": detail["id"], "name": "Ghost"})
        assert missing.status_code == 404


class TestStatusAudit:
    async def test_transition_appends_one_entry(self, api, client, session_factory):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        response = await patch(client, owner, {"detailId": detail["id"], "status": "delayed"})
        assert response.status_code == 200
        body = response.json()
        assert body["changed"] is True
        assert body["detail"]["status"] == "delayed"

        entries = await audit_entries(session_factory)
        assert len(entries) == 1
        assert (entries[0].old_status, entries[0].new_status) == ("ready", "delayed")
        assert entries[0].org_id == owner.org_id
        assert str(entries[0].detail_id) == detail["id"]

    async def test_same_status_appends_nothing(self, api, client, session_factory):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        response = await patch(client, owner, {"detailId": detail["id"], "status": "ready"})
        assert response.status_code == 200
        assert await audit_entries(session_factory) == []

    async def test_name_change_appends_nothing(self, api, client, session_factory):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        response = await patch(client, owner, {"detailId": detail["id"], "name": "Washer", "location": "Bay 2"})
        assert response.json()["detail"]["name"] == "Washer"
        assert response.json()["detail"]["location"] == "Bay 2"
        assert await audit_entries(session_factory) == []

    async def test_empty_patch_is_not_an_error(self, api, client):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        response = await patch(client, owner, {"detailId": detail["id"]})
        assert response.status_code == 200
        assert response.json()["changed"] is False
        assert response.json()["message"] == "No changes"
        assert response.json()["detail"]["status"] == "ready"

    async def test_legacy_new_status_field(self, api, client, session_factory):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        response = await patch(client, owner, {"detailId": detail["id"], "newStatus": "in_transit"})
        assert response.json()["detail"]["status"] == "in_transit"
        assert len(await audit_entries(session_factory)) == 1

    async def test_audit_failure_keeps_the_update(self, api, client, session_factory, monkeypatch):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        async def broken_append(*args, **kwargs):
            raise SQLAlchemyError("audit table unavailable")

        monkeypatch.setattr("app.services.audit_log.append_status_change", broken_append)

        response = await patch(client, owner, {"detailId": detail["id"], "status": "delayed"})
        assert response.status_code == 200
        assert response.json()["detail"]["status"] == "delayed"

        async with session_factory() as s:
            stored = await s.get(ProjectDetail, uuid.UUID(detail["id"]))
            assert stored.status == "delayed"
        assert await audit_entries(session_factory) == []


class TestLogs:
    async def test_newest_first_with_part_names(self, api, client):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"], name="Gear")
        await patch(client, owner, {"detailId": detail["id"], "status": "in_transit"})
        await patch(client, owner, {"detailId": detail["id"], "status": "delayed"})

        response = await client.get("/logs", params={"projectId": project["id"]}, headers=owner.headers)
        assert response.status_code == 200
        logs = response.json()["logs"]
        assert [(e["old_status"], e["new_status"]) for e in logs] == [
            ("in_transit", "delayed"),
            ("ready", "in_transit"),
        ]
        assert {e["part_name"] for e in logs} == {"Gear"}

    async def test_entries_survive_part_deletion(self, api, client):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])
        await patch(client, owner, {"detailId": detail["id"], "status": "delayed"})
        await client.request("DELETE", "/details", json={"detailId": detail["id"]}, headers=owner.headers)

        response = await client.get("/logs", params={"projectId": project["id"]}, headers=owner.headers)
        logs = response.json()["logs"]
        assert len(logs) == 1
        assert logs[0]["part_name"] == "Unknown Part"

    async def test_page_size(self, api, client):
        owner = await api.signup("a@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])
        statuses = ["in_transit", "delayed", "ready"] * 8
        for status in statuses:
            await patch(client, owner, {"detailId": detail["id"], "status": status})

        response = await client.get("/logs", params={"projectId": project["id"]}, headers=owner.headers)
        assert len(response.json()["logs"]) == 20

    async def test_requires_project_access(self, api, client):
        owner = await api.signup("a@example.com")
        user = await api.add_member(owner, "u@example.com")
        project = await api.create_project(owner)
        response = await client.get("/logs", params={"projectId": project["id"]}, headers=user.headers)
        assert response.status_code == 403


class TestWritePolicy:
    async def test_project_policy_requires_project_access(self, api, client):
        owner = await api.signup("a@example.com")
        user = await api.add_member(owner, "u@example.com")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        create = await client.post(
            "/details", json={"projectId": project["id"], "name": "Nope"}, headers=user.headers
        )
        assert create.status_code == 403
        update = await patch(client, user, {"detailId": detail["id"], "status": "delayed"})
        assert update.status_code == 403

    async def test_organization_policy_allows_any_member(self, api, client, monkeypatch):
        monkeypatch.setattr(detail_service.settings, "detail_write_policy", "organization")
        owner = await api.signup("a@example.com")
        user = await api.add_member(owner, "u@example.com")
        outsider = await api.signup("z@example.com", org_name="Else")
        project = await api.create_project(owner)
        detail = await api.create_detail(owner, project["id"])

        update = await patch(client, user, {"detailId": detail["id"], "status": "delayed"})
        assert update.status_code == 200

        denied = await patch(client, outsider, {"detailId": detail["id"], "status": "ready"})
        assert denied.status_code == 403

        # Reads still follow the project rule
        listing = await client.get("/details", params={"projectId": project["id"]}, headers=user.headers)
        assert listing.status_code == 403
