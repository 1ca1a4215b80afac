"""
Integration tests for organization membership and invitations.

Tests cover:
- Add-by-email: direct add for registered users, invitation otherwise
- Duplicate member / duplicate invitation conflicts
- Role updates and the Owner guards
- Member removal (including project roles)
- Invitation registration, expiry, listing and revocation
"""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import update
from sqlmodel import select

from app.models.base import utcnow
from app.models.invitation import Invitation
from app.models.project_role import ProjectUserRole
from app.models.user_org import UserOrgRole
from conftest import PASSWORD


def users_url(org_id) -> str:
    return f"/organizations/{org_id}/users"


class TestAddByEmail:
    async def test_registered_user_is_added_directly(self, api, client):
        owner = await api.signup("owner@example.com")
        other = await api.signup("other@example.com", org_name="Other")

        response = await api.invite(owner, owner.org_id, "other@example.com", role_id=2)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "added"
        assert body["user"]["id"] == str(other.user_id)
        assert body["user"]["role_id"] == 2

        listing = await client.get(users_url(owner.org_id), headers=owner.headers)
        roles = {u["email"]: u["role_id"] for u in listing.json()["users"]}
        assert roles == {"owner@example.com": 1, "other@example.com": 2}

    async def test_unregistered_email_is_invited(self, api):
        owner = await api.signup("owner@example.com")
        response = await api.invite(owner, owner.org_id, "Newbie@Example.com", role_id=3)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "invited"
        assert body["invitation"]["email"] == "newbie@example.com"
        assert body["invitation"]["organization_id"] == str(owner.org_id)
        assert body["invitation"]["role_id"] == 3

    async def test_duplicate_invitation(self, api):
        owner = await api.signup("owner@example.com")
        await api.invite(owner, owner.org_id, "newbie@example.com")
        response = await api.invite(owner, owner.org_id, "newbie@example.com")
        assert response.status_code == 400
        assert response.json() == {"error": "User already invited"}

    async def test_already_a_member(self, api):
        owner = await api.signup("owner@example.com")
        await api.add_member(owner, "member@example.com")
        response = await api.invite(owner, owner.org_id, "member@example.com")
        assert response.status_code == 400
        assert response.json() == {"error": "User already in organization"}

    async def test_owner_role_cannot_be_granted(self, api):
        owner = await api.signup("owner@example.com")
        response = await api.invite(owner, owner.org_id, "x@example.com", role_id=1)
        assert response.status_code == 403

    async def test_invalid_role_id(self, api):
        owner = await api.signup("owner@example.com")
        response = await api.invite(owner, owner.org_id, "x@example.com", role_id=9)
        assert response.status_code == 400

    async def test_plain_user_cannot_add(self, api):
        owner = await api.signup("owner@example.com")
        user = await api.add_member(owner, "user@example.com", role_id=3)
        response = await api.invite(user, owner.org_id, "friend@example.com")
        assert response.status_code == 403

    async def test_members_can_list(self, api, client):
        owner = await api.signup("owner@example.com")
        user = await api.add_member(owner, "user@example.com")
        response = await client.get(users_url(owner.org_id), headers=user.headers)
        assert response.status_code == 200
        assert len(response.json()["users"]) == 2


class TestRoleUpdates:
    async def test_admin_promotes_user(self, api, client):
        owner = await api.signup("owner@example.com")
        admin = await api.add_member(owner, "admin@example.com", role_id=2)
        user = await api.add_member(owner, "user@example.com", role_id=3)

        response = await client.put(
            users_url(owner.org_id),
            json={"userId": str(user.user_id), "roleId": 2},
            headers=admin.headers,
        )
        assert response.status_code == 200
        assert response.json()["role_id"] == 2

    async def test_owner_role_is_fixed(self, api, client):
        owner = await api.signup("owner@example.com")
        admin = await api.add_member(owner, "admin@example.com", role_id=2)

        response = await client.put(
            users_url(owner.org_id),
            json={"userId": str(owner.user_id), "roleId": 3},
            headers=admin.headers,
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Cannot modify Organization Owner role"}

    async def test_cannot_promote_to_owner(self, api, client, session_factory):
        owner = await api.signup("owner@example.com")
        user = await api.add_member(owner, "user@example.com")

        response = await client.put(
            users_url(owner.org_id),
            json={"userId": str(user.user_id), "roleId": 1},
            headers=owner.headers,
        )
        assert response.status_code == 403

        async with session_factory() as s:
            owners = (
                await s.execute(select(UserOrgRole).where(UserOrgRole.role_id == 1))
            ).scalars().all()
        assert [o.user_id for o in owners] == [owner.user_id]

    async def test_unknown_member(self, api, client):
        owner = await api.signup("owner@example.com")
        outsider = await api.signup("outsider@example.com", org_name="Else")
        response = await client.put(
            users_url(owner.org_id),
            json={"userId": str(outsider.user_id), "roleId": 2},
            headers=owner.headers,
        )
        assert response.status_code == 404


class TestRemoval:
    async def test_owner_cannot_be_removed(self, api, client):
        owner = await api.signup("owner@example.com")
        admin = await api.add_member(owner, "admin@example.com", role_id=2)
        response = await client.request(
            "DELETE",
            users_url(owner.org_id),
            json={"userId": str(owner.user_id)},
            headers=admin.headers,
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Cannot remove Organization Owner"}

    async def test_removal_revokes_access_and_project_roles(self, api, client, session_factory):
        owner = await api.signup("owner@example.com")
        user = await api.add_member(owner, "user@example.com")
        project = await api.create_project(owner)
        added = await client.post(
            f"/projects/{project['id']}/users",
            json={"userId": str(user.user_id)},
            headers=owner.headers,
        )
        assert added.status_code == 201

        response = await client.request(
            "DELETE",
            users_url(owner.org_id),
            json={"userId": str(user.user_id)},
            headers=owner.headers,
        )
        assert response.status_code == 200

        async with session_factory() as s:
            roles = (
                await s.execute(select(ProjectUserRole).where(ProjectUserRole.user_id == user.user_id))
            ).scalars().all()
        assert roles == []

        denied = await client.get(f"/organizations/{owner.org_id}", headers=user.headers)
        assert denied.status_code == 404
        hidden = await client.get(f"/projects/{project['id']}", headers=user.headers)
        assert hidden.status_code == 403


class TestInvitationRegistration:
    async def test_invite_then_register(self, api, client):
        owner = await api.signup("owner@example.com")
        response = await api.invite(owner, owner.org_id, "b@example.com", role_id=3)
        assert response.json()["status"] == "invited"

        member = await api.register_invite("b@example.com")
        orgs = await client.get("/organizations", headers=member.headers)
        assert orgs.json()["organizations"][0]["id"] == str(owner.org_id)
        assert orgs.json()["organizations"][0]["role_id"] == 3

        # The invitation is consumed
        again = await client.post(
            "/auth/register-invite",
            json={"email": "b@example.com", "password": PASSWORD, "firstName": "B", "lastName": "B"},
        )
        assert again.status_code == 400

    async def test_invited_admin_joins_as_admin(self, api, client):
        owner = await api.signup("owner@example.com")
        admin = await api.add_member(owner, "admin@example.com", role_id=2)
        orgs = await client.get("/organizations", headers=admin.headers)
        assert orgs.json()["organizations"][0]["role_id"] == 2

    async def test_no_invitation(self, client):
        response = await client.post(
            "/auth/register-invite",
            json={"email": "nobody@example.com", "password": PASSWORD, "firstName": "N", "lastName": "O"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or expired invitation"}

    async def test_expired_invitation(self, api, client, session_factory):
        owner = await api.signup("owner@example.com")
        await api.invite(owner, owner.org_id, "late@example.com")
        async with session_factory() as s:
            await s.execute(update(Invitation).values(expires_at=utcnow() - timedelta(seconds=1)))
            await s.commit()

        response = await client.post(
            "/auth/register-invite",
            json={"email": "late@example.com", "password": PASSWORD, "firstName": "L", "lastName": "Ate"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or expired invitation"}

    async def test_expired_invitation_can_be_reissued(self, api, session_factory):
        owner = await api.signup("owner@example.com")
        await api.invite(owner, owner.org_id, "late@example.com")
        async with session_factory() as s:
            await s.execute(update(Invitation).values(expires_at=utcnow() - timedelta(seconds=1)))
            await s.commit()

        response = await api.invite(owner, owner.org_id, "late@example.com")
        assert response.status_code == 201

        async with session_factory() as s:
            invitations = (await s.execute(select(Invitation))).scalars().all()
        assert len(invitations) == 1

    async def test_wrong_invitation_id(self, api, client):
        owner = await api.signup("owner@example.com")
        await api.invite(owner, owner.org_id, "b@example.com")
        response = await client.post(
            "/auth/register-invite",
            json={
                "email": "b@example.com",
                "password": PASSWORD,
                "firstName": "B",
                "lastName": "B",
                "invitationId": "00000000-0000-0000-0000-000000000000",
            },
        )
        assert response.status_code == 400


class TestInvitationManagement:
    async def test_list_and_revoke(self, api, client):
        owner = await api.signup("owner@example.com")
        created = await api.invite(owner, owner.org_id, "b@example.com")
        invitation_id = created.json()["invitation"]["id"]

        listing = await client.get(f"/organizations/{owner.org_id}/invitations", headers=owner.headers)
        assert [i["id"] for i in listing.json()["invitations"]] == [invitation_id]

        revoked = await client.delete(
            f"/organizations/{owner.org_id}/invitations/{invitation_id}", headers=owner.headers
        )
        assert revoked.status_code == 200

        listing = await client.get(f"/organizations/{owner.org_id}/invitations", headers=owner.headers)
        assert listing.json()["invitations"] == []

    async def test_users_cannot_see_invitations(self, api, client):
        owner = await api.signup("owner@example.com")
        user = await api.add_member(owner, "user@example.com")
        response = await client.get(f"/organizations/{owner.org_id}/invitations", headers=user.headers)
        assert response.status_code == 403

    async def test_revoke_unknown(self, api, client):
        owner = await api.signup("owner@example.com")
        response = await client.delete(
            f"/organizations/{owner.org_id}/invitations/00000000-0000-0000-0000-000000000000",
            headers=owner.headers,
        )
        assert response.status_code == 404
