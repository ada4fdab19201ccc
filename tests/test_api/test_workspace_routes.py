"""Tests for workspace endpoints and their role gates."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from src.auth.identity import Principal
from src.auth.dependencies import get_current_principal
from src.db.models.invite import InviteScope
from src.db.models.workspace import WorkspaceRole
from src.exceptions import ForbiddenError, GoneError, NotFoundError
from src.services.invites import Redemption
from src.services.workspaces import WorkspaceView


def _view(owner_id, role=WorkspaceRole.OWNER, member_count=1) -> WorkspaceView:
    return WorkspaceView(
        id=uuid4(),
        name="Acme",
        description=None,
        logo_image=None,
        owner_id=owner_id,
        member_count=member_count,
        my_role=role,
        created_at=datetime.now(timezone.utc),
    )


class TestCreateWorkspace:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_admin_creates_workspace(self, client, principal) -> None:
        with patch("src.api.routers.workspaces.WorkspaceService") as service_cls:
            service_cls.return_value.create = AsyncMock(return_value=_view(principal.id))
            response = await client.post("/v1/workspaces", json={"name": "Acme"})

        assert response.status_code == 201
        body = response.json()
        assert body["my_role"] == "Owner"
        assert body["member_count"] == 1

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_non_admin_forbidden(self, app, client, db_session) -> None:
        member = Principal(id=uuid4(), email="m@example.com", display_name="m")

        async def override() -> Principal:
            return member

        app.dependency_overrides[get_current_principal] = override
        response = await client.post("/v1/workspaces", json={"name": "Acme"})

        assert response.status_code == 403
        assert response.json()["error"] == "SYSTEM_ADMIN_REQUIRED"
        db_session.commit.assert_not_awaited()


class TestWorkspaceSettingsGate:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_member_can_read_settings(self, client, resolver, principal) -> None:
        resolver.resolve_workspace_role.return_value = WorkspaceRole.MEMBER
        view = _view(uuid4(), role=WorkspaceRole.MEMBER, member_count=3)
        with patch("src.api.routers.workspaces.WorkspaceService") as service_cls:
            service_cls.return_value.get_view = AsyncMock(return_value=view)
            response = await client.get(f"/v1/workspaces/{view.id}/settings")

        assert response.status_code == 200
        assert response.json()["my_role"] == "Member"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_member_cannot_update_settings(self, client, resolver) -> None:
        resolver.resolve_workspace_role.return_value = WorkspaceRole.MEMBER

        response = await client.put(f"/v1/workspaces/{uuid4()}/settings", json={"name": "New"})

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "WORKSPACE_ROLE_REQUIRED"
        assert body["details"] == {"required_roles": ["Owner"]}

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_non_member_is_403(self, client, resolver) -> None:
        resolver.resolve_workspace_role.side_effect = ForbiddenError(
            "Not a member of this workspace", code="NOT_WORKSPACE_MEMBER"
        )

        response = await client.get(f"/v1/workspaces/{uuid4()}/settings")

        assert response.status_code == 403
        assert response.json()["error"] == "NOT_WORKSPACE_MEMBER"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_missing_workspace_is_404(self, client, resolver) -> None:
        resolver.resolve_workspace_role.side_effect = NotFoundError(
            "Workspace not found", code="WORKSPACE_NOT_FOUND"
        )

        response = await client.get(f"/v1/workspaces/{uuid4()}/settings")

        assert response.status_code == 404


class TestJoinWorkspace:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_join_returns_workspace_view(self, client) -> None:
        view = _view(uuid4(), role=WorkspaceRole.MEMBER, member_count=4)
        redemption = Redemption(
            scope=InviteScope.WORKSPACE, scope_id=view.id, role=WorkspaceRole.MEMBER
        )
        with patch("src.api.routers.workspaces.InviteService") as invite_cls, patch(
            "src.api.routers.workspaces.WorkspaceService"
        ) as service_cls:
            invite_cls.return_value.redeem = AsyncMock(return_value=redemption)
            service_cls.return_value.get_view = AsyncMock(return_value=view)
            response = await client.post("/v1/workspaces/join", json={"token": "tok"})

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(view.id)
        assert body["name"] == "Acme"
        assert body["member_count"] == 4
        assert body["my_role"] == "Member"
        kwargs = invite_cls.return_value.redeem.call_args.kwargs
        assert kwargs["expected_scope"] == InviteScope.WORKSPACE
        service_cls.return_value.get_view.assert_awaited_once_with(
            view.id, WorkspaceRole.MEMBER
        )

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_exhausted_invite_is_410(self, client) -> None:
        with patch("src.api.routers.workspaces.InviteService") as service_cls:
            service_cls.return_value.redeem = AsyncMock(
                side_effect=GoneError("Invite has no uses left", code="INVITE_EXHAUSTED")
            )
            response = await client.post("/v1/workspaces/join", json={"token": "tok"})

        assert response.status_code == 410
        assert response.json()["error"] == "INVITE_EXHAUSTED"
