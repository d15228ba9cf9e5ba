"""Tests for the allow/disallow/assign/retract/sync builders."""

import pytest

from conftest import Comment, Post
from rolegate import Ability, PrincipalRef, Role


class TestAllow:
    """Granting abilities."""

    @pytest.mark.asyncio
    async def test_allow_is_idempotent(self, gate, store, user1):
        await gate.allow(user1).to("edit", Post)
        await gate.allow(user1).to("edit", Post)

        assert await store.list_abilities() == [Ability("edit", "Post")]
        assert await gate.list_abilities(user1) == [Ability("edit", "Post")]

    @pytest.mark.asyncio
    async def test_allow_returns_stored_abilities(self, gate, user1):
        granted = await gate.allow(user1).to(["read", "write"])

        assert [ability.name for ability in granted] == ["read", "write"]
        assert all(ability.id is not None for ability in granted)

    @pytest.mark.asyncio
    async def test_allow_role_creates_role(self, gate, store):
        await gate.allow("editor").to("edit")

        role = await store.find_role("editor")
        assert role is not None
        assert role.title == "Editor"

    @pytest.mark.asyncio
    async def test_allow_with_ability_entities(self, gate, user1):
        await gate.allow(user1).to([Ability("edit", "Post", "3"), Ability("delete", "Comment")])

        assert await gate.can(user1, "edit", Post(id=3)) is True
        assert await gate.can(user1, "delete", Comment(id=99)) is True

    @pytest.mark.asyncio
    async def test_allow_to_manage_type(self, gate, user1, post):
        await gate.allow(user1).to_manage(Post)

        assert await gate.can(user1, "edit", post) is True
        assert await gate.can(user1, "delete", Post) is True
        assert await gate.can(user1, "delete", Comment) is False
        assert await gate.can(user1, "delete") is False

    @pytest.mark.asyncio
    async def test_allow_to_manage_instance(self, gate, user1, post):
        await gate.allow(user1).to_manage(post)

        assert await gate.can(user1, "publish", post) is True
        assert await gate.can(user1, "publish", Post(id=11)) is False

    @pytest.mark.asyncio
    async def test_allow_everything(self, gate, user1, post):
        await gate.allow(user1).everything()

        assert await gate.can(user1, "anything") is True
        assert await gate.can(user1, "edit", post) is True
        assert await gate.can(user1, "delete", Comment) is True


class TestDisallow:
    """Removing exact grants."""

    @pytest.mark.asyncio
    async def test_disallow_inverts_allow(self, gate, user1, post):
        await gate.allow(user1).to("edit", post)
        assert await gate.can(user1, "edit", post) is True

        removed = await gate.disallow(user1).to("edit", post)

        assert removed == [Ability("edit", "Post", "10")]
        assert await gate.can(user1, "edit", post) is False

    @pytest.mark.asyncio
    async def test_disallow_only_matches_exact_scope(self, gate, user1, post):
        await gate.allow(user1).to("edit", Post)

        assert await gate.disallow(user1).to("edit", post) == []
        assert await gate.can(user1, "edit", post) is True

    @pytest.mark.asyncio
    async def test_disallow_never_creates_abilities(self, gate, store, user1):
        assert await gate.disallow(user1).to("edit", Post) == []
        assert await gate.disallow("ghost").to("edit") == []

        assert await store.list_abilities() == []
        assert await store.list_roles() == []

    @pytest.mark.asyncio
    async def test_disallow_to_manage_and_everything(self, gate, user1, post):
        await gate.allow(user1).to_manage(Post)
        await gate.allow(user1).everything()

        await gate.disallow(user1).everything()
        assert await gate.can(user1, "edit", Comment) is False
        assert await gate.can(user1, "edit", post) is True

        await gate.disallow(user1).to_manage(Post)
        assert await gate.can(user1, "edit", post) is False


class TestAssignAndRetract:
    """Role assignment edges."""

    @pytest.mark.asyncio
    async def test_assign_many_roles_to_many_principals(self, gate, user1, user2):
        roles = await gate.assign(["editor", Role("viewer")]).to([user1, user2])

        assert [role.name for role in roles] == ["editor", "viewer"]
        for user in (user1, user2):
            assert await gate.is_all(user, "editor", "viewer") is True

    @pytest.mark.asyncio
    async def test_assign_is_idempotent(self, gate, store, user1):
        await gate.assign("editor").to(user1)
        await gate.assign("editor").to(user1)

        assert await store.roles_of(PrincipalRef("User", "1")) == [Role("editor")]
        assert await store.principals_with_role(Role("editor")) == [PrincipalRef("User", "1")]

    @pytest.mark.asyncio
    async def test_assign_to_principal_ref(self, gate):
        ref = PrincipalRef("Team", 7)
        await gate.allow("owner").to("rename")
        await gate.assign("owner").to(ref)

        assert await gate.can(ref, "rename") is True

    @pytest.mark.asyncio
    async def test_retract_unknown_role_is_noop(self, gate, store, user1):
        assert await gate.retract("ghost").from_(user1) == []
        assert await store.list_roles() == []

    @pytest.mark.asyncio
    async def test_retract_unheld_role_is_noop(self, gate, user1, user2):
        await gate.assign("editor").to(user2)

        await gate.retract("editor").from_(user1)

        assert await gate.is_(user2, "editor") is True
        assert await gate.is_(user1, "editor") is False

    @pytest.mark.asyncio
    async def test_reassign_after_retract(self, gate, user1):
        await gate.allow("editor").to("edit")
        await gate.assign("editor").to(user1)
        await gate.retract("editor").from_(user1)
        await gate.assign("editor").to(user1)

        assert await gate.can(user1, "edit") is True


class TestSync:
    """Replacing a holder's edge set."""

    @pytest.mark.asyncio
    async def test_sync_roles(self, gate, user1):
        await gate.assign(["editor", "viewer"]).to(user1)

        await gate.sync(user1).roles(["viewer", "admin"])

        assert [role.name for role in await gate.list_roles(user1)] == ["viewer", "admin"]

    @pytest.mark.asyncio
    async def test_sync_roles_to_empty(self, gate, user1):
        await gate.assign("editor").to(user1)

        await gate.sync(user1).roles([])

        assert await gate.list_roles(user1) == []

    @pytest.mark.asyncio
    async def test_sync_abilities_keeps_role_grants(self, gate, user1):
        await gate.allow("editor").to("publish")
        await gate.assign("editor").to(user1)
        await gate.allow(user1).to(["read", "write"])

        await gate.sync(user1).abilities(["write", "comment"])

        assert await gate.can(user1, "read") is False
        assert await gate.can(user1, "write") is True
        assert await gate.can(user1, "comment") is True
        assert await gate.can(user1, "publish") is True

    @pytest.mark.asyncio
    async def test_sync_role_abilities(self, gate, user1, post):
        await gate.allow("editor").to("edit", Post)
        await gate.assign("editor").to(user1)

        await gate.sync("editor").abilities("delete", Post)

        assert await gate.can(user1, "edit", post) is False
        assert await gate.can(user1, "delete", post) is True


class TestEntityCreation:
    """Explicit role and ability creation."""

    @pytest.mark.asyncio
    async def test_role_with_title(self, gate):
        role = await gate.role("admin", title="Administrator")

        assert role.title == "Administrator"
        assert await gate.role("admin") == role

    @pytest.mark.asyncio
    async def test_ability_with_target(self, gate, post):
        ability = await gate.ability("edit", post, title="Edit the launch post")

        assert ability.key == ("edit", "Post", "10")
        assert ability.title == "Edit the launch post"
        assert (await gate.ability("edit", Post)).title == "Edit posts"


class TestIterableArguments:
    """Any iterable of names, roles or principals is accepted."""

    @pytest.mark.asyncio
    async def test_allow_generator_of_names(self, gate, user1):
        granted = await gate.allow(user1).to(name for name in ["read", "write"])

        assert [ability.name for ability in granted] == ["read", "write"]
        assert await gate.can_all(user1, ["read", "write"]) is True

    @pytest.mark.asyncio
    async def test_assign_and_retract_generators(self, gate, user1, user2):
        await gate.assign(role for role in ["editor", "viewer"]).to(
            user for user in [user1, user2]
        )

        assert await gate.is_all(user2, "editor", "viewer") is True

        await gate.retract(iter(["editor"])).from_(iter([user1, user2]))

        assert await gate.is_(user1, "editor") is False
        assert await gate.is_(user2, "viewer") is True

    @pytest.mark.asyncio
    async def test_sync_with_dict_keys(self, gate, user1):
        await gate.sync(user1).abilities({"read": None, "write": None}.keys())

        assert [ability.name for ability in await gate.list_abilities(user1)] == ["read", "write"]
