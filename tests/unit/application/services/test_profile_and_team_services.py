"""Tests for ProfileService and TeamService."""

import pytest

from studyvault.application.services import ProfileService, TeamService


@pytest.mark.asyncio
async def test_profile_lifecycle(store):
    profiles = ProfileService(store)
    assert await profiles.load() is None

    created = await profiles.create("  Ada  ")
    assert created["id"] == "user_profile"
    assert created["name"] == "Ada"
    assert created["level"] == 1
    assert created["subjects"] == {}

    updated = await profiles.update(level=2, subjects={"Biology": 40}, id="ignored")
    assert updated["id"] == "user_profile"
    assert updated["level"] == 2
    assert updated["subjects"] == {"Biology": 40}
    assert updated["name"] == "Ada"

    assert await profiles.load() == updated
    assert await store.count("user_state") == 1


@pytest.mark.asyncio
async def test_profile_blank_name_rejected(store):
    with pytest.raises(ValueError):
        await ProfileService(store).create("")


@pytest.mark.asyncio
async def test_profile_update_without_profile(store):
    with pytest.raises(LookupError):
        await ProfileService(store).update(level=3)


@pytest.mark.asyncio
async def test_team_save_replaces(store):
    teams = TeamService(store)
    assert await teams.load() is None

    await teams.save({"theme": "dark", "members": ["Ada", "Grace"]})
    saved = await teams.save({"theme": "light"})

    loaded = await teams.load()
    assert loaded == saved
    assert loaded["id"] == "forranova_team"
    assert loaded["theme"] == "light"
    assert "members" not in loaded
    assert "updated_at" in loaded


@pytest.mark.asyncio
async def test_team_preferences_cannot_override_id(store):
    saved = await TeamService(store).save({"id": "other", "theme": "dark"})

    assert saved["id"] == "forranova_team"
    assert await store.get("team", "other") is None
