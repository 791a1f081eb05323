import pytest
from easymove.utils.idempotency import get_idempotent, set_idempotent

pytestmark = pytest.mark.idempotency


@pytest.mark.asyncio
async def test_idemp_flow(fake_redis):
    key = "pytest-idemp"
    assert await get_idempotent(key) is None
    await set_idempotent(key, {"ok": True})
    found = await get_idempotent(key)
    assert found == {"ok": True}
    assert "idemp:pytest-idemp" in fake_redis.store


@pytest.mark.asyncio
async def test_idemp_without_key(fake_redis):
    await set_idempotent("", {"ok": True})
    assert await get_idempotent("") is None
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_idemp_without_redis(no_redis):
    await set_idempotent("pytest-idemp", {"ok": True})
    assert await get_idempotent("pytest-idemp") is None
