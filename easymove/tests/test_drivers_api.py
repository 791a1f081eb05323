import pytest

pytestmark = pytest.mark.integration

DRIVER = {
    "name": "Alex Morgan",
    "email": "alex.morgan@example.com",
    "phone": "07700 900456",
    "experience_years": 4,
    "van_type": "luton",
    "location": "Bristol",
}


class TestDriverOnboarding:

    @pytest.mark.asyncio
    async def test_register_driver(self, test_client):
        response = await test_client.post("/drivers/register", json=DRIVER)
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == DRIVER["email"]
        assert data["van_type"] == "luton"
        assert data["is_approved"] is False

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, test_client):
        await test_client.post("/drivers/register", json=DRIVER)
        response = await test_client.post("/drivers/register", json=DRIVER)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_registration(self, test_client):
        response = await test_client.post("/drivers/register", json={**DRIVER, "email": "nope", "experience_years": -1})
        assert response.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.auth
    async def test_list_requires_admin(self, test_client, operator_headers):
        assert (await test_client.get("/drivers")).status_code == 401
        assert (await test_client.get("/drivers", headers=operator_headers)).status_code == 403

    @pytest.mark.asyncio
    async def test_approve_driver(self, test_client, admin_headers):
        driver = (await test_client.post("/drivers/register", json=DRIVER)).json()
        await test_client.post("/drivers/register", json={**DRIVER, "email": "second@example.com"})

        pending = await test_client.get("/drivers?approved=false", headers=admin_headers)
        assert len(pending.json()) == 2

        response = await test_client.post(f"/drivers/{driver['id']}/approve", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["is_approved"] is True

        approved = await test_client.get("/drivers?approved=true", headers=admin_headers)
        assert [d["id"] for d in approved.json()] == [driver["id"]]

    @pytest.mark.asyncio
    async def test_approve_unknown_driver(self, test_client, admin_headers):
        response = await test_client.post("/drivers/999/approve", headers=admin_headers)
        assert response.status_code == 404
