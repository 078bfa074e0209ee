import json

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def dataset_route(create_route) -> dict:
    return await create_route(path="/bookings/:id?", responseMode="DATASET_LOOKUP", lookupParamName="id")


def _records_url(route: dict) -> str:
    return f"/api/v1/routes/{route['id']}/dataset"


async def test_create_and_list(client: AsyncClient, dataset_route, scope_headers):
    text = await client.post(
        _records_url(dataset_route), json={"key": " a ", "valueJson": '{"n": 1}'}, headers=scope_headers
    )
    structured = await client.post(
        _records_url(dataset_route), json={"key": "b", "valueJson": {"n": 2}, "enabled": False}, headers=scope_headers
    )
    assert text.status_code == structured.status_code == 201
    assert text.json()["key"] == "a"

    listed = (await client.get(_records_url(dataset_route), headers=scope_headers)).json()
    assert [(r["key"], r["valueJson"], r["enabled"]) for r in listed] == [("a", {"n": 1}, True), ("b", {"n": 2}, False)]


async def test_duplicate_key_is_conflict_not_overwrite(client: AsyncClient, dataset_route, scope_headers):
    await client.post(_records_url(dataset_route), json={"key": "a", "valueJson": "1"}, headers=scope_headers)
    second = await client.post(_records_url(dataset_route), json={"key": "a", "valueJson": "2"}, headers=scope_headers)
    assert second.status_code == 409

    listed = (await client.get(_records_url(dataset_route), headers=scope_headers)).json()
    assert [r["valueJson"] for r in listed] == [1]


@pytest.mark.parametrize("payload", [{"key": "", "valueJson": "1"}, {"key": "a", "valueJson": "{bad"}, {"key": "a"}])
async def test_invalid_payloads(client: AsyncClient, dataset_route, scope_headers, payload):
    response = await client.post(_records_url(dataset_route), json=payload, headers=scope_headers)
    assert response.status_code == 400


async def test_update_record(client: AsyncClient, dataset_route, scope_headers):
    record = (
        await client.post(_records_url(dataset_route), json={"key": "a", "valueJson": "1"}, headers=scope_headers)
    ).json()
    url = f"{_records_url(dataset_route)}/{record['id']}"

    updated = await client.put(url, json={"valueJson": json.dumps({"v": 2}), "enabled": False}, headers=scope_headers)
    assert updated.status_code == 200
    assert updated.json()["valueJson"] == {"v": 2}
    assert updated.json()["enabled"] is False

    nothing = await client.put(url, json={}, headers=scope_headers)
    assert (nothing.status_code, nothing.json()) == (400, {"error": "Nothing to update"})


async def test_record_of_other_route_is_not_found(client: AsyncClient, dataset_route, create_route, scope_headers):
    other = await create_route(path="/other")
    record = (
        await client.post(_records_url(dataset_route), json={"key": "a", "valueJson": "1"}, headers=scope_headers)
    ).json()
    response = await client.delete(f"{_records_url(other)}/{record['id']}", headers=scope_headers)
    assert (response.status_code, response.json()) == (404, {"error": "Dataset record not found"})


async def test_route_of_other_scope_is_not_found(client: AsyncClient, dataset_route, other_scope_headers):
    response = await client.get(_records_url(dataset_route), headers=other_scope_headers)
    assert response.status_code == 404


async def test_delete_record(client: AsyncClient, dataset_route, scope_headers):
    record = (
        await client.post(_records_url(dataset_route), json={"key": "a", "valueJson": "1"}, headers=scope_headers)
    ).json()
    response = await client.delete(f"{_records_url(dataset_route)}/{record['id']}", headers=scope_headers)
    assert response.status_code == 204
    assert (await client.get(_records_url(dataset_route), headers=scope_headers)).json() == []
