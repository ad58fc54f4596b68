"""Tests for segment API endpoints."""

from httpx import AsyncClient


async def create_segment(client: AsyncClient, card_ids: list[str], **extra) -> dict:
    response = await client.post(
        "/segments", json={"name": "Set", "set_code": "tst", "card_ids": card_ids, **extra}
    )
    assert response.status_code == 201
    return response.json()


class TestSegmentCrud:
    async def test_create(self, client: AsyncClient) -> None:
        data = await create_segment(client, ["a", "b"], offset=2)

        assert data["card_count"] == 2
        assert data["offset"] == 2
        assert data["spacers_before"] == {}

    async def test_offset_limit(self, client: AsyncClient) -> None:
        response = await client.post("/segments", json={"name": "Set", "offset": 10})

        assert response.status_code == 422

    async def test_update_and_clear_target(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a"], target_container_id="b1")

        response = await client.put(
            f"/segments/{segment['id']}", json={"name": "Renamed", "clear_target": True}
        )

        data = response.json()
        assert data["name"] == "Renamed"
        assert data["target_container_id"] is None

    async def test_get_missing(self, client: AsyncClient) -> None:
        assert (await client.get("/segments/nope")).status_code == 404

    async def test_delete_drops_flags(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a"])
        await client.post(f"/ownership/{segment['id']}/0/owned")

        response = await client.delete(f"/segments/{segment['id']}")

        assert response.json()["deleted"] is True
        assert (await client.get("/ownership")).json()["owned"] == []


class TestCardEdits:
    async def test_insert_consumes_blank(self, client: AsyncClient) -> None:
        """Inserting in front of a card with one blank uses that blank."""
        segment = await create_segment(client, ["a", "b", "c"])
        await client.post(f"/segments/{segment['id']}/spacers/2")

        response = await client.post(
            f"/segments/{segment['id']}/cards", json={"card_id": "new", "before_position": 2}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["position"] == 2
        assert data["segment"]["card_ids"] == ["a", "b", "new", "c"]
        assert data["segment"]["spacers_before"] == {}

    async def test_insert_rekeys_ownership(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a", "b"])
        await client.post(f"/ownership/{segment['id']}/1/owned")

        await client.post(
            f"/segments/{segment['id']}/cards", json={"card_id": "new", "before_position": 0}
        )

        assert (await client.get("/ownership")).json()["owned"] == [f"{segment['id']}:2"]

    async def test_append(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a"])

        response = await client.post(f"/segments/{segment['id']}/cards", json={"card_id": "z"})

        assert response.json()["position"] == 1

    async def test_remove(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a", "b"])
        await client.post(f"/ownership/{segment['id']}/0/owned")

        response = await client.delete(f"/segments/{segment['id']}/cards/0")

        assert response.json()["card_id"] == "a"
        assert (await client.get("/ownership")).json()["owned"] == []

    async def test_remove_out_of_range(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a"])

        response = await client.delete(f"/segments/{segment['id']}/cards/5")

        assert response.status_code == 404

    async def test_remove_negative_position(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a"])

        response = await client.delete(f"/segments/{segment['id']}/cards/-1")

        assert response.status_code == 422
        stored = (await client.get(f"/segments/{segment['id']}")).json()
        assert stored["card_ids"] == ["a"]


class TestSpacerEdits:
    async def test_add_and_remove(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a", "b"])

        added = await client.post(f"/segments/{segment['id']}/spacers/1")
        removed = await client.delete(f"/segments/{segment['id']}/spacers/1")

        assert added.json()["spacer_count"] == 1
        assert removed.json()["spacer_count"] == 0
        assert removed.json()["changed"] is True

    async def test_out_of_range_is_noop(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a"])

        response = await client.post(f"/segments/{segment['id']}/spacers/3")

        assert response.json()["changed"] is False
        stored = (await client.get(f"/segments/{segment['id']}")).json()
        assert stored["spacers_before"] == {}

    async def test_negative_position_rejected(self, client: AsyncClient) -> None:
        segment = await create_segment(client, ["a"])

        added = await client.post(f"/segments/{segment['id']}/spacers/-1")
        removed = await client.delete(f"/segments/{segment['id']}/spacers/-1")

        assert added.status_code == 422
        assert removed.status_code == 422
