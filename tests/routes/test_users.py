# tests/routes/test_users.py
"""Tests for the /api/users endpoints."""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.configs import settings
from app.configs.settings import MAX_PAGE, MAX_PAGE_SIZE

CreateUser = Callable[..., Awaitable[dict[str, Any]]]


class TestCreateUser:
    """Tests for POST /api/users."""

    @pytest.mark.asyncio
    async def test_create_returns_201(self, client: AsyncClient, valid_user_data: dict[str, str]) -> None:
        response = await client.post("/api/users", data=valid_user_data)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User created successfully"
        user = body["user"]
        assert user["name"] == "Ada Lovelace"
        assert user["image"] == ""
        assert {"id", "createdAt", "updatedAt"} <= set(user)

    @pytest.mark.asyncio
    async def test_create_with_image(
        self,
        client: AsyncClient,
        create_user: CreateUser,
        valid_png_bytes: bytes,
    ) -> None:
        user = await create_user(image=("avatar.png", valid_png_bytes, "image/png"))

        assert user["image"].startswith("/uploads/user_images/")
        served = await client.get(user["image"])
        assert served.status_code == 200
        assert served.content == valid_png_bytes

    @pytest.mark.asyncio
    async def test_duplicate_phone_returns_409(
        self,
        client: AsyncClient,
        create_user: CreateUser,
        valid_user_data: dict[str, str],
    ) -> None:
        await create_user()

        response = await client.post("/api/users", data={**valid_user_data, "name": "Grace Hopper"})

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "message": "Phone number already exists",
            "error": "A user with this phone number already exists",
        }
        listing = await client.get("/api/users")
        assert listing.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_validation_errors_are_aggregated(
        self,
        client: AsyncClient,
        valid_user_data: dict[str, str],
        years_ago: Callable[[int], str],
    ) -> None:
        response = await client.post(
            "/api/users",
            data={**valid_user_data, "name": "A1", "phone": "123", "birthday": years_ago(10)},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        errors = {error["field"]: error["message"] for error in body["errors"]}
        assert errors == {
            "name": "Name can only contain letters and spaces",
            "phone": "Phone number must be between 10 and 15 characters",
            "birthday": "Age must be between 13 and 120 years",
        }

    @pytest.mark.asyncio
    async def test_missing_fields_are_reported(self, client: AsyncClient) -> None:
        response = await client.post("/api/users", data={"name": "Ada Lovelace"})

        assert response.status_code == 400
        errors = {error["field"]: error["message"] for error in response.json()["errors"]}
        assert errors == {
            "gender": "Gender is required",
            "birthday": "Birthday is required",
            "occupation": "Occupation is required",
            "phone": "Phone is required",
        }

    @pytest.mark.asyncio
    async def test_age_150_rejected(
        self,
        client: AsyncClient,
        valid_user_data: dict[str, str],
        years_ago: Callable[[int], str],
    ) -> None:
        response = await client.post("/api/users", data={**valid_user_data, "birthday": years_ago(150)})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_markup_is_stripped(self, client: AsyncClient, valid_user_data: dict[str, str]) -> None:
        response = await client.post(
            "/api/users",
            data={**valid_user_data, "name": "<b>Ada</b> Lovelace<script>alert(1)</script>"},
        )
        assert response.status_code == 201
        assert response.json()["user"]["name"] == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_multipart_markup_is_stripped(
        self,
        client: AsyncClient,
        valid_user_data: dict[str, str],
        valid_png_bytes: bytes,
    ) -> None:
        response = await client.post(
            "/api/users",
            data={**valid_user_data, "name": "<i>Ada Lovelace</i>"},
            files={"image": ("avatar.png", valid_png_bytes, "image/png")},
        )
        assert response.status_code == 201
        assert response.json()["user"]["name"] == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_unsupported_image_type(
        self,
        client: AsyncClient,
        valid_user_data: dict[str, str],
    ) -> None:
        response = await client.post(
            "/api/users",
            data=valid_user_data,
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 415
        assert response.json()["success"] is False

        listing = await client.get("/api/users")
        assert listing.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_with_image_discards_upload(
        self,
        client: AsyncClient,
        create_user: CreateUser,
        valid_user_data: dict[str, str],
        valid_png_bytes: bytes,
    ) -> None:
        await create_user()
        image_dir = Path(settings.UPLOADS_DIR) / "user_images"
        before = set(image_dir.iterdir()) if image_dir.exists() else set()

        response = await client.post(
            "/api/users",
            data=valid_user_data,
            files={"image": ("avatar.png", valid_png_bytes, "image/png")},
        )

        assert response.status_code == 409
        assert set(image_dir.iterdir()) == before


class TestListUsers:
    """Tests for GET /api/users."""

    @pytest.mark.asyncio
    async def test_empty_list(self, client: AsyncClient) -> None:
        response = await client.get("/api/users")

        assert response.status_code == 200
        body = response.json()
        assert body["users"] == []
        assert body["total"] == 0
        assert body["totalPages"] == 0
        assert body["currentPage"] == 1

    @pytest.mark.asyncio
    async def test_pagination_window(self, client: AsyncClient, create_user: CreateUser) -> None:
        for index in range(8):
            await create_user(phone=f"555000000{index}")
        everyone = (await client.get("/api/users", params={"limit": 8})).json()["users"]

        response = await client.get("/api/users", params={"page": 2, "limit": 3})

        body = response.json()
        assert body["total"] == 8
        assert body["totalPages"] == 3
        assert body["currentPage"] == 2
        assert [user["id"] for user in body["users"]] == [user["id"] for user in everyone[3:6]]

    @pytest.mark.asyncio
    async def test_default_limit_is_six(self, client: AsyncClient, create_user: CreateUser) -> None:
        for index in range(7):
            await create_user(phone=f"555000000{index}")

        body = (await client.get("/api/users")).json()
        assert len(body["users"]) == 6
        assert body["totalPages"] == 2

    @pytest.mark.asyncio
    async def test_search(self, client: AsyncClient, create_user: CreateUser) -> None:
        await create_user(name="Grace Hopper", occupation="Teacher", phone="5550000001")
        await create_user(name="Alan Turing", occupation="Student", phone="5550000002")

        body = (await client.get("/api/users", params={"search": "hopper"})).json()
        assert [user["name"] for user in body["users"]] == ["Grace Hopper"]

        body = (await client.get("/api/users", params={"search": "student"})).json()
        assert [user["name"] for user in body["users"]] == ["Alan Turing"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}, {"page": "abc"}])
    async def test_invalid_query(self, client: AsyncClient, params: dict[str, object]) -> None:
        response = await client.get("/api/users", params=params)
        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    @pytest.mark.asyncio
    async def test_huge_page_is_rejected(self, client: AsyncClient, create_user: CreateUser) -> None:
        await create_user()

        response = await client.get("/api/users", params={"page": "10000000000000000000"})

        assert response.status_code == 400
        assert [error["field"] for error in response.json()["errors"]] == ["page"]

    @pytest.mark.asyncio
    async def test_last_allowed_page_is_empty(self, client: AsyncClient, create_user: CreateUser) -> None:
        await create_user()

        response = await client.get("/api/users", params={"page": MAX_PAGE, "limit": MAX_PAGE_SIZE})

        assert response.status_code == 200
        body = response.json()
        assert body["users"] == []
        assert body["total"] == 1
        assert body["currentPage"] == MAX_PAGE

    @pytest.mark.asyncio
    async def test_second_read_is_cached(self, client: AsyncClient, create_user: CreateUser) -> None:
        await create_user()

        first = (await client.get("/api/users", params={"page": 1})).json()
        second = (await client.get("/api/users", params={"page": 1})).json()

        assert "_cached" not in first
        assert second["_cached"] is True
        assert "_cacheTime" in second
        assert second["users"] == first["users"]
        assert second["total"] == first["total"]

    @pytest.mark.asyncio
    async def test_mutation_invalidates_cache(self, client: AsyncClient, create_user: CreateUser) -> None:
        await create_user()
        await client.get("/api/users")
        await create_user(name="Grace Hopper", phone="5559876543")

        fresh = (await client.get("/api/users")).json()

        assert "_cached" not in fresh
        assert fresh["total"] == 2

    @pytest.mark.asyncio
    async def test_failed_mutation_keeps_cache(
        self,
        client: AsyncClient,
        create_user: CreateUser,
        valid_user_data: dict[str, str],
    ) -> None:
        await create_user()
        await client.get("/api/users")
        await client.post("/api/users", data=valid_user_data)

        assert (await client.get("/api/users")).json()["_cached"] is True


class TestGetUser:
    """Tests for GET /api/users/{id}."""

    @pytest.mark.asyncio
    async def test_get_existing(self, client: AsyncClient, create_user: CreateUser) -> None:
        user = await create_user()

        response = await client.get(f"/api/users/{user['id']}")

        assert response.status_code == 200
        assert response.json() == user

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [str(uuid4()), "not-a-uuid"])
    async def test_missing_returns_404(self, client: AsyncClient, user_id: str) -> None:
        response = await client.get(f"/api/users/{user_id}")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "User not found"}


class TestUpdateUser:
    """Tests for PUT /api/users/{id}."""

    @pytest.mark.asyncio
    async def test_name_only_update_keeps_image(
        self,
        client: AsyncClient,
        create_user: CreateUser,
        valid_png_bytes: bytes,
    ) -> None:
        user = await create_user(image=("avatar.png", valid_png_bytes, "image/png"))

        response = await client.put(f"/api/users/{user['id']}", data={"name": "Grace Hopper"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User updated successfully"
        updated = body["user"]
        assert updated["name"] == "Grace Hopper"
        assert updated["image"] == user["image"]
        assert updated["phone"] == user["phone"]
        assert updated["createdAt"] == user["createdAt"]

    @pytest.mark.asyncio
    async def test_new_image_replaces_old(
        self,
        client: AsyncClient,
        create_user: CreateUser,
        valid_png_bytes: bytes,
        valid_jpeg_bytes: bytes,
    ) -> None:
        user = await create_user(image=("avatar.png", valid_png_bytes, "image/png"))

        response = await client.put(
            f"/api/users/{user['id']}",
            files={"image": ("new.jpg", valid_jpeg_bytes, "image/jpeg")},
        )

        assert response.status_code == 200
        new_image = response.json()["user"]["image"]
        assert new_image != user["image"]
        assert new_image.endswith(".jpg")
        assert (await client.get(user["image"])).status_code == 404
        assert (await client.get(new_image)).status_code == 200

    @pytest.mark.asyncio
    async def test_update_missing_returns_404(self, client: AsyncClient) -> None:
        response = await client.put(f"/api/users/{uuid4()}", data={"name": "Grace Hopper"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_validation(self, client: AsyncClient, create_user: CreateUser) -> None:
        user = await create_user()

        response = await client.put(f"/api/users/{user['id']}", data={"occupation": "Pilot"})

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"field": "occupation", "message": "Occupation must be Student, Engineer, Teacher, or Unemployed"},
        ]

    @pytest.mark.asyncio
    async def test_update_to_taken_phone_returns_409(
        self,
        client: AsyncClient,
        create_user: CreateUser,
    ) -> None:
        first = await create_user()
        second = await create_user(phone="5559876543")

        response = await client.put(f"/api/users/{second['id']}", data={"phone": first["phone"]})

        assert response.status_code == 409


class TestDeleteUser:
    """Tests for DELETE /api/users/{id}."""

    @pytest.mark.asyncio
    async def test_delete_existing(
        self,
        client: AsyncClient,
        create_user: CreateUser,
        valid_png_bytes: bytes,
    ) -> None:
        user = await create_user(image=("avatar.png", valid_png_bytes, "image/png"))

        response = await client.delete(f"/api/users/{user['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User deleted successfully"
        assert "timestamp" in body
        assert (await client.get(f"/api/users/{user['id']}")).status_code == 404
        assert (await client.get(user["image"])).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_missing_returns_404(self, client: AsyncClient, create_user: CreateUser) -> None:
        await create_user()

        response = await client.delete(f"/api/users/{uuid4()}")

        assert response.status_code == 404
        assert (await client.get("/api/users")).json()["total"] == 1
