"""
Forum Backend — Question Endpoint Tests
========================================

What we test:
    ✅ Post → list → get → update → delete through the HTTP surface
    ✅ Only the owner may update or delete (401 otherwise), 404 once gone
    ✅ Protected routes require a session token
    ✅ /all-questions and /search are not captured by /{question_id}
"""

import pytest


async def _post(client, user, title="How do I X?", description="Steps I tried", tag=None):
    response = await client.post(
        "/api/questions/question",
        json={"title": title, "description": description, "tag": tag},
        headers=user["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["question"]


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_requires_token(self, client):
        response = await client.post("/api/questions/question", json={"title": "t", "description": "d"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_returns_question(self, client, create_user):
        user = await create_user()
        response = await client.post(
            "/api/questions/question",
            json={"title": "How do I X?", "description": "Steps", "tag": "python"},
            headers=user["headers"],
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Question created successfully"
        assert body["question"]["userid"] == user["userid"]
        assert body["question"]["questionid"].startswith(f"q_{user['userid']}_")

    @pytest.mark.asyncio
    async def test_create_missing_description(self, client, create_user):
        user = await create_user()
        response = await client.post(
            "/api/questions/question", json={"title": "Only a title"}, headers=user["headers"]
        )
        assert response.status_code == 400


class TestListAndSearch:

    @pytest.mark.asyncio
    async def test_pagination_shape(self, client, create_user):
        user = await create_user()
        for n in range(1, 8):
            await _post(client, user, title=f"Q{n}")

        response = await client.get("/api/questions/all-questions", params={"page": 2, "limit": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 7
        assert body["page"] == 2
        assert body["totalPages"] == 2
        assert [q["title"] for q in body["questions"]] == ["Q2", "Q1"]
        assert body["questions"][0]["username"] == "abebe"

    @pytest.mark.asyncio
    async def test_defaults_without_params(self, client, create_user):
        user = await create_user()
        for n in range(6):
            await _post(client, user, title=f"Q{n}")

        response = await client.get("/api/questions/all-questions", params={"page": "x", "limit": "0"})

        assert response.status_code == 200
        assert response.json()["page"] == 1
        assert len(response.json()["questions"]) == 5

    @pytest.mark.asyncio
    async def test_search_route_not_shadowed(self, client, create_user):
        user = await create_user()
        await _post(client, user, title="Deploying FastAPI", description="uvicorn workers")
        await _post(client, user, title="Something else", description="unrelated")

        response = await client.get("/api/questions/search", params={"query": "fastapi"})

        assert response.status_code == 200
        assert [q["title"] for q in response.json()["questions"]] == ["Deploying FastAPI"]

    @pytest.mark.asyncio
    async def test_search_without_query(self, client):
        response = await client.get("/api/questions/search")
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "query"


class TestOwnership:

    @pytest.mark.asyncio
    async def test_only_owner_can_delete(self, client, create_user):
        owner = await create_user("abebe")
        other = await create_user("chaltu")
        question = await _post(client, owner)
        url = f"/api/questions/{question['questionid']}"

        response = await client.delete(url, headers=other["headers"])
        assert response.status_code == 401

        response = await client.delete(url, headers=owner["headers"])
        assert response.status_code == 200
        assert response.json() == {"message": "Question deleted successfully"}

        response = await client.get(url)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_only_owner_can_update(self, client, create_user):
        owner = await create_user("abebe")
        other = await create_user("chaltu")
        question = await _post(client, owner, title="Original")
        url = f"/api/questions/{question['questionid']}"

        response = await client.put(
            url, json={"title": "Hijacked", "description": "d"}, headers=other["headers"]
        )
        assert response.status_code == 401

        response = await client.put(
            url, json={"title": "Edited", "description": "Better steps"}, headers=owner["headers"]
        )
        assert response.status_code == 200
        assert response.json()["question"]["title"] == "Edited"

        response = await client.get(url)
        assert response.json()["question"]["title"] == "Edited"
        assert response.json()["question"]["description"] == "Better steps"

    @pytest.mark.asyncio
    async def test_update_unknown_question(self, client, create_user):
        user = await create_user()
        response = await client.put(
            "/api/questions/q_1_0_000000",
            json={"title": "t", "description": "d"},
            headers=user["headers"],
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_token(self, client, create_user):
        user = await create_user()
        question = await _post(client, user)
        response = await client.delete(f"/api/questions/{question['questionid']}")
        assert response.status_code == 401


class TestInputLimits:

    @pytest.mark.asyncio
    async def test_huge_page_number(self, client, create_user):
        user = await create_user()
        await _post(client, user)

        response = await client.get(
            "/api/questions/all-questions", params={"page": "100000000000000000000", "limit": "5"}
        )

        assert response.status_code == 200
        assert response.json()["questions"] == []
        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_over_length_title_is_400(self, client, create_user):
        user = await create_user()
        response = await client.post(
            "/api/questions/question",
            json={"title": "x" * 201, "description": "d"},
            headers=user["headers"],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["details"] == {"field": "title", "max_length": 200}

    @pytest.mark.asyncio
    async def test_over_length_tag_is_400(self, client, create_user):
        user = await create_user()
        response = await client.post(
            "/api/questions/question",
            json={"title": "t", "description": "d", "tag": "t" * 51},
            headers=user["headers"],
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "tag"
