"""HTTP tests for the tournament API."""

import asyncio

import pytest
from fastapi import HTTPException, WebSocketDisconnect
from fastapi.testclient import TestClient

from config.settings import AppConfig, AuthConfig, StoreConfig
from tournaments import TournamentAPI
from tournaments.exceptions import StoreError
from web.api import app
from web.services import configure_services

pytestmark = pytest.mark.integration

PASSWORD = "Debate2026"


@pytest.fixture
def client():
    configure_services(
        AppConfig(
            store=StoreConfig(backend="memory"),
            auth=AuthConfig(development_mode=True),
        )
    )
    with TestClient(app) as test_client:
        yield test_client


def register(client, email: str, name: str, role: str, code: str | None = None) -> dict:
    body = {"email": email, "password": PASSWORD, "name": name, "role": role}
    if code:
        body["tournament_code"] = code
    response = client.post("/v1/auth/register", json=body)
    assert response.status_code == 200, response.text
    data = response.json()
    return {
        "id": data["profile"]["id"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
    }


@pytest.fixture
def cast(client) -> dict:
    """An admin's tournament with two debaters and three judges registered."""
    admin = register(client, "avery@debatemate.org", "Avery Admin", "Admin")
    response = client.post(
        "/v1/api/tournaments",
        json={"name": "Spring Invitational", "topic": "Resolved: ..."},
        headers=admin["headers"],
    )
    assert response.status_code == 200, response.text
    code = response.json()["tournament"]["id"]

    people = {"admin": admin, "code": code}
    people["aff"] = register(client, "alex@debatemate.org", "Alex Rivera", "Debater", code)
    people["neg"] = register(client, "blair@debatemate.org", "Blair Chen", "Debater", code)
    for i, name in enumerate(["Jordan Lee", "Jamie Park", "Jesse Ortiz"], start=1):
        people[f"j{i}"] = register(client, f"judge{i}@debatemate.org", name, "Judge", code)
    return people


def open_round(client, cast, round_type: str = "Prelim") -> str:
    response = client.post(
        f"/v1/api/tournaments/{cast['code']}/debates",
        json={
            "topic": "Resolved: civil disobedience is justified in a democracy.",
            "type": round_type,
            "stage": "Round 1",
            "aff_id": cast["aff"]["id"],
            "aff_name": "Alex Rivera",
            "neg_id": cast["neg"]["id"],
            "neg_name": "Blair Chen",
        },
        headers=cast["admin"]["headers"],
    )
    assert response.status_code == 200, response.text
    return response.json()["id"]


def submit(client, cast, debate_id: str, judge: str, decision: str):
    return client.put(
        f"/v1/api/tournaments/{cast['code']}/debates/{debate_id}/ballot",
        json={"aff_score": 28.5, "neg_score": 28.0, "decision": decision, "rfd": "Weighing."},
        headers=cast[judge]["headers"],
    )


def test_health(client) -> None:
    response = client.get("/v1/api/health")
    assert response.status_code == 200
    assert response.json() == {"isAlive": True, "store": "MemoryObjectStore"}


def test_settings(client) -> None:
    assert client.get("/v1/api/settings").json()["max_judges_per_round"] == 3


class TestAuth:
    def test_login_and_me(self, client) -> None:
        register(client, "pat@debatemate.org", "Pat Judge", "Judge")

        response = client.post(
            "/v1/auth/login", json={"email": "PAT@debatemate.org", "password": PASSWORD}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["name"] == "Pat Judge"

    def test_wrong_password(self, client) -> None:
        register(client, "pat@debatemate.org", "Pat Judge", "Judge")

        response = client.post(
            "/v1/auth/login", json={"email": "pat@debatemate.org", "password": "Wrong1234"}
        )
        assert response.status_code == 401

    def test_duplicate_email(self, client) -> None:
        register(client, "pat@debatemate.org", "Pat Judge", "Judge")
        body = {"email": "pat@debatemate.org", "password": PASSWORD, "name": "Pat", "role": "Judge"}

        assert client.post("/v1/auth/register", json=body).status_code == 409

    def test_weak_password(self, client) -> None:
        body = {"email": "pat@debatemate.org", "password": "password", "name": "Pat", "role": "Judge"}
        assert client.post("/v1/auth/register", json=body).status_code == 422

    def test_unknown_code_rolls_back_registration(self, client) -> None:
        body = {
            "email": "pat@debatemate.org",
            "password": PASSWORD,
            "name": "Pat Judge",
            "role": "Judge",
            "tournament_code": "NOPE42",
        }

        response = client.post("/v1/auth/register", json=body)
        assert response.status_code == 404
        assert response.json()["detail"] == "Tournament code not found."

        body.pop("tournament_code")
        assert client.post("/v1/auth/register", json=body).status_code == 200

    def test_duplicate_name_in_tournament(self, client, cast) -> None:
        body = {
            "email": "other@debatemate.org",
            "password": PASSWORD,
            "name": "Alex Rivera",
            "role": "Judge",
            "tournament_code": cast["code"].lower(),
        }

        response = client.post("/v1/auth/register", json=body)
        assert response.status_code == 400
        assert "already used" in response.json()["detail"]

    def test_requires_token(self, client) -> None:
        assert client.get("/v1/api/me/assignments").status_code == 401
        assert client.get(
            "/v1/api/me/assignments", headers={"Authorization": "Bearer junk"}
        ).status_code == 401


class TestTournamentFlow:
    def test_full_round(self, client, cast) -> None:
        code = cast["code"]
        debate_id = open_round(client, cast, "Elimination")

        for judge in ("j1", "j2", "j3"):
            response = client.post(
                f"/v1/api/tournaments/{code}/debates/{debate_id}/judges",
                json={"judge_id": cast[judge]["id"]},
                headers=cast["admin"]["headers"],
            )
            assert response.json()["seated"] is True

        assignments = client.get("/v1/api/me/assignments", headers=cast["j1"]["headers"])
        assert [d["id"] for d in assignments.json()["assignments"]] == [debate_id]

        assert submit(client, cast, debate_id, "j1", "Aff").status_code == 200
        assert submit(client, cast, debate_id, "j2", "Neg").status_code == 200
        assert submit(client, cast, debate_id, "j3", "Aff").status_code == 200

        detail = client.get(f"/v1/api/tournaments/{code}/debates/{debate_id}").json()
        assert detail["winner"] == "Aff"
        assert len(detail["results"]) == 3

        response = client.post(
            f"/v1/api/tournaments/{code}/debates/{debate_id}/finalize",
            headers=cast["admin"]["headers"],
        )
        assert response.json() == {"debate_id": debate_id, "winner": "Aff", "status": "Closed"}

        standings = client.get(f"/v1/api/tournaments/{code}/standings").json()["standings"]
        assert [(s["name"], s["wins"], s["losses"]) for s in standings] == [
            ("Alex Rivera", 1, 0),
            ("Blair Chen", 0, 1),
        ]
        assert standings[1]["status"] == "Eliminated"

        record = client.get("/v1/api/me/record", headers=cast["aff"]["headers"]).json()
        assert (record["wins"], record["losses"]) == (1, 0)

        late = submit(client, cast, debate_id, "j1", "Neg")
        assert late.status_code == 409
        assert late.json()["detail"] == "Round is closed. No changes were made."

    def test_debaters_are_notified(self, client, cast) -> None:
        open_round(client, cast)

        response = client.get("/v1/api/me/notifications", headers=cast["aff"]["headers"])
        notifications = response.json()["notifications"]
        assert notifications[0]["message"].startswith("You are assigned Affirmative")

        dismissed = client.delete(
            f"/v1/api/me/notifications/{notifications[0]['id']}",
            headers=cast["aff"]["headers"],
        )
        assert dismissed.json()["dismissed"] is True

    def test_nudge(self, client, cast) -> None:
        debate_id = open_round(client, cast)

        response = client.post(
            f"/v1/api/tournaments/{cast['code']}/debates/{debate_id}/nudge/{cast['j2']['id']}",
            headers=cast["admin"]["headers"],
        )
        assert response.json()["notification"]["message"] == "Please submit your ballot!"

    def test_non_admin_gets_403(self, client, cast) -> None:
        response = client.post(
            f"/v1/api/tournaments/{cast['code']}/debates/missing/finalize",
            headers=cast["j1"]["headers"],
        )
        assert response.status_code == 403

    def test_closed_tournament_returns_409(self, client, cast) -> None:
        debate_id = open_round(client, cast)
        close = client.post(
            f"/v1/api/tournaments/{cast['code']}/close", headers=cast["admin"]["headers"]
        )
        assert close.json()["tournament"]["status"] == "Closed"

        response = submit(client, cast, debate_id, "j1", "Aff")

        assert response.status_code == 409
        assert "closed" in response.json()["detail"]
        assert "No changes were made." in response.json()["detail"]
        debates = client.get(f"/v1/api/tournaments/{cast['code']}/debates").json()
        assert debates["debates"][0]["winner"] == "Pending"

    def test_participants_and_kick(self, client, cast) -> None:
        code = cast["code"]
        participants = client.get(f"/v1/api/tournaments/{code}/participants").json()
        assert len(participants["judges"]) == 3
        assert len(participants["eligible_debater_ids"]) == 2

        toggled = client.post(
            f"/v1/api/tournaments/{code}/debaters/{cast['neg']['id']}/toggle-status",
            headers=cast["admin"]["headers"],
        )
        assert toggled.json()["status"] == "Eliminated"

        kicked = client.delete(
            f"/v1/api/tournaments/{code}/participants/Judge/{cast['j3']['id']}",
            headers=cast["admin"]["headers"],
        )
        assert kicked.json()["removed"] is True

        participants = client.get(f"/v1/api/tournaments/{code}/participants").json()
        assert len(participants["judges"]) == 2
        assert participants["eligible_debater_ids"] == [cast["aff"]["id"]]

    def test_update_profile(self, client, cast) -> None:
        response = client.patch(
            "/v1/api/me/profile", json={"phone": "555-0100"}, headers=cast["j1"]["headers"]
        )
        assert response.json()["phone"] == "555-0100"

    def test_unknown_tournament(self, client) -> None:
        assert client.get("/v1/api/tournaments/NOPE42").status_code == 404


@pytest.fixture
def rival(client) -> dict:
    """A second admin's tournament with one open elimination round."""
    admin = register(client, "riley@debatemate.org", "Riley Admin", "Admin")
    response = client.post(
        "/v1/api/tournaments", json={"name": "Fall Classic"}, headers=admin["headers"]
    )
    code = response.json()["tournament"]["id"]

    people = {"admin": admin, "code": code}
    people["aff"] = register(client, "xavier@debatemate.org", "Xavier Ito", "Debater", code)
    people["neg"] = register(client, "yara@debatemate.org", "Yara Diaz", "Debater", code)
    people["j1"] = register(client, "kai@debatemate.org", "Kai Novak", "Judge", code)
    people["debate_id"] = open_round(client, people, "Elimination")
    return people


class TestTournamentAccess:
    def test_admin_cannot_open_rounds_elsewhere(self, client, cast, rival) -> None:
        response = client.post(
            f"/v1/api/tournaments/{rival['code']}/debates",
            json={
                "topic": "Resolved: ...",
                "aff_id": rival["aff"]["id"],
                "aff_name": "Xavier Ito",
                "neg_id": rival["neg"]["id"],
                "neg_name": "Yara Diaz",
            },
            headers=cast["admin"]["headers"],
        )

        assert response.status_code == 403
        debates = client.get(f"/v1/api/tournaments/{rival['code']}/debates").json()
        assert debates["count"] == 1

    def test_judge_cannot_vote_elsewhere(self, client, cast, rival) -> None:
        response = client.put(
            f"/v1/api/tournaments/{rival['code']}/debates/{rival['debate_id']}/ballot",
            json={"aff_score": 28.5, "neg_score": 28.0, "decision": "Aff", "rfd": "Weighing."},
            headers=cast["j1"]["headers"],
        )

        assert response.status_code == 403
        detail = client.get(
            f"/v1/api/tournaments/{rival['code']}/debates/{rival['debate_id']}"
        ).json()
        assert detail["results"] == []

    def test_admin_cannot_finalize_elsewhere(self, client, cast, rival) -> None:
        assert submit(client, rival, rival["debate_id"], "j1", "Aff").status_code == 200

        response = client.post(
            f"/v1/api/tournaments/{rival['code']}/debates/{rival['debate_id']}/finalize",
            headers=cast["admin"]["headers"],
        )

        assert response.status_code == 403
        participants = client.get(f"/v1/api/tournaments/{rival['code']}/participants").json()
        assert len(participants["eligible_debater_ids"]) == 2

    def test_unknown_tournament_is_404(self, client, cast) -> None:
        response = client.post(
            "/v1/api/tournaments/NOPE42/debates/missing/finalize",
            headers=cast["admin"]["headers"],
        )
        assert response.status_code == 404

    def test_foreign_participants_are_out_of_reach(self, client, cast, rival) -> None:
        client.post(f"/v1/api/tournaments/{rival['code']}/close", headers=rival["admin"]["headers"])

        kicked = client.delete(
            f"/v1/api/tournaments/{cast['code']}/participants/Debater/{rival['neg']['id']}",
            headers=cast["admin"]["headers"],
        )
        toggled = client.post(
            f"/v1/api/tournaments/{cast['code']}/debaters/{rival['neg']['id']}/toggle-status",
            headers=cast["admin"]["headers"],
        )

        assert kicked.json()["removed"] is False
        assert toggled.status_code == 404
        participants = client.get(f"/v1/api/tournaments/{rival['code']}/participants").json()
        assert [d["status"] for d in participants["debaters"]] == ["Active", "Active"]

    def test_round_cannot_be_finalized_twice(self, client, rival) -> None:
        url = f"/v1/api/tournaments/{rival['code']}/debates/{rival['debate_id']}/finalize"
        submit(client, rival, rival["debate_id"], "j1", "Aff")
        assert client.post(url, headers=rival["admin"]["headers"]).status_code == 200

        client.post(
            f"/v1/api/tournaments/{rival['code']}/debaters/{rival['neg']['id']}/toggle-status",
            headers=rival["admin"]["headers"],
        )
        again = client.post(url, headers=rival["admin"]["headers"])

        assert again.status_code == 409
        assert again.json()["detail"] == "Round is already finalized. No changes were made."
        participants = client.get(f"/v1/api/tournaments/{rival['code']}/participants").json()
        assert len(participants["eligible_debater_ids"]) == 2


class TestErrorTranslation:
    def test_unexpected_errors_are_500(self, manager, admin) -> None:
        async def explode(*args, **kwargs):
            raise RuntimeError("disk on fire")

        manager.finalize_round = explode
        api = TournamentAPI(manager)

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(api.finalize_round(admin, "d1"))

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Internal server error"

    def test_store_errors_are_500(self, manager, admin) -> None:
        async def explode(*args, **kwargs):
            raise StoreError("Tournament database error: locked")

        manager.create_debate = explode

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(TournamentAPI(manager).create_debate(admin, None))

        assert exc_info.value.status_code == 500


class TestLiveUpdates:
    def test_connect_receives_snapshot(self, client, cast) -> None:
        debate_id = open_round(client, cast)
        token = cast["aff"]["headers"]["Authorization"].split()[1]

        with client.websocket_connect(
            f"/v1/ws/tournaments/{cast['code']}?token={token}"
        ) as websocket:
            payload = websocket.receive_json()

        assert payload["type"] == "connected"
        assert payload["tournament_id"] == cast["code"]
        assert payload["closed"] is False
        assert [d["id"] for d in payload["snapshot"]["debates"]] == [debate_id]
        assert [d["id"] for d in payload["assignments"]] == [debate_id]
        assert len(payload["notifications"]) == 1

    def test_missing_token_is_rejected(self, client, cast) -> None:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"/v1/ws/tournaments/{cast['code']}"):
                pass

        assert exc_info.value.code == 4401
