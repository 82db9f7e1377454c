"""Tests for challenge authoring, browsing and the catalog."""

import json

import pytest

from questboard import db
from questboard.cli import reset_weekly_points, seed_challenges
from questboard.exceptions import ForbiddenError, InvalidInputError
from questboard.models import Challenge
from questboard.services.challenge_catalog import ChallengeCatalog, ChallengeFilter
from questboard.services.challenge_service import ChallengeService

PERSONAL = {
    "kind": "personal",
    "title": "Read 20 pages",
    "description": "Any book counts",
    "category": "learning",
    "difficulty": 2,
    "points": 40,
    "tags": ["reading"],
}


class TestCatalog:
    """Lookups and counters used by the quest engine."""

    def test_filter_excludes_ids(self, app, make_challenge):
        a, b, c = make_challenge(), make_challenge(), make_challenge()
        found = ChallengeCatalog().sample_random(
            ChallengeFilter.daily_global(1, {a.id, b.id}), 3
        )
        assert [x.id for x in found] == [c.id]

    def test_sample_without_replacement(self, app, global_challenges):
        found = ChallengeCatalog().sample_random(ChallengeFilter.daily_global(1), 3)
        assert len({x.id for x in found}) == 3

    def test_find_one_matching_is_stable(self, app, make_challenge):
        base = make_challenge()
        first = make_challenge(prerequisite_challenge_id=base.id)
        make_challenge(prerequisite_challenge_id=base.id)
        catalog = ChallengeCatalog()
        criteria = ChallengeFilter.chain_unlock(base.id, 1)
        assert catalog.find_one_matching(criteria).id == first.id

    def test_increment_completed_without_assignments(self, app, make_challenge):
        challenge = make_challenge()
        assert ChallengeCatalog().increment_completed(challenge.id) is True
        db.session.refresh(challenge)
        assert challenge.times_completed == 1
        assert challenge.completion_rate == 0.0

    def test_increment_completed_rate(self, app, make_challenge):
        challenge = make_challenge(times_assigned=4, times_completed=1)
        ChallengeCatalog().increment_completed(challenge.id)
        db.session.refresh(challenge)
        assert challenge.completion_rate == 50.0


class TestAuthoring:
    """Create and update rules."""

    def test_user_creates_personal_challenge(self, app, test_user):
        challenge = ChallengeService().create_challenge(test_user, dict(PERSONAL))
        assert challenge.owner_id == test_user.id
        assert challenge.kind == "personal"
        assert challenge.times_assigned == 0

    def test_owner_is_always_the_actor(self, app, test_user, make_user):
        other = make_user()
        challenge = ChallengeService().create_challenge(
            test_user, dict(PERSONAL, owner_id=other.id)
        )
        assert challenge.owner_id == test_user.id

    def test_global_requires_admin(self, app, test_user):
        with pytest.raises(ForbiddenError):
            ChallengeService().create_challenge(
                test_user, dict(PERSONAL, kind="global")
            )

    def test_admin_cannot_create_personal(self, app, test_user):
        with pytest.raises(ForbiddenError):
            ChallengeService().create_challenge(test_user, PERSONAL, is_admin=True)

    def test_admin_creates_global(self, app, test_user):
        challenge = ChallengeService().create_challenge(
            test_user, dict(PERSONAL, kind="global"), is_admin=True
        )
        assert challenge.owner_id is None

    def test_validation_details(self, app, test_user):
        bad = dict(PERSONAL, title=" ", difficulty=6, points=-1, tags="x")
        with pytest.raises(InvalidInputError) as exc:
            ChallengeService().create_challenge(test_user, bad)
        assert set(exc.value.details) == {"title", "difficulty", "points", "tags"}

    def test_unknown_prerequisite(self, app, test_user):
        with pytest.raises(InvalidInputError) as exc:
            ChallengeService().create_challenge(
                test_user, dict(PERSONAL, prerequisite_challenge_id=999)
            )
        assert "prerequisite_challenge_id" in exc.value.details

    def test_cannot_be_own_prerequisite(self, app, test_user):
        service = ChallengeService()
        challenge = service.create_challenge(test_user, dict(PERSONAL))
        with pytest.raises(InvalidInputError):
            service.update_challenge(
                test_user, challenge.id, {"prerequisite_challenge_id": challenge.id}
            )

    def test_only_owner_or_admin_updates(self, app, test_user, make_user):
        service = ChallengeService()
        challenge = service.create_challenge(test_user, dict(PERSONAL))
        stranger = make_user()

        with pytest.raises(ForbiddenError):
            service.update_challenge(stranger, challenge.id, {"points": 1})

        updated = service.update_challenge(
            stranger, challenge.id, {"points": 1, "min_user_level": 2}, is_admin=True
        )
        assert updated.points == 1
        assert updated.min_user_level == 2

    def test_deactivate_and_reactivate(self, app, test_user):
        service = ChallengeService()
        challenge = service.create_challenge(test_user, dict(PERSONAL))

        assert service.deactivate_challenge(test_user, challenge.id).is_active is False
        assert service.reactivate_challenge(test_user, challenge.id).is_active is True


class TestBrowsing:
    """Listing and reporting."""

    def test_list_by_category_order(self, app, make_challenge):
        make_challenge(category="fitness", difficulty=2, points=10, title="b")
        make_challenge(category="fitness", difficulty=1, points=5, title="c")
        make_challenge(category="fitness", difficulty=1, points=50, title="a")
        make_challenge(category="fitness", is_active=False, title="hidden")

        titles = [c.title for c in ChallengeService().list_by_category("fitness")]

        assert titles == ["a", "c", "b"]

    def test_overview(self, app, make_challenge):
        make_challenge(category="fitness", times_completed=5)
        make_challenge(category="mind", is_active=False)
        make_challenge(kind="personal", category="mind")

        overview = ChallengeService().catalog_overview()

        assert overview["total"] == 3
        assert overview["inactive"] == 1
        assert overview["by_kind"] == {"global": 2, "personal": 1}
        assert overview["by_category"] == {"fitness": 1, "mind": 2}
        assert overview["most_completed"][0]["category"] == "fitness"

    def test_category_stats_sorted(self, app, make_challenge):
        make_challenge(category="fitness", times_assigned=4, times_completed=1)
        make_challenge(category="mind", times_assigned=3, times_completed=3)

        stats = ChallengeService().category_completion_stats()

        assert [s["category"] for s in stats] == ["mind", "fitness"]
        assert stats[0]["total_completed"] == 3


class TestChallengeEndpoints:
    """HTTP surface."""

    def test_create_and_get(self, auth_client):
        response = auth_client.post("/api/v1/challenges", json=PERSONAL)
        assert response.status_code == 201
        challenge_id = response.json["data"]["challenge"]["id"]

        response = auth_client.get(f"/api/v1/challenges/{challenge_id}")
        assert response.status_code == 200
        challenge = response.json["data"]["challenge"]
        assert challenge["rules"] == {"max_per_day": 1, "min_user_level": 0}
        assert challenge["stats"]["times_assigned"] == 0

    def test_get_missing(self, auth_client):
        response = auth_client.get("/api/v1/challenges/999")
        assert response.status_code == 404
        assert response.json["error"]["code"] == "challenge_not_found"

    def test_global_create_forbidden_for_users(self, auth_client):
        response = auth_client.post(
            "/api/v1/challenges", json=dict(PERSONAL, kind="global")
        )
        assert response.status_code == 403
        assert response.json["error"]["code"] == "forbidden"

    def test_admin_creates_global(self, admin_client):
        response = admin_client.post(
            "/api/v1/challenges", json=dict(PERSONAL, kind="global")
        )
        assert response.status_code == 201

    def test_list_filters(self, auth_client, make_challenge):
        make_challenge(category="fitness")
        make_challenge(category="mind", difficulty=3)

        response = auth_client.get("/api/v1/challenges?difficulty=3")
        assert [c["category"] for c in response.json["data"]["challenges"]] == [
            "mind"
        ]

        response = auth_client.get("/api/v1/challenges?difficulty=hard")
        assert response.status_code == 400

    def test_delete_deactivates(self, auth_client):
        created = auth_client.post("/api/v1/challenges", json=PERSONAL)
        challenge_id = created.json["data"]["challenge"]["id"]

        response = auth_client.delete(f"/api/v1/challenges/{challenge_id}")
        assert response.status_code == 200
        assert db.session.get(Challenge, challenge_id).is_active is False

        response = auth_client.post(f"/api/v1/challenges/{challenge_id}/reactivate")
        assert response.json["data"]["challenge"]["is_active"] is True

    def test_random_respects_level(self, auth_client, make_challenge):
        make_challenge(min_user_level=9)
        easy = make_challenge()
        response = auth_client.get("/api/v1/challenges/random?count=5")
        assert [c["id"] for c in response.json["data"]["challenges"]] == [easy.id]

    def test_levels_me(self, auth_client):
        response = auth_client.get("/api/v1/levels/me")
        assert response.status_code == 200
        assert response.json["data"]["level_info"]["current_level"] == 1
        assert response.json["data"]["user"]["stats"]["total_points"] == 0

    def test_level_thresholds(self, auth_client):
        response = auth_client.get("/api/v1/levels/thresholds?up_to=3")
        points = [t["points_required"] for t in response.json["data"]["thresholds"]]
        assert points == [0, 132, 233]


class TestCommands:
    """Flask CLI maintenance commands."""

    def test_seed_challenges_upserts(self, app, tmp_path):
        path = tmp_path / "challenges.json"
        items = [
            {
                "kind": "global",
                "title": "Walk",
                "description": "10k steps",
                "category": "fitness",
                "points": 20,
            },
            {
                "kind": "global",
                "title": "Run",
                "description": "5k",
                "category": "fitness",
                "points": 50,
                "difficulty": 3,
                "prerequisite": "Walk",
            },
        ]
        path.write_text(json.dumps(items))
        runner = app.test_cli_runner()

        result = runner.invoke(seed_challenges, [str(path)])
        assert result.exit_code == 0, result.output
        assert "2 created" in result.output

        result = runner.invoke(seed_challenges, [str(path)])
        assert "2 updated" in result.output
        assert Challenge.query.count() == 2

        walk = Challenge.query.filter_by(title="Walk").one()
        run = Challenge.query.filter_by(title="Run").one()
        assert run.prerequisite_challenge_id == walk.id

    def test_seed_rejects_bad_entries(self, app, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"title": "Nope"}]))
        result = app.test_cli_runner().invoke(seed_challenges, [str(path)])
        assert result.exit_code != 0
        assert Challenge.query.count() == 0

    def test_reset_weekly_points(self, app, make_user):
        user = make_user(weekly_points=120, total_points=300)
        result = app.test_cli_runner().invoke(reset_weekly_points)
        assert result.exit_code == 0
        db.session.refresh(user)
        assert user.weekly_points == 0
        assert user.total_points == 300
