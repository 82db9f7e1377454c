"""Tests for reroll, complete, skip and unassign."""

from datetime import date, timedelta

import pytest
from sqlalchemy import update

from questboard import db
from questboard.exceptions import (
    ConcurrentModification,
    DailyQuestNotFound,
    InvalidSlot,
    MissionAlreadyCompleted,
    MissionNotFound,
    NoReplacementAvailable,
    RerollLimitReached,
)
from questboard.models import DailyQuest, Mission
from questboard.services.mission_service import MissionService
from questboard.services.quest_service import QuestService
from questboard.utils.db import atomic

DAY = date(2026, 3, 10)


@pytest.fixture
def quest(app, test_user, make_challenge):
    """Quest with three global missions worth 100 points at difficulty 3."""
    for _ in range(3):
        make_challenge(points=100, difficulty=3)
    quest, _ = QuestService().initialize_daily_quest(test_user, DAY)
    # Spare global challenges for rerolls
    for _ in range(4):
        make_challenge(points=20)
    return quest


@pytest.fixture
def service():
    return MissionService()


def _reload(user_id, day=DAY):
    db.session.expire_all()
    return DailyQuest.query.filter_by(user_id=user_id, date=day).one()


class TestReroll:
    """Rerolling global slots."""

    def test_replaces_challenge(self, test_user, quest, service):
        before = quest.get_mission(1).challenge_id

        result = service.reroll_global_mission(test_user, 1, DAY)

        quest = _reload(test_user.id)
        assert result["previous_challenge_id"] == before
        assert quest.get_mission(1).challenge_id != before
        assert quest.get_mission(1).status == "pending"
        assert quest.reroll_count == 1
        assert result["rerolls_remaining"] == 2

    def test_replacement_excludes_todays_challenges(
        self, test_user, quest, service
    ):
        today_ids = set(quest.challenge_ids())
        service.reroll_global_mission(test_user, 2, DAY)
        quest = _reload(test_user.id)
        new_id = quest.get_mission(2).challenge_id
        assert new_id not in today_ids
        assert len(quest.challenge_ids()) == 3

    def test_three_rerolls_then_limit(self, test_user, quest, service):
        for _ in range(3):
            service.reroll_global_mission(test_user, 1, DAY)

        assert _reload(test_user.id).reroll_count == 3

        for slot in (1, 2, 3):
            with pytest.raises(RerollLimitReached):
                service.reroll_global_mission(test_user, slot, DAY)

        assert _reload(test_user.id).reroll_count == 3

    @pytest.mark.parametrize("slot", [0, 4, 5, 6])
    def test_only_global_slots(self, test_user, quest, service, slot):
        with pytest.raises(InvalidSlot):
            service.reroll_global_mission(test_user, slot, DAY)

    def test_no_quest(self, app, test_user, service):
        with pytest.raises(DailyQuestNotFound):
            service.reroll_global_mission(test_user, 1, DAY)

    def test_empty_slot(self, app, test_user, make_challenge, service):
        make_challenge()
        QuestService().initialize_daily_quest(test_user, DAY)
        with pytest.raises(MissionNotFound):
            service.reroll_global_mission(test_user, 2, DAY)

    def test_no_replacement(self, app, test_user, make_challenge, service):
        for _ in range(3):
            make_challenge()
        QuestService().initialize_daily_quest(test_user, DAY)

        with pytest.raises(NoReplacementAvailable):
            service.reroll_global_mission(test_user, 1, DAY)

        assert _reload(test_user.id).reroll_count == 0

    def test_new_challenge_counted_as_assigned(self, test_user, quest, service):
        service.reroll_global_mission(test_user, 1, DAY)
        mission = _reload(test_user.id).get_mission(1)
        assert mission.challenge.times_assigned == 1


class TestComplete:
    """Completing missions."""

    def test_awards_points_with_bonus(self, test_user, quest, service):
        result = service.complete_mission(test_user, 2, DAY)

        assert result["points_earned"] == {"base": 100, "bonus": 50, "total": 150}
        assert result["mission"]["status"] == "completed"
        assert result["mission"]["points_awarded"] == 150
        assert result["user_stats"]["total_points"] == 150
        assert result["user_stats"]["weekly_points"] == 150
        assert result["user_stats"]["total_completed"] == 1
        assert result["unlocked_challenge"] is None

        db.session.refresh(test_user)
        assert test_user.total_points == 150
        assert test_user.last_active is not None
        assert test_user.level == 2
        assert result["level_up"] == {
            "previous_level": 1,
            "new_level": 2,
            "levels_gained": 1,
        }

    def test_completion_is_terminal(self, test_user, quest, service):
        service.complete_mission(test_user, 2, DAY)

        with pytest.raises(MissionAlreadyCompleted):
            service.complete_mission(test_user, 2, DAY)
        with pytest.raises(MissionAlreadyCompleted):
            service.reroll_global_mission(test_user, 2, DAY)
        with pytest.raises(MissionAlreadyCompleted):
            service.skip_mission(test_user, 2, DAY)

        mission = _reload(test_user.id).get_mission(2)
        assert mission.points_awarded == 150
        db.session.refresh(test_user)
        assert test_user.total_points == 150

    def test_completed_personal_mission_cannot_be_unassigned(
        self, test_user, quest, service, make_challenge
    ):
        personal = make_challenge(kind="personal", owner_id=test_user.id)
        QuestService().assign_personal_challenge(test_user, personal.id, 4, DAY)
        service.complete_mission(test_user, 4, DAY)

        with pytest.raises(MissionAlreadyCompleted):
            service.unassign_personal_challenge(test_user, 4, DAY)

    def test_missing_mission(self, test_user, quest, service):
        with pytest.raises(MissionNotFound):
            service.complete_mission(test_user, 5, DAY)

    def test_updates_challenge_stats(self, test_user, quest, service):
        service.complete_mission(test_user, 1, DAY)

        challenge = _reload(test_user.id).get_mission(1).challenge
        assert challenge.times_completed == 1
        assert challenge.completion_rate == 100.0

    def test_first_completion_starts_streak(self, test_user, quest, service):
        result = service.complete_mission(test_user, 1, DAY)
        assert result["streak"]["current_streak"] == 1
        db.session.refresh(test_user)
        assert test_user.current_streak == 1
        assert test_user.longest_streak == 1

    def test_streak_continues_after_active_yesterday(
        self, test_user, quest, service, make_challenge
    ):
        yesterday = DailyQuest(user_id=test_user.id, date=DAY - timedelta(days=1))
        done = Mission.pending(1, make_challenge())
        done.mark_completed(10)
        yesterday.insert_mission(done)
        db.session.add(yesterday)
        test_user.current_streak = 4
        db.session.commit()

        result = service.complete_mission(test_user, 1, DAY)

        assert result["streak"]["current_streak"] == 5
        assert result["streak"]["continued"] is True

    def test_streak_resets_after_gap(self, test_user, quest, service):
        test_user.current_streak = 4
        test_user.longest_streak = 4
        db.session.commit()

        service.complete_mission(test_user, 1, DAY)

        db.session.refresh(test_user)
        assert test_user.current_streak == 1
        assert test_user.longest_streak == 4

    def test_level_never_drops(self, test_user, quest, service):
        test_user.level = 6
        db.session.commit()

        result = service.complete_mission(test_user, 1, DAY)

        assert result["level_up"] is None
        assert result["level_info"]["current_level"] == 6
        db.session.refresh(test_user)
        assert test_user.level == 6


class TestChainUnlock:
    """Appending follow-up challenges at slot 6 and beyond."""

    @pytest.fixture
    def chain(self, app, test_user, make_challenge):
        first = make_challenge(title="Step 1", points=30)
        second = make_challenge(
            title="Step 2", points=60, prerequisite_challenge_id=first.id
        )
        third = make_challenge(
            title="Step 3", points=90, prerequisite_challenge_id=second.id
        )
        QuestService().initialize_daily_quest(test_user, DAY)
        return first, second, third

    def test_unlocks_follow_up_at_slot_six(self, test_user, chain, service):
        first, second, _ = chain
        quest = _reload(test_user.id)
        assert quest.challenge_ids() == {first.id}

        result = service.complete_mission(test_user, 1, DAY)

        assert result["unlocked_challenge"]["slot"] == 6
        assert result["unlocked_challenge"]["challenge_id"] == second.id
        quest = _reload(test_user.id)
        assert quest.get_mission(6).status == "pending"
        assert quest.get_mission(6).type == "global"
        assert quest.pending_chain_points == 60
        assert quest.get_mission(6).challenge.times_assigned == 1

    def test_chain_continues_to_next_free_slot(self, test_user, chain, service):
        _, _, third = chain
        service.complete_mission(test_user, 1, DAY)
        result = service.complete_mission(test_user, 6, DAY)

        assert result["unlocked_challenge"]["slot"] == 7
        assert result["unlocked_challenge"]["challenge_id"] == third.id
        # Completing slot 6 released its pending points before adding the next
        assert _reload(test_user.id).pending_chain_points == 90

    def test_no_duplicate_unlock(self, test_user, chain, service, make_challenge):
        first, second, _ = chain
        quest = _reload(test_user.id)
        # Follow-up already on today's list
        with atomic():
            quest.insert_mission(Mission.pending(2, second))

        result = service.complete_mission(test_user, 1, DAY)

        assert result["unlocked_challenge"] is None
        quest = _reload(test_user.id)
        assert quest.get_mission(6) is None
        assert [m.challenge_id for m in quest.missions.values()].count(second.id) == 1

    def test_level_gated_follow_up_stays_locked(
        self, app, test_user, make_challenge, service
    ):
        first = make_challenge(points=10)
        make_challenge(prerequisite_challenge_id=first.id, min_user_level=10)
        QuestService().initialize_daily_quest(test_user, DAY)

        result = service.complete_mission(test_user, 1, DAY)

        assert result["unlocked_challenge"] is None

    def test_skipping_chain_mission_releases_points(self, test_user, chain, service):
        service.complete_mission(test_user, 1, DAY)
        service.skip_mission(test_user, 6, DAY)
        assert _reload(test_user.id).pending_chain_points == 0


class TestSkipAndUnassign:
    """Skip any slot, unassign personal slots."""

    def test_skip(self, test_user, quest, service):
        result = service.skip_mission(test_user, 3, DAY)

        assert result["mission"]["status"] == "skipped"
        mission = _reload(test_user.id).get_mission(3)
        assert mission.points_awarded == 0
        assert mission.completed_at is None

    def test_skipped_mission_can_still_be_completed(self, test_user, quest, service):
        service.skip_mission(test_user, 3, DAY)
        result = service.complete_mission(test_user, 3, DAY)
        assert result["mission"]["status"] == "completed"

    def test_unassign_frees_slot(self, test_user, quest, service, make_challenge):
        personal = make_challenge(kind="personal", owner_id=test_user.id)
        QuestService().assign_personal_challenge(test_user, personal.id, 5, DAY)

        result = service.unassign_personal_challenge(test_user, 5, DAY)

        assert result["removed_challenge_id"] == personal.id
        assert _reload(test_user.id).get_mission(5) is None
        assert Mission.query.filter_by(challenge_id=personal.id).count() == 0

    @pytest.mark.parametrize("slot", [1, 3, 6])
    def test_unassign_only_personal_slots(self, test_user, quest, service, slot):
        with pytest.raises(InvalidSlot):
            service.unassign_personal_challenge(test_user, slot, DAY)

    def test_unassign_empty_slot(self, test_user, quest, service):
        with pytest.raises(MissionNotFound):
            service.unassign_personal_challenge(test_user, 4, DAY)


class TestConcurrency:
    """Stale writes surface as conflicts."""

    def test_stale_quest_version_is_a_conflict(self, test_user, quest):
        quest = _reload(test_user.id)
        # Another writer commits first
        db.session.execute(
            update(DailyQuest)
            .where(DailyQuest.id == quest.id)
            .values(version=DailyQuest.version + 1)
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(ConcurrentModification):
            with atomic():
                quest.reroll_count = 1

        assert _reload(test_user.id).reroll_count == 0

    def test_other_errors_propagate_unchanged(self, test_user, quest):
        with pytest.raises(RuntimeError):
            with atomic():
                quest.reroll_count = 2
                raise RuntimeError("boom")

        assert _reload(test_user.id).reroll_count == 0
