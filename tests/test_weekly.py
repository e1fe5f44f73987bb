"""
Tests for the end-of-week lifecycle and historical snapshot backfill.
"""

from datetime import date

import pytest

from factories import member, sales_team
from solvo_core.core.errors import NotFoundError, StateValidationError
from solvo_core.services.performance import recalculate_scores
from solvo_core.services.state import EndWeek, reduce
from solvo_core.services.weekly import end_week, save_historical_snapshot, start_of_week

WEDNESDAY = date(2024, 5, 15)
MONDAY = date(2024, 5, 13)


def _scored_team():
    data = sales_team()
    return data.model_copy(update={
        "team_members": recalculate_scores(data.team_members, data.kpi_groups, data.kpi_progress)
    })


class TestStartOfWeek:
    def test_midweek_maps_to_monday(self):
        assert start_of_week(WEDNESDAY) == MONDAY

    def test_monday_is_its_own_week(self):
        assert start_of_week(MONDAY) == MONDAY

    def test_sunday_belongs_to_previous_monday(self):
        assert start_of_week(date(2024, 5, 19)) == MONDAY


class TestEndWeek:
    def test_archives_one_snapshot_per_member(self):
        result = end_week(_scored_team(), WEDNESDAY)
        assert len(result.weekly_snapshots) == 2
        assert {s.week_of for s in result.weekly_snapshots} == {MONDAY}
        ana = next(s for s in result.weekly_snapshots if s.team_member_id == "ana")
        assert ana.performance_score == 50
        assert [k.actual for k in ana.kpi_snapshots] == [20, 10]

    def test_zeroes_ledger_without_deleting_rows(self):
        data = _scored_team()
        result = end_week(data, WEDNESDAY)
        assert len(result.kpi_progress) == len(data.kpi_progress)
        assert all(p.actual == 0 for p in result.kpi_progress)

    def test_freezes_score_and_records_rank(self):
        result = end_week(_scored_team(), WEDNESDAY)
        ana, ben = result.team_members
        assert ana.previous_performance_score == 50
        assert ben.previous_performance_score == 100
        assert (ben.rank, ben.previous_rank, ben.rank_history) == (1, 1, [1])
        assert (ana.rank, ana.previous_rank, ana.rank_history) == (2, 2, [2])

    def test_rank_history_keeps_latest_entries(self):
        data = _scored_team()
        history = list(range(1, 11))
        members = [m.model_copy(update={"rank_history": history}) for m in data.team_members]
        result = end_week(data.model_copy(update={"team_members": members}), WEDNESDAY)
        assert result.team_members[1].rank_history == history[1:] + [1]

    def test_member_without_group_gets_empty_snapshot(self):
        data = _scored_team()
        data = data.model_copy(update={"team_members": data.team_members + [member("solo")]})
        result = end_week(data, WEDNESDAY)
        solo = next(s for s in result.weekly_snapshots if s.team_member_id == "solo")
        assert solo.performance_score == 0
        assert solo.kpi_snapshots == []

    def test_reducer_rescores_the_new_week(self):
        result = reduce(_scored_team(), EndWeek(WEDNESDAY))
        assert [m.performance_score for m in result.team_members] == [50, 50]
        assert [m.previous_performance_score for m in result.team_members] == [50, 100]

    def test_does_not_mutate_input(self):
        data = _scored_team()
        end_week(data, WEDNESDAY)
        assert data.weekly_snapshots == []
        assert data.kpi_progress[0].actual == 20


class TestHistoricalSnapshot:
    def test_scores_past_week_from_supplied_actuals(self):
        data = _scored_team()
        week = date(2024, 4, 1)
        result = save_historical_snapshot(data, "ana", week, {"k_calls": 40, "k_cancel": 20})
        snap = result.weekly_snapshots[0]
        assert (snap.team_member_id, snap.week_of, snap.performance_score) == ("ana", week, 50)
        # live ledger untouched
        assert result.kpi_progress == data.kpi_progress

    def test_second_save_replaces_first(self):
        data = _scored_team()
        week = date(2024, 4, 1)
        data = save_historical_snapshot(data, "ana", week, {"k_calls": 10, "k_cancel": 20})
        data = save_historical_snapshot(data, "ana", week, {"k_calls": 40, "k_cancel": 0})
        matching = [s for s in data.weekly_snapshots if s.team_member_id == "ana" and s.week_of == week]
        assert len(matching) == 1
        assert matching[0].performance_score == 100

    def test_unknown_member_raises(self):
        with pytest.raises(NotFoundError):
            save_historical_snapshot(_scored_team(), "nobody", date(2024, 4, 1), {})

    def test_member_without_group_raises(self):
        data = _scored_team()
        data = data.model_copy(update={"team_members": data.team_members + [member("solo")]})
        with pytest.raises(StateValidationError):
            save_historical_snapshot(data, "solo", date(2024, 4, 1), {})

    def test_backfill_then_end_week_keeps_one_snapshot_per_week(self):
        data = _scored_team()
        week = date(2024, 5, 13)
        data = save_historical_snapshot(data, "ana", week, {"k_calls": 10, "k_cancel": 20})
        data = end_week(data, date(2024, 5, 15))
        data = save_historical_snapshot(data, "ana", week, {"k_calls": 40, "k_cancel": 0})
        matching = [s for s in data.weekly_snapshots if s.team_member_id == "ana" and s.week_of == week]
        assert len(matching) == 1
        assert matching[0].performance_score == 100

    def test_end_week_replaces_backfilled_current_week(self):
        data = _scored_team()
        week = date(2024, 5, 13)
        data = save_historical_snapshot(data, "ana", week, {"k_calls": 0, "k_cancel": 20})
        data = end_week(data, date(2024, 5, 15))
        ana = [s for s in data.weekly_snapshots if s.team_member_id == "ana"]
        assert len(ana) == 1
        assert ana[0].performance_score == 50
        assert len(data.weekly_snapshots) == 2
