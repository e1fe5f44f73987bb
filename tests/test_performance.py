"""
Tests for the weekly KPI performance score.
"""

import pytest

from factories import group, kpi, member, progress, sales_team
from solvo_core.services.performance import (
    achievement_ratio,
    build_kpi_ledger,
    build_leaderboard,
    calculate_performance_score,
    rank_members,
    recalculate_scores,
    round_half_up,
)


def _score(member_id, data):
    return calculate_performance_score(member_id, data.kpi_groups, data.kpi_progress, data.team_members)


class TestCalculatePerformanceScore:
    def test_example_group_scores_fifty(self):
        data = sales_team()
        assert _score("ana", data) == 50

    def test_full_achievement_scores_hundred(self):
        data = sales_team()
        assert _score("ben", data) == 100

    def test_member_without_group_scores_zero(self):
        members = [member("solo")]
        assert calculate_performance_score("solo", [], [], members) == 0

    def test_unknown_group_scores_zero(self):
        members = [member("ana", group_id="g_missing")]
        assert calculate_performance_score("ana", [], [], members) == 0

    def test_unknown_member_scores_zero(self):
        data = sales_team()
        assert _score("nobody", data) == 0

    def test_group_without_kpis_scores_zero(self):
        members = [member("ana", group_id="g_empty")]
        assert calculate_performance_score("ana", [group("g_empty")], [], members) == 0

    def test_zero_total_points_scores_zero(self):
        members = [member("ana", group_id="g")]
        groups = [group("g", kpi("k1", "Calls", 10, 0), kpi("k2", "Demos", 5, 0))]
        progress_rows = [progress("ana", "k1", 10)]
        assert calculate_performance_score("ana", groups, progress_rows, members) == 0

    def test_missing_progress_row_counts_as_zero(self):
        members = [member("ana", group_id="g")]
        groups = [group("g", kpi("k1", "Calls", 10, 50), kpi("k2", "Demos", 10, 50))]
        progress_rows = [progress("ana", "k1", 10)]
        assert calculate_performance_score("ana", groups, progress_rows, members) == 50

    def test_missing_row_on_cancel_kpi_earns_full_points(self):
        members = [member("ana", group_id="g")]
        groups = [group("g", kpi("k1", "Cancellations", 10, 100))]
        assert calculate_performance_score("ana", groups, [], members) == 100

    def test_half_rounds_up(self):
        members = [member("ana", group_id="g")]
        groups = [group("g", kpi("k1", "Calls", 8, 100))]
        progress_rows = [progress("ana", "k1", 1)]
        # 12.5%
        assert calculate_performance_score("ana", groups, progress_rows, members) == 13

    @pytest.mark.parametrize("actual", [0, 1, 7, 39, 40, 41, 1000])
    def test_score_stays_in_bounds(self, actual):
        members = [member("ana", group_id="g")]
        groups = [group("g", kpi("k1", "Calls", 40, 60), kpi("k2", "Cancel rate", 40, 40))]
        progress_rows = [progress("ana", "k1", actual), progress("ana", "k2", actual)]
        score = calculate_performance_score("ana", groups, progress_rows, members)
        assert isinstance(score, int)
        assert 0 <= score <= 100


class TestAchievementRatio:
    def test_zero_goal_with_zero_actual_is_full(self):
        assert achievement_ratio(kpi("k", "Complaints", 0, 10), 0) == 1.0

    def test_zero_goal_with_any_actual_is_nothing(self):
        assert achievement_ratio(kpi("k", "Complaints", 0, 10), 1) == 0.0

    def test_cancel_kpi_is_lower_is_better(self):
        assert achievement_ratio(kpi("k", "Cancellation Rate", 20, 10), 10) == 0.5
        assert achievement_ratio(kpi("k", "Cancellation Rate", 20, 10), 30) == 0.0

    def test_regular_kpi_is_capped(self):
        assert achievement_ratio(kpi("k", "Calls Made", 20, 10), 10) == 0.5
        assert achievement_ratio(kpi("k", "Calls Made", 20, 10), 30) == 1.0

    def test_cancel_marker_matches_substring_any_case(self):
        assert achievement_ratio(kpi("k", "Visits CANCELLED", 10, 10), 10) == 0.0
        assert achievement_ratio(kpi("k", "Uncancelable orders", 10, 10), 0) == 1.0


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (49.4, 49), (99.5, 100)])
    def test_rounds_halves_away_from_zero(self, value, expected):
        assert round_half_up(value) == expected


class TestRecalculateAndRank:
    def test_recalculate_writes_every_score(self):
        data = sales_team()
        scored = recalculate_scores(data.team_members, data.kpi_groups, data.kpi_progress)
        assert [m.performance_score for m in scored] == [50, 100]
        # input untouched
        assert [m.performance_score for m in data.team_members] == [0, 0]

    def test_rank_members_orders_by_score(self):
        members = [member("a", performance_score=40), member("b", performance_score=90), member("c", performance_score=40)]
        assert rank_members(members) == {"b": 1, "a": 2, "c": 3}

    def test_leaderboard_reports_movement(self):
        members = [
            member("a", performance_score=40, previous_performance_score=60, previous_rank=1),
            member("b", performance_score=90, previous_performance_score=50, previous_rank=2),
        ]
        board = build_leaderboard(members)
        assert [e.team_member_id for e in board] == ["b", "a"]
        assert board[0].rank_change == 1
        assert board[0].score_change == 40
        assert board[1].rank_change == -1

    def test_leaderboard_without_history_has_no_movement(self):
        board = build_leaderboard([member("a", performance_score=10)])
        assert board[0].rank_change == 0


class TestKpiLedger:
    def test_ledger_lists_group_kpis_with_earned_points(self):
        data = sales_team()
        ana = recalculate_scores(data.team_members, data.kpi_groups, data.kpi_progress)[0]
        ledger = build_kpi_ledger(ana, data.kpi_groups, data.kpi_progress)
        assert ledger.kpi_group_id == "g_sales"
        assert ledger.performance_score == 50
        by_id = {item.kpi_definition_id: item for item in ledger.kpis}
        assert by_id["k_calls"].points_earned == 25
        assert by_id["k_cancel"].lower_is_better is True

    def test_ledger_for_unassigned_member_is_empty(self):
        ledger = build_kpi_ledger(member("solo"), [], [])
        assert ledger.kpi_group_id is None
        assert ledger.kpis == []
