"""Tests for the single-pass response classifier."""

from metacog_dashboard.analytics.classifier import UNKNOWN, classify_responses, plan_executed


class TestStrategyAccumulation:
    def test_helpful_tri_state(self, make_response):
        responses = [
            make_response(accuracy=80, strategyHelpful=True),
            make_response(accuracy=60, strategyHelpful=None),
            make_response(accuracy=100, strategyHelpful=False),
            make_response(accuracy=50),
        ]
        acc = classify_responses(responses).strategies["self-explain"]
        assert acc.count == 4
        assert acc.total_accuracy == 290
        assert acc.helpful == 1
        assert acc.not_helpful == 1

    def test_missing_strategy_is_unknown(self, make_response):
        result = classify_responses([make_response(strategy=None, goal=None)])
        assert UNKNOWN in result.strategies
        assert UNKNOWN in result.goals
        assert result.strategy_goal_matrix[UNKNOWN][UNKNOWN].count == 1

    def test_strategy_keys_are_case_sensitive(self, make_response):
        result = classify_responses([
            make_response(strategy="Visualize"),
            make_response(strategy="visualize"),
        ])
        assert set(result.strategies) == {"Visualize", "visualize"}


class TestGoalAccumulation:
    def test_goal_outcomes(self, make_response):
        responses = [
            make_response(goalAchieved="yes"),
            make_response(goalAchieved=True),
            make_response(goalAchieved="partial"),
            make_response(goalAchieved="no"),
            make_response(goalAchieved=None),
        ]
        goal = classify_responses(responses).goals["explain"]
        assert goal.count == 5
        assert goal.achieved == 2
        assert goal.not_achieved == 1

    def test_matrix_cells(self, make_response):
        responses = [
            make_response(strategy="visualize", goal="gist", accuracy=70),
            make_response(strategy="visualize", goal="gist", accuracy=90),
            make_response(strategy="visualize", goal="apply", accuracy=40),
        ]
        matrix = classify_responses(responses).strategy_goal_matrix
        assert matrix["visualize"]["gist"].count == 2
        assert matrix["visualize"]["gist"].total_accuracy == 160
        assert matrix["visualize"]["apply"].count == 1


class TestPlanExecution:
    def test_change_plan_followed(self, make_response):
        responses = [
            make_response(strategy="visualize", nextTimeAdjustment="try a different strategy"),
            make_response(strategy="self-explain"),
        ]
        plan = classify_responses(responses).plans["try a different strategy"]
        assert plan.plan_count == 1
        assert plan.executed_count == 1

    def test_change_plan_not_followed(self, make_response):
        responses = [
            make_response(strategy="visualize", nextTimeAdjustment="try a different strategy"),
            make_response(strategy="visualize"),
        ]
        plan = classify_responses(responses).plans["try a different strategy"]
        assert plan.executed_count == 0

    def test_keep_plan_followed(self, make_response):
        responses = [
            make_response(strategy="visualize", nextTimeAdjustment="Keep doing this"),
            make_response(strategy="visualize"),
        ]
        assert classify_responses(responses).plans["keep doing this"].executed_count == 1

    def test_other_plans_never_execute(self, make_response):
        responses = [
            make_response(strategy="visualize", nextTimeAdjustment="Read more slowly"),
            make_response(strategy="self-explain"),
        ]
        assert classify_responses(responses).plans["read more slowly"].executed_count == 0

    def test_last_response_has_no_next(self, make_response):
        responses = [make_response(nextTimeAdjustment="switch it up")]
        plan = classify_responses(responses).plans["switch it up"]
        assert plan.plan_count == 1
        assert plan.executed_count == 0

    def test_key_is_folded_but_example_keeps_casing(self, make_response):
        responses = [
            make_response(nextTimeAdjustment="  Try Drawing A Diagram "),
            make_response(nextTimeAdjustment="try drawing a diagram"),
        ]
        plan = classify_responses(responses).plans["try drawing a diagram"]
        assert plan.plan_count == 2
        assert plan.examples == ["Try Drawing A Diagram"]

    def test_blank_plan_ignored(self, make_response):
        result = classify_responses([make_response(nextTimeAdjustment="   ")])
        assert result.plans == {}

    def test_next_response_uses_fetch_order(self, make_response):
        # The later-dated response comes first in fetch order; no re-sorting happens
        responses = [
            make_response(day=5, strategy="visualize", nextTimeAdjustment="try something new"),
            make_response(day=1, strategy="summarize"),
        ]
        assert classify_responses(responses).plans["try something new"].executed_count == 1

    def test_change_keywords_take_priority(self, make_response):
        current = make_response(strategy="visualize")
        following = make_response(strategy="visualize")
        assert plan_executed("try to keep the same pace", current, following) is False


class TestSamples:
    def test_trend_points(self, make_response):
        result = classify_responses([make_response(accuracy=60, confidence=85)])
        assert len(result.trend) == 1
        assert result.trend[0].calibration_error == 25

    def test_undated_response_left_out_of_trend(self, make_response):
        result = classify_responses([make_response(createdAt=None)])
        assert result.trend == []
        assert result.strategies["self-explain"].count == 1

    def test_time_samples_need_nonzero_time(self, make_response):
        result = classify_responses([
            make_response(timeSpent=0),
            make_response(timeSpent=120, accuracy=75),
            make_response(),
        ])
        assert len(result.time_samples) == 1
        assert result.time_samples[0].time_spent == 120
        assert result.time_samples[0].accuracy == 75

    def test_muddy_points_trimmed(self, make_response):
        result = classify_responses([
            make_response(muddyPoint="  the formula  ", accuracy=40),
            make_response(muddyPoint="   "),
            make_response(muddyPoint=None),
        ])
        assert len(result.muddy_points) == 1
        assert result.muddy_points[0].text == "the formula"
        assert result.muddy_points[0].accuracy == 40
