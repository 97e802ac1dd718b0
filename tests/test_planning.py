from datetime import date

import pytest

import error
from service.planning.allocation import (
    apply_minimum_share,
    calculate_allocation,
    finalize_allocation,
    normalize_weights,
    priority_for_weight,
    raw_weights,
    study_hours_budget,
)
from service.planning.cycles import build_cycles, cycle_for_day, review_period
from service.planning.scheduler import (
    MAX_SESSION_MINUTES,
    MIN_SESSION_MINUTES,
    build_schedule,
    order_subjects,
    schedule_day,
)
from util.clock import add_minutes, count_working_days, format_elapsed, elapsed_seconds, parse_time
from util.enum import Difficulty, SessionType, StudyLevel, StudyPhase


class TestClock:
    def test_add_minutes_wraps_midnight(self):
        assert add_minutes("23:30", 45) == "00:15"
        assert add_minutes("09:00", 90) == "10:30"

    def test_parse_time_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_time("25:00")
        with pytest.raises(ValueError):
            parse_time("nine")

    def test_working_days_skip_weekends(self):
        # Monday 2024-01-01 to Monday 2024-01-15
        assert count_working_days(date(2024, 1, 1), date(2024, 1, 15)) == 10
        assert count_working_days(date(2024, 1, 6), date(2024, 1, 8)) == 0

    def test_elapsed_helpers(self):
        from datetime import datetime
        started = datetime(2024, 1, 1, 10, 0, 0)
        assert elapsed_seconds(started, datetime(2024, 1, 1, 11, 2, 3)) == 3723
        assert elapsed_seconds(started, datetime(2024, 1, 1, 9, 0, 0)) == 0
        assert format_elapsed(3723) == "01:02:03"


class TestAllocation:
    def test_budget_keeps_revision_reserve(self):
        assert study_hours_budget(10, 4) == 32
        assert study_hours_budget(7, 2.5) == 14

    def test_weights_and_hours_add_up(self):
        subjects = ["Direito Constitucional", "Direito Administrativo", "Português",
                    "Matemática", "Informática", "Física Quântica"]
        allocation = calculate_allocation(subjects, 157)
        assert sum(a.weight_percentage for a in allocation) == 100
        assert sum(a.estimated_hours for a in allocation) == 157
        assert [a.subject_name for a in allocation] == subjects

    def test_two_known_subjects(self):
        allocation = calculate_allocation(["Português", "Matemática"], 32)
        assert [a.weight_percentage for a in allocation] == [60, 40]
        assert [a.estimated_hours for a in allocation] == [20, 12]
        assert allocation[1].difficulty == Difficulty.hard
        assert allocation[0].difficulty == Difficulty.medium

    def test_names_match_without_accents(self):
        allocation = calculate_allocation(["portugues", "MATEMATICA"], 100)
        assert [a.weight_percentage for a in allocation] == [60, 40]

    def test_unknown_subjects_share_the_remainder(self):
        weights = raw_weights(["Português", "Arquivologia", "Ética"])
        assert weights == [15.0, 42.5, 42.5]

    def test_unknown_subjects_when_nothing_remains(self):
        subjects = ["Direito Administrativo", "Direito Constitucional", "Direito Civil",
                    "Direito Penal", "Português", "Legislação Específica", "Arquivologia"]
        weights = raw_weights(subjects)
        assert weights[-1] == pytest.approx(100 / 7)

    def test_beginner_favours_foundations(self):
        beginner = raw_weights(["Português", "Direito Civil"], StudyLevel.beginner)
        advanced = raw_weights(["Português", "Direito Civil"], StudyLevel.advanced)
        assert beginner == pytest.approx([15 * 1.3, 15 * 0.7])
        assert advanced == pytest.approx([15 * 0.7, 15 * 1.3])

    def test_focus_area_boost(self):
        weights = raw_weights(["Português", "Matemática"], focus_areas=["matematica"])
        assert weights == pytest.approx([15, 12])

    def test_minimum_share(self):
        shares = apply_minimum_share([1, 100])
        assert shares[0] == pytest.approx(5)
        assert sum(shares) == pytest.approx(100)
        assert min(normalize_weights([1, 1000, 1000])) >= 5

    def test_minimum_share_skipped_when_it_cannot_fit(self):
        weights = [1] * 25
        assert sum(normalize_weights(weights)) == 100

    def test_residual_goes_to_first_subject(self):
        assert normalize_weights([1, 1, 1]) == [34, 33, 33]

    def test_priority_thresholds(self):
        assert [priority_for_weight(w) for w in (25, 15, 10, 5, 4)] == [5, 4, 3, 2, 1]

    def test_overrides_are_kept(self):
        allocation = finalize_allocation(
            ["Arquivologia", "Redação Oficial"], [50, 50], 10,
            difficulties=[Difficulty.easy, None], priorities=[None, 1],
        )
        assert allocation[0].difficulty == Difficulty.easy
        assert allocation[1].difficulty == Difficulty.medium
        assert allocation[0].priority == 5
        assert allocation[1].priority == 1

    def test_no_subjects(self):
        with pytest.raises(error.InvalidInputError):
            calculate_allocation([], 10)


class TestCycles:
    def test_hundred_days(self):
        cycles = build_cycles(100)
        assert review_period(100) == 20
        assert [(c.phase, c.start, c.end) for c in cycles] == [
            (StudyPhase.initial_study, 0, 48),
            (StudyPhase.deep_study, 48, 72),
            (StudyPhase.intensive_review, 72, 80),
            (StudyPhase.final_review, 80, 100),
        ]
        assert cycles[1].session_type == SessionType.practice

    def test_short_horizon_is_clamped(self):
        cycles = build_cycles(3)
        assert all(c.length >= 0 for c in cycles)
        assert cycles[-1].phase == StudyPhase.final_review
        assert (cycles[-1].start, cycles[-1].end) == (0, 3)
        assert cycle_for_day(cycles, 1).phase == StudyPhase.final_review

    def test_lookup_defaults_to_first_phase(self):
        cycles = build_cycles(10)
        assert cycle_for_day(cycles, 99).phase == StudyPhase.initial_study

    def test_negative_days(self):
        with pytest.raises(error.InvalidInputError):
            build_cycles(-1)


class TestScheduler:
    def setup_method(self):
        self.subjects = calculate_allocation(
            ["Português", "Matemática", "Informática"], 80)

    def test_sessions_are_bounded_and_consistent(self):
        schedule = build_schedule(self.subjects, date(2024, 1, 1), date(2024, 3, 1), 4)
        assert schedule
        for session in schedule:
            assert MIN_SESSION_MINUTES <= session.duration_minutes <= MAX_SESSION_MINUTES
            assert session.end_time == add_minutes(session.start_time, session.duration_minutes)
            assert session.scheduled_date.weekday() < 5

    def test_sessions_do_not_overlap(self):
        schedule = build_schedule(self.subjects, date(2024, 1, 1), date(2024, 1, 20), 5)
        by_day = {}
        for session in schedule:
            by_day.setdefault(session.scheduled_date, []).append(session)
        for sessions in by_day.values():
            for previous, current in zip(sessions, sessions[1:]):
                assert parse_time(current.start_time) >= parse_time(previous.end_time)

    def test_late_start_stops_at_midnight(self):
        cycle = build_cycles(100)[1]
        sessions = schedule_day(date(2024, 1, 1), 30, cycle, self.subjects, 600, day_start="21:00")
        assert sessions
        for session in sessions:
            assert session.scheduled_date == date(2024, 1, 1)
            assert parse_time(session.end_time) > parse_time(session.start_time)
        assert sum(s.duration_minutes for s in sessions) <= 179

    def test_short_day_has_no_sessions(self):
        cycle = build_cycles(20)[0]
        assert schedule_day(date(2024, 1, 1), 0, cycle, self.subjects, 20) == []

    def test_initial_study_orders_by_priority(self):
        order = order_subjects(self.subjects, StudyPhase.initial_study, 0)
        priorities = [self.subjects[i].priority for i in order]
        assert priorities == sorted(priorities, reverse=True)

    def test_deep_study_alternates(self):
        even = order_subjects(self.subjects, StudyPhase.deep_study, 0)
        odd = order_subjects(self.subjects, StudyPhase.deep_study, 1)
        assert self.subjects[even[0]].difficulty == Difficulty.hard
        assert self.subjects[odd[0]].difficulty == Difficulty.easy

    def test_topics_follow_phase(self):
        cycle = build_cycles(100)[3]
        sessions = schedule_day(date(2024, 1, 1), 90, cycle, self.subjects, 240)
        assert sessions[0].topic.startswith("Revisão final de")
        assert sessions[0].session_type == SessionType.review
        assert sessions[0].start_time == "09:00"
