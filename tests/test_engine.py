"""
Tests for ExamEngine (session state machine)

Async scenarios are driven with asyncio.run so that fire-and-forget
persistence tasks have a running loop to attach to.
"""

import asyncio
import logging

import pytest

from helpers import FakeQuestionBank, RecordingSink, mcq, run
from mock_exam.errors import (
    AnswerFormatError,
    InvalidTransitionError,
    QuestionBankUnavailableError,
    QuestionIndexError,
    UpgradeRequiredError,
)
from mock_exam.models.question_model import SingleChoiceAnswer
from mock_exam.models.session_state import ExamPhase, SessionConfig
from mock_exam.services.engine import ExamEngine
from mock_exam.services.review import ReviewStatus

QUICK = SessionConfig.for_tier("BT", "quick")
HALF = SessionConfig.for_tier("BT", "half")
FULL = SessionConfig.for_tier("BT", "full")


class TestStart:

    def test_start_when_allowed_then_in_progress_with_fresh_state(self, engine, collaborators):
        state = run(engine.start(QUICK))

        assert engine.phase is ExamPhase.IN_PROGRESS
        assert state.question_count == 15
        assert state.time_remaining_seconds == 2160
        assert [(s.start_index, s.end_index) for s in engine.sections] == [(0, 14)]
        assert collaborators.entitlement.requests == [("mock-exam", "quick")]
        assert collaborators.question_bank.requests == [("BT", 15)]

    def test_start_when_entitlement_denied_then_stays_configuring(self, engine, collaborators):
        collaborators.entitlement.allowed = False
        collaborators.entitlement.remaining = 0

        with pytest.raises(UpgradeRequiredError) as exc_info:
            run(engine.start(QUICK))

        assert exc_info.value.remaining == 0
        assert engine.phase is ExamPhase.CONFIGURING
        assert engine.state is None
        assert collaborators.question_bank.requests == []

    def test_start_when_bank_fails_then_retryable_and_configuring(self, engine, collaborators):
        collaborators.question_bank.fail = True

        with pytest.raises(QuestionBankUnavailableError):
            run(engine.start(QUICK))
        assert engine.phase is ExamPhase.CONFIGURING

        collaborators.question_bank.fail = False
        run(engine.start(QUICK))
        assert engine.phase is ExamPhase.IN_PROGRESS

    def test_start_when_bank_returns_fewer_then_runs_shorter_exam(self, engine, collaborators, caplog):
        collaborators.question_bank = FakeQuestionBank([mcq(i) for i in range(40)])

        with caplog.at_level(logging.WARNING):
            state = run(engine.start(FULL))

        assert state.question_count == 40
        assert len(state.answers) == len(state.time_per_question) == 40
        assert engine.sections[-1].end_index == 39
        assert "40" in caplog.text

    def test_start_when_bank_returns_nothing_then_unavailable(self, engine, collaborators):
        collaborators.question_bank.questions = []
        with pytest.raises(QuestionBankUnavailableError):
            run(engine.start(QUICK))
        assert engine.phase is ExamPhase.CONFIGURING

    def test_start_when_called_concurrently_then_second_rejected_and_one_clock(self, collaborators):
        engine = ExamEngine(collaborators, interval=0.01)

        async def scenario():
            outcomes = await asyncio.gather(engine.start(QUICK), engine.start(QUICK), return_exceptions=True)
            await asyncio.sleep(0.1)
            engine.shutdown()
            stopped_at = engine.state.time_remaining_seconds
            await asyncio.sleep(0.05)
            return outcomes, stopped_at

        (first, second), stopped_at = run(scenario())

        assert isinstance(second, InvalidTransitionError)
        assert first is engine.state
        assert engine.timer.state is engine.state
        assert stopped_at < QUICK.duration_seconds
        assert engine.state.time_remaining_seconds == stopped_at
        assert collaborators.question_bank.requests == [("BT", 15)]

    def test_start_when_already_in_progress_then_raises_error(self, engine):
        async def scenario():
            await engine.start(QUICK)
            await engine.start(QUICK)

        with pytest.raises(InvalidTransitionError):
            run(scenario())


class TestInProgress:

    def test_answer_when_raw_value_then_stored_as_variant(self, engine):
        run(engine.start(QUICK))
        stored = engine.answer(3, 2)
        assert stored == SingleChoiceAnswer(index=2)
        assert engine.state.answers[3] == stored

    def test_answer_when_none_then_clears(self, engine):
        run(engine.start(QUICK))
        engine.answer(3, 2)
        engine.answer(3, None)
        assert engine.state.answers[3] is None

    def test_answer_when_bad_index_then_raises_error(self, engine):
        run(engine.start(QUICK))
        with pytest.raises(QuestionIndexError):
            engine.answer(15, 0)

    def test_answer_when_wrong_shape_then_raises_error(self, engine):
        run(engine.start(QUICK))
        with pytest.raises(AnswerFormatError):
            engine.answer(0, {"kind": "numeric", "value": 3})

    def test_navigate_when_clock_advanced_then_time_recorded_for_previous(self, engine, clock):
        run(engine.start(QUICK))
        clock.advance(4)
        engine.navigate_to(5)
        clock.advance(2)
        engine.navigate_to(0)

        assert engine.state.time_per_question[0] == 4000
        assert engine.state.time_per_question[5] == 2000
        assert engine.state.current_index == 0

    def test_next_previous_when_at_bounds_then_stays(self, engine):
        run(engine.start(QUICK))
        assert engine.previous_question() == 0
        engine.navigate_to(14)
        assert engine.next_question() == 14

    def test_handle_key_when_arrows_in_progress_then_moves(self, engine):
        run(engine.start(QUICK))
        assert engine.handle_key("ArrowRight") == "next"
        assert engine.state.current_index == 1
        assert engine.handle_key("ArrowLeft") == "previous"
        assert engine.state.current_index == 0
        assert engine.handle_key("Escape") is None
        assert engine.handle_key("Enter") is None

    def test_operations_when_configuring_then_rejected(self, engine):
        with pytest.raises(InvalidTransitionError):
            engine.answer(0, 0)
        with pytest.raises(InvalidTransitionError):
            engine.submit()
        engine.tick()  # ignored
        assert engine.phase is ExamPhase.CONFIGURING


class TestSubmit:

    def test_submit_when_timer_and_manual_race_then_one_result_and_one_persistence(self, engine, collaborators):
        async def scenario():
            await engine.start(QUICK)
            for _ in range(QUICK.duration_seconds):
                engine.tick()
            first = engine.result
            second = engine.submit()
            third = engine.submit()
            await engine.wait_for_persistence()
            return first, second, third

        first, second, third = run(scenario())

        assert first is not None
        assert first is second is third
        assert len(collaborators.session_log.calls) == 1
        assert len(collaborators.spaced_repetition.calls) == 1
        assert len(collaborators.badges.calls) == 1

    def test_submit_when_timeout_with_unanswered_then_auto_submitted(self, engine, collaborators):
        async def scenario():
            await engine.start(FULL)
            for i in range(40):
                engine.answer(i, 0)
            for _ in range(FULL.duration_seconds):
                engine.tick()
            engine.tick()
            await engine.wait_for_persistence()

        run(scenario())

        assert engine.phase is ExamPhase.SUBMITTED
        assert engine.result.unanswered_count == 10
        assert engine.result.correct_count == 40
        assert engine.result.total_elapsed_seconds == FULL.duration_seconds
        assert engine.state.time_remaining_seconds == 0
        assert len(collaborators.session_log.calls) == 1

    def test_submit_when_called_then_finalizes_current_question_time(self, engine, clock):
        async def scenario():
            await engine.start(QUICK)
            engine.navigate_to(7)
            clock.advance(3)
            return engine.submit()

        result = run(scenario())
        assert result.time_per_question[7] == 3000

    def test_submit_when_done_then_state_frozen(self, engine):
        async def scenario():
            await engine.start(QUICK)
            engine.submit()

        run(scenario())
        with pytest.raises(InvalidTransitionError):
            engine.answer(0, 1)
        with pytest.raises(InvalidTransitionError):
            engine.toggle_flag(0)
        with pytest.raises(InvalidTransitionError):
            engine.navigate_to(1)
        remaining = engine.state.time_remaining_seconds
        engine.tick()
        assert engine.state.time_remaining_seconds == remaining

    def test_submit_when_persistence_fails_then_result_kept_and_error_logged(self, engine, collaborators, caplog):
        collaborators.session_log = RecordingSink(fail=True)

        async def scenario():
            await engine.start(QUICK)
            engine.answer(0, 0)
            result = engine.submit()
            await engine.wait_for_persistence()
            return result

        with caplog.at_level(logging.ERROR):
            result = run(scenario())

        assert engine.result is result
        assert result.correct_count == 1
        assert engine.phase is ExamPhase.SUBMITTED
        assert len(collaborators.spaced_repetition.calls) == 1
        assert len(collaborators.badges.calls) == 1
        assert "session log" in caplog.text

    def test_submit_when_published_then_payloads_match_result(self, engine, collaborators, clock):
        async def scenario():
            await engine.start(QUICK)
            engine.answer(0, 0)
            engine.answer(1, 2)
            clock.advance(1.5)
            engine.submit()
            await engine.wait_for_persistence()

        run(scenario())

        log = collaborators.session_log.calls[0].model_dump(by_alias=True)
        assert log["sessionType"] == "mock_exam"
        assert log["totalQuestions"] == 15
        assert log["correctAnswers"] == 1
        assert log["rawLog"][0]["correct"] is True
        assert log["rawLog"][0]["timeSpentSeconds"] == 1.5
        assert log["rawLog"][1]["correct"] is False
        reviews = collaborators.spaced_repetition.calls[0]
        assert [r.is_correct for r in reviews][:2] == [True, False]
        topics = collaborators.topic_performance.calls[0]
        assert len(topics) == 15


class TestReviewAndReset:

    def _submitted(self, engine, correct_indices):
        async def scenario():
            await engine.start(QUICK)
            for i in correct_indices:
                engine.answer(i, 0)
            engine.submit()

        run(scenario())

    def test_enter_review_when_submitted_then_reviewing(self, engine):
        self._submitted(engine, range(10))
        review = engine.enter_review()
        assert engine.phase is ExamPhase.REVIEWING
        assert len(review.working_list) == 15

    def test_escape_when_reviewing_then_exits_and_resets_incorrect_only(self, engine):
        self._submitted(engine, range(10))
        engine.enter_review(incorrect_only=True)
        assert engine.handle_key("Escape") == "exit"
        assert engine.phase is ExamPhase.SUBMITTED
        assert engine.review.incorrect_only is False

    def test_arrows_when_reviewing_then_move_review_position(self, engine):
        self._submitted(engine, range(10))
        review = engine.enter_review()
        engine.handle_key("ArrowRight")
        engine.handle_key("ArrowRight")
        engine.handle_key("ArrowLeft")
        assert review.position == 1
        assert engine.state.current_index == 0

    def test_enter_review_when_all_correct_and_incorrect_only_then_perfect_score(self, engine):
        self._submitted(engine, range(15))
        review = engine.enter_review(incorrect_only=True)
        assert review.status is ReviewStatus.PERFECT_SCORE
        assert review.current() is None

    def test_reset_when_submitted_then_configuring_and_discarded(self, engine):
        self._submitted(engine, range(3))
        engine.reset()
        assert engine.phase is ExamPhase.CONFIGURING
        assert engine.state is None
        assert engine.result is None
        assert engine.review is None

    def test_reset_when_reviewing_then_configuring(self, engine):
        self._submitted(engine, range(3))
        engine.enter_review()
        engine.reset()
        assert engine.phase is ExamPhase.CONFIGURING

    def test_reset_when_in_progress_then_rejected(self, engine):
        run(engine.start(QUICK))
        with pytest.raises(InvalidTransitionError):
            engine.reset()

    def test_enter_review_when_in_progress_then_rejected(self, engine):
        run(engine.start(QUICK))
        with pytest.raises(InvalidTransitionError):
            engine.enter_review()

    def test_new_exam_when_after_reset_then_fresh_state(self, engine):
        self._submitted(engine, range(3))
        engine.reset()
        state = run(engine.start(HALF))
        assert state.question_count == 25
        assert all(a is None for a in state.answers)
        assert engine.result is None


class TestAutoTick:

    def test_auto_tick_when_time_runs_out_then_submits_once_and_stops(self, collaborators):
        engine = ExamEngine(collaborators, interval=0.01)

        async def scenario():
            await engine.start(QUICK)
            engine.answer(0, 0)
            engine.state.time_remaining_seconds = 3
            await asyncio.sleep(0.3)
            await engine.wait_for_persistence()
            return engine.timer._ticker._task

        tick_task = run(scenario())

        assert engine.phase is ExamPhase.SUBMITTED
        assert engine.result.correct_count == 1
        assert engine.state.time_remaining_seconds == 0
        assert engine.timer.running is False
        assert tick_task.done()
        assert len(collaborators.session_log.calls) == 1
        assert engine.submit() is engine.result
