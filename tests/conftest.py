import sys
from pathlib import Path

import pytest

# Add project root to sys.path so we can import api / mock_exam / config
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())

from helpers import FakeClock, FakeEntitlement, FakeQuestionBank, RecordingSink, mcq  # noqa: E402
from mock_exam.models.question_model import Question  # noqa: E402
from mock_exam.services.collaborators import Collaborators  # noqa: E402
from mock_exam.services.engine import ExamEngine  # noqa: E402


# Common test fixtures
@pytest.fixture
def make_question():
    def _make(type: str = "MCQ_SINGLE", **kwargs) -> Question:
        defaults = dict(id="Q1", paper_code="BT", type=type, prompt="Prompt?")
        defaults.update(kwargs)
        return Question(**defaults)

    return _make


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def question_pool():
    """Fifty single-choice questions whose correct option is always 0."""
    return [mcq(i) for i in range(50)]


@pytest.fixture
def collaborators(question_pool):
    return Collaborators(
        question_bank=FakeQuestionBank(question_pool),
        entitlement=FakeEntitlement(),
        session_log=RecordingSink(),
        spaced_repetition=RecordingSink(),
        topic_performance=RecordingSink(),
        badges=RecordingSink(),
    )


@pytest.fixture
def engine(collaborators, clock):
    return ExamEngine(collaborators, auto_tick=False, clock=clock)
