"""
Shared fakes and helpers for the engine tests.
"""

import asyncio

from mock_exam.models.question_model import Question
from mock_exam.services.collaborators import Entitlement


def run(coro):
    """Drive an async engine scenario from a plain test."""
    return asyncio.run(coro)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeQuestionBank:
    def __init__(self, questions, fail: bool = False):
        self.questions = list(questions)
        self.fail = fail
        self.requests = []

    async def fetch_questions(self, paper_code, count):
        self.requests.append((paper_code, count))
        await asyncio.sleep(0)
        if self.fail:
            raise ConnectionError("question bank offline")
        return [q for q in self.questions if q.paper_code == paper_code][:count]


class FakeEntitlement:
    def __init__(self, allowed: bool = True, remaining=None):
        self.allowed = allowed
        self.remaining = remaining
        self.requests = []

    async def check(self, feature, tier):
        self.requests.append((feature, tier))
        return Entitlement(allowed=self.allowed, remaining=self.remaining)


class RecordingSink:
    """Records every call; optionally fails to exercise error isolation."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def _record(self, payload=None):
        self.calls.append(payload)
        if self.fail:
            raise RuntimeError("persistence offline")

    async def log_session(self, payload):
        await self._record(payload)

    async def record_batch(self, reviews):
        await self._record(list(reviews))

    async def track_batch(self, entries):
        await self._record(list(entries))

    async def evaluate(self):
        await self._record()


def mcq(i: int, correct: int = 0, paper: str = "BT", **kwargs) -> Question:
    defaults = dict(
        id=f"Q{i:03d}",
        paper_code=paper,
        unit_code=f"U{i % 3}",
        type="MCQ_SINGLE",
        prompt=f"Question {i}?",
        options=["A", "B", "C", "D"],
        correct_option_index=correct,
        difficulty="easy",
        topic_name=f"Topic {i % 4}",
    )
    defaults.update(kwargs)
    return Question(**defaults)
