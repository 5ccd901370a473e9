"""
api/routes.py — FastAPI 엔드포인트
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ValidationError

import api.session as session
from config import DEFAULT_PAPER_CODE, LENGTH_TIERS
from mock_exam.errors import (
    AnswerFormatError,
    ExamEngineError,
    InvalidTransitionError,
    QuestionBankUnavailableError,
    QuestionIndexError,
    UpgradeRequiredError,
)
from mock_exam.models.question_model import Question
from mock_exam.models.session_state import ExamPhase, ExamResult, SessionConfig
from mock_exam.services.collaborators import (
    Collaborators,
    InMemoryBadgeEvaluator,
    InMemorySessionLog,
    InMemorySpacedRepetition,
    InMemoryTopicPerformance,
    PlanEntitlementService,
)
from mock_exam.services.engine import ExamEngine
from mock_exam.services.review import ReviewItem, ReviewModeController

logger = logging.getLogger(__name__)

router = APIRouter()

_PLANS = ("free", "pro", "elite")

# 진행 중에는 내려보내지 않는 metadata 정답 키
_ANSWER_KEYS = {"correctAnswers", "correctPairs", "tolerance"}


# ── Pydantic request bodies ──────────────────────────────────────────────────

class StartExamBody(BaseModel):
    paper_code: str = DEFAULT_PAPER_CODE
    length_tier: str = "full"
    acknowledged_rules: bool = False

class AnswerBody(BaseModel):
    index: int
    value: Any = None

class IndexBody(BaseModel):
    index: int

class KeyBody(BaseModel):
    key: str

class ReviewStartBody(BaseModel):
    incorrect_only: bool = False

class PlanBody(BaseModel):
    plan: str


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _sid(request: Request) -> str:
    return request.state.session_id


def _public_metadata(metadata: dict | None) -> dict | None:
    if not metadata:
        return metadata
    public = {k: v for k, v in metadata.items() if k not in _ANSWER_KEYS}
    if isinstance(public.get("blanks"), list):
        public["blanks"] = len(public["blanks"])
    if isinstance(public.get("subQuestions"), list):
        public["subQuestions"] = [
            {k: v for k, v in sub.items() if k != "correctAnswer"} if isinstance(sub, dict) else sub
            for sub in public["subQuestions"]
        ]
    return public


def _question_to_dict(q: Question, reveal: bool = False) -> dict:
    d = {
        "id": q.id,
        "paper_code": q.paper_code,
        "unit_code": q.unit_code,
        "type": q.type,
        "prompt": q.prompt,
        "options": q.options,
        "metadata": q.metadata if reveal else _public_metadata(q.metadata),
    }
    if reveal:
        d.update({
            "correct_option_index": q.correct_option_index,
            "answer_text": q.answer_text,
            "explanation": q.explanation,
        })
    return d


def _answer_to_json(answer) -> Any:
    return answer.model_dump(mode="json") if answer is not None else None


def _review_item_to_dict(item: ReviewItem | None, review: ReviewModeController) -> dict:
    d = {
        "status": review.status.value,
        "incorrect_only": review.incorrect_only,
        "position": review.position,
        "count": len(review.working_list),
    }
    if item is not None:
        d.update({
            "index": item.index,
            "question": _question_to_dict(item.question, reveal=True),
            "answer": _answer_to_json(item.answer),
            "is_correct": item.is_correct,
            "flagged": item.flagged,
            "time_spent_seconds": item.time_spent_ms / 1000,
        })
    return d


def _result_to_dict(result: ExamResult) -> dict:
    d = result.model_dump(mode="json")
    d["accuracy_display"] = f"{result.accuracy_pct:.1f}"
    return d


def _engine(request: Request) -> ExamEngine:
    """세션의 엔진을 가져오거나, 없으면 새로 만든다."""
    sid = _sid(request)
    engine: ExamEngine | None = session.get(sid, "engine")
    if engine is None:
        collaborators = Collaborators(
            question_bank=request.app.state.question_bank,
            entitlement=PlanEntitlementService(session.get(sid, "ledger"), session.get(sid, "plan")),
            session_log=InMemorySessionLog(session.get(sid, "ledger")),
            spaced_repetition=InMemorySpacedRepetition(),
            topic_performance=InMemoryTopicPerformance(),
            badges=InMemoryBadgeEvaluator(),
        )
        engine = ExamEngine(collaborators, auto_tick=request.app.state.auto_tick)
        session.put(sid, "collaborators", collaborators)
        session.put(sid, "engine", engine)
    return engine


def _active_engine(request: Request) -> ExamEngine:
    engine: ExamEngine | None = session.get(_sid(request), "engine")
    if engine is None or engine.phase is ExamPhase.CONFIGURING:
        raise HTTPException(status_code=404, detail="시험 세션이 없습니다.")
    return engine


def _raise_http(e: ExamEngineError):
    if isinstance(e, UpgradeRequiredError):
        raise HTTPException(
            status_code=402,
            detail={"message": str(e), "upgrade_required": True, "remaining": e.remaining},
        )
    if isinstance(e, QuestionBankUnavailableError):
        raise HTTPException(status_code=503, detail="시험을 시작하지 못했습니다. 잠시 후 다시 시도해 주세요.")
    if isinstance(e, QuestionIndexError):
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")
    if isinstance(e, AnswerFormatError):
        raise HTTPException(status_code=422, detail=str(e))
    if isinstance(e, InvalidTransitionError):
        raise HTTPException(status_code=409, detail=str(e))
    raise HTTPException(status_code=400, detail=str(e))


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.get("/api/exam/tiers")
async def list_tiers():
    return {
        tier: {"question_count": count, "duration_seconds": duration}
        for tier, (count, duration) in LENGTH_TIERS.items()
    }


@router.post("/api/plan")
async def set_plan(body: PlanBody, request: Request):
    if body.plan not in _PLANS:
        raise HTTPException(status_code=400, detail=f"알 수 없는 플랜입니다: {body.plan}")
    sid = _sid(request)
    session.put(sid, "plan", body.plan)
    collaborators: Collaborators | None = session.get(sid, "collaborators")
    if collaborators is not None:
        collaborators.entitlement.plan = body.plan
    return {"plan": body.plan, "ok": True}


@router.post("/api/exam/start")
async def start_exam(body: StartExamBody, request: Request):
    if not body.acknowledged_rules:
        raise HTTPException(status_code=400, detail="시험 규칙에 동의해야 시작할 수 있습니다.")
    try:
        config = SessionConfig.for_tier(body.paper_code, body.length_tier)
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"잘못된 시험 설정입니다: {e}")

    engine = _engine(request)
    try:
        state = await engine.start(config)
    except ExamEngineError as e:
        _raise_http(e)
    return {
        "total": state.question_count,
        "requested": config.question_count,
        "duration_seconds": config.duration_seconds,
        "ok": True,
    }


@router.get("/api/exam/state")
async def get_exam_state(request: Request):
    engine: ExamEngine | None = session.get(_sid(request), "engine")
    if engine is None:
        return {"phase": ExamPhase.CONFIGURING.value}
    return engine.snapshot()


@router.get("/api/exam/question/{index}")
async def get_question(index: int, request: Request):
    engine = _active_engine(request)
    state = engine.state
    if not 0 <= index < state.question_count:
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")

    q = state.questions[index]
    reveal = engine.phase is not ExamPhase.IN_PROGRESS
    d = _question_to_dict(q, reveal=reveal)
    d.update({
        "index": index,
        "total": state.question_count,
        "saved_answer": _answer_to_json(state.answers[index]),
        "flagged": engine.navigation.is_flagged(index),
        "status": engine.navigation.status_of(index).value,
    })
    return d


@router.post("/api/exam/answer")
async def save_answer(body: AnswerBody, request: Request):
    engine = _active_engine(request)
    try:
        stored = engine.answer(body.index, body.value)
    except ExamEngineError as e:
        _raise_http(e)
    return {
        "ok": True,
        "answer": _answer_to_json(stored),
        "answered_count": engine.navigation.answered_count(),
    }


@router.post("/api/exam/flag")
async def toggle_flag(body: IndexBody, request: Request):
    engine = _active_engine(request)
    try:
        flagged = engine.toggle_flag(body.index)
    except ExamEngineError as e:
        _raise_http(e)
    return {"index": body.index, "flagged": flagged, "ok": True}


@router.post("/api/exam/navigate")
async def navigate(body: IndexBody, request: Request):
    engine = _active_engine(request)
    try:
        idx = engine.navigate_to(body.index)
    except ExamEngineError as e:
        _raise_http(e)
    return {"index": idx, "ok": True}


@router.post("/api/exam/key")
async def press_key(body: KeyBody, request: Request):
    engine = _active_engine(request)
    action = engine.handle_key(body.key)
    return {"action": action, "phase": engine.phase.value}


@router.post("/api/exam/submit")
async def submit_exam(request: Request):
    engine = _active_engine(request)
    try:
        result = engine.submit()
    except ExamEngineError as e:
        _raise_http(e)
    return _result_to_dict(result)


@router.get("/api/exam/result")
async def get_result(request: Request):
    engine = _active_engine(request)
    if engine.result is None:
        raise HTTPException(status_code=400, detail="시험이 아직 제출되지 않았습니다.")
    return _result_to_dict(engine.result)


@router.post("/api/exam/reset")
async def reset_exam(request: Request):
    """다른 시험 보기. 이전 상태와 결과를 버린다."""
    engine: ExamEngine | None = session.get(_sid(request), "engine")
    if engine is not None and engine.phase is not ExamPhase.CONFIGURING:
        try:
            engine.reset()
        except ExamEngineError as e:
            _raise_http(e)
    return {"phase": ExamPhase.CONFIGURING.value, "ok": True}


# ── 리뷰 모드 ────────────────────────────────────────────────────────────────

def _reviewing(request: Request) -> ReviewModeController:
    engine = _active_engine(request)
    if engine.phase is not ExamPhase.REVIEWING:
        raise HTTPException(status_code=409, detail="리뷰 모드가 아닙니다.")
    return engine.review


@router.post("/api/review/start")
async def start_review(body: ReviewStartBody, request: Request):
    engine = _active_engine(request)
    try:
        review = engine.enter_review(body.incorrect_only)
    except ExamEngineError as e:
        _raise_http(e)
    return _review_item_to_dict(review.current(), review)


@router.post("/api/review/toggle")
async def toggle_review_mode(request: Request):
    review = _reviewing(request)
    review.toggle_incorrect_only()
    return _review_item_to_dict(review.current(), review)


@router.get("/api/review/current")
async def current_review_item(request: Request):
    review = _reviewing(request)
    return _review_item_to_dict(review.current(), review)


@router.post("/api/review/next")
async def next_review_item(request: Request):
    review = _reviewing(request)
    return _review_item_to_dict(review.next(), review)


@router.post("/api/review/previous")
async def previous_review_item(request: Request):
    review = _reviewing(request)
    return _review_item_to_dict(review.previous(), review)


@router.post("/api/review/exit")
async def exit_review(request: Request):
    engine = _active_engine(request)
    try:
        engine.exit_review()
    except ExamEngineError as e:
        _raise_http(e)
    return {"phase": engine.phase.value, "ok": True}
