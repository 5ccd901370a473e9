"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

import api.session as session
from api.config import CORS_ORIGINS, SESSION_CLEANUP_INTERVAL, SESSION_COOKIE, SESSION_TTL
from api.routes import router
from api.sample_questions import SAMPLE_QUESTIONS
from mock_exam.services.collaborators import InMemoryQuestionBank, QuestionBank

logger = logging.getLogger(__name__)


async def _cleanup_loop() -> None:
    """만료 세션 주기적 정리. 엔진 타이머와 같은 이벤트 루프에서 돈다."""
    while True:
        await asyncio.sleep(SESSION_CLEANUP_INTERVAL)
        removed = session.cleanup_expired()
        if removed:
            logger.info(f"만료 세션 {removed}개 정리")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    cleanup = asyncio.create_task(_cleanup_loop())
    try:
        yield
    finally:
        cleanup.cancel()
        session.clear()


def create_app(question_bank: QuestionBank | None = None, auto_tick: bool = True) -> FastAPI:
    """
    Args:
        question_bank: 문제 은행 구현 (기본값: 샘플 문제 인메모리 은행).
        auto_tick:     False면 서버가 시험 타이머를 자동으로 감소시키지 않는다 (테스트용).
    """
    app = FastAPI(title="Mock Exam Engine", docs_url=None, redoc_url=None, lifespan=_lifespan)
    app.state.question_bank = question_bank or InMemoryQuestionBank(SAMPLE_QUESTIONS)
    app.state.auto_tick = auto_tick

    # CORS (모바일 브라우저 등 다양한 출처 허용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)
    return app
