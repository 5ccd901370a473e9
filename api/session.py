"""
api/session.py — 멀티유저 인메모리 세션 (쿠키 기반)

각 사용자에게 UUID 세션 ID를 발급하고, 세션별로 독립된 시험 엔진을 유지.
TTL(기본 1시간) 경과 시 만료되며, 만료된 세션의 타이머는 취소된다.
"""

import threading
import time
import uuid
from typing import Any

from api.config import SESSION_TTL
from config import DEFAULT_PLAN
from mock_exam.services.collaborators import UsageLedger

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "plan": DEFAULT_PLAN,
        "ledger": UsageLedger(),
        "collaborators": None,
        "engine": None,
    }


def _shutdown(state: dict[str, Any]) -> None:
    engine = state.get("engine")
    if engine is not None:
        engine.shutdown()


def create_session() -> str:
    """새 세션을 생성하고 세션 ID를 반환."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """세션 ID로 세션 데이터를 가져옴. 만료되었거나 없으면 None."""
    with _lock:
        if sid not in _sessions:
            return None
        if time.time() - _timestamps[sid] > SESSION_TTL:
            _shutdown(_sessions.pop(sid))
            del _timestamps[sid]
            return None
        _timestamps[sid] = time.time()  # 접근 시 갱신
        return _sessions[sid]


def get(sid: str, key: str, default=None):
    """세션에서 값 읽기."""
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    """세션에 값 쓰기."""
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def cleanup_expired() -> int:
    """만료된 세션을 정리. 제거된 수 반환."""
    now = time.time()
    removed = 0
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        for sid in expired:
            _shutdown(_sessions.pop(sid))
            del _timestamps[sid]
            removed += 1
    return removed


def clear() -> None:
    """모든 세션 제거 (앱 종료 / 테스트용)."""
    with _lock:
        for state in _sessions.values():
            _shutdown(state)
        _sessions.clear()
        _timestamps.clear()
