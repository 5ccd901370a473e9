import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.path.join(BASE_DIR, "launch.log")

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# 구독 플랜 기본값 (free / pro / elite)
DEFAULT_PLAN = os.getenv("MOCK_EXAM_PLAN", "free")
DEFAULT_PAPER_CODE = "BT"

# 시험 길이 설정: tier -> (문항 수, 제한 시간 초)
LENGTH_TIERS = {
    "quick": (15, 2160),
    "half": (25, 3600),
    "full": (50, 7200),
}

# 채점 설정
PASS_MARK_PERCENT = 50.0    # 이상이면 합격 (경계 포함)

# 타이머 설정
TICK_INTERVAL_SECONDS = 1.0
LOW_TIME_WARNING_SECONDS = 600  # 10분 미만이면 경고

# 플랜별 모의고사 제한
FREE_MOCKS_TOTAL = 1
PRO_MOCKS_PER_WEEK = 4
