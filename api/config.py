import os

# 세션 설정
SESSION_COOKIE = "cbt_session"
SESSION_TTL = 3600              # 1시간
SESSION_CLEANUP_INTERVAL = 300  # 5분마다 만료 세션 정리

# CORS 설정
CORS_ORIGINS = [o for o in os.getenv("CORS_ORIGINS", "*").split(",") if o]
