import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "launch.log"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "0.0.0.0")
DEFAULT_PORT = int(os.getenv("PORT", "3000"))

# 세션 설정
SESSION_TTL = int(os.getenv("SESSION_TTL", "3600"))                       # 1시간
SESSION_CLEANUP_INTERVAL = int(os.getenv("SESSION_CLEANUP_INTERVAL", "300"))  # 5분

# 타이머 설정 (tick 간격, 초)
TIMER_TICK_SECONDS = float(os.getenv("TIMER_TICK_SECONDS", "1.0"))

# 결과 리포트 (Resend 이메일 API)
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
EXAMINER_EMAIL = os.getenv("EXAMINER_EMAIL", "")
REPORT_SENDER = os.getenv("REPORT_SENDER", "SecureExam <onboarding@resend.dev>")
REPORT_API_URL = os.getenv("REPORT_API_URL", "https://api.resend.com/emails")
REPORT_TIMEOUT = float(os.getenv("REPORT_TIMEOUT", "15.0"))
