from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./weekly_tasks.db")
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")
    SUBSCRIBER_QUEUE_SIZE = int(getenv("SUBSCRIBER_QUEUE_SIZE", "100"))

    # client python (sync_service)
    API_BASE_URL = getenv("API_BASE_URL", "http://localhost:8000")
    REQUEST_TIMEOUT = int(getenv("REQUEST_TIMEOUT", "10"))

    # pomodoro, en secondes
    WORK_DURATION = int(getenv("WORK_DURATION", "1500"))  #25 minutes
    SHORT_BREAK_DURATION = int(getenv("SHORT_BREAK_DURATION", "300"))  #5 minutes
    LONG_BREAK_DURATION = int(getenv("LONG_BREAK_DURATION", "900"))  #15 minutes
    SESSIONS_UNTIL_LONG_BREAK = int(getenv("SESSIONS_UNTIL_LONG_BREAK", "4"))

settings = Settings()
