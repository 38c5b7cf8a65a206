from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./todo_storage.db")
    STORAGE_TASKS_KEY = getenv("STORAGE_TASKS_KEY", "tasks")  # une seule clé par client
    SESSION_SECRET = getenv("SESSION_SECRET", "dev-secret-change-in-prod")
    SESSION_EXPIRE_MIN = int(getenv("SESSION_EXPIRE_MIN", "43200"))  # 30 jours
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

    # Chat values are read on every access: a missing key only fails at call time
    @property
    def CHAT_API_URL(self) -> str:
        return getenv("CHAT_API_URL", "https://api.dify.ai/v1").rstrip("/")

    @property
    def CHAT_API_KEY(self) -> str:
        return getenv("CHAT_API_KEY", "").strip()

    @property
    def CHAT_MODEL(self) -> str:
        return getenv("CHAT_MODEL", "dify")

    @property
    def CHAT_TIMEOUT_SECONDS(self) -> float:
        return float(getenv("CHAT_TIMEOUT_SECONDS", "30"))

    @property
    def CHAT_CONNECT_TIMEOUT_SECONDS(self) -> float:
        return float(getenv("CHAT_CONNECT_TIMEOUT_SECONDS", "5"))

settings = Settings()
