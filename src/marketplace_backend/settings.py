import os
import threading

class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE","development")
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL","INFO").upper()
        # Token settings
        self.JWT_SECRET = os.environ.get("JWT_SECRET","change-me")
        self.JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM","HS256")
        self.JWT_EXPIRE_MINUTES = int(os.environ.get("JWT_EXPIRE_MINUTES","60"))
        # "redis" in deployments, "memory" for tests and single-process runs
        self.CACHE_BACKEND = os.environ.get("CACHE_BACKEND","redis").lower()
        self.UNCATEGORIZED_LABEL = os.environ.get("UNCATEGORIZED_LABEL","Uncategorized")

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

settings = BackendSettings()
