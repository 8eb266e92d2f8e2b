import uvicorn
from marketplace_backend.settings import settings
from marketplace_backend.server import init_database

if __name__ == "__main__":

    if settings.DEBUG_MODE != "production":
        init_database()

    uvicorn.run("marketplace_backend.server:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower(), reload=True, workers=1)
