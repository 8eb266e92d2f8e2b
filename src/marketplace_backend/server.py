import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from marketplace_backend.api.access import access_router
from marketplace_backend.api.attachments import attachments_router
from marketplace_backend.api.catalog import catalog_router
from marketplace_backend.api.products import product_router, module_router, lesson_router, user_router
from marketplace_backend.api.signup import signup_router
from marketplace_backend.database import get_engine
from marketplace_backend.model import Base
from marketplace_backend.permissions.core import initialize_permission_handlers
from marketplace_backend.settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

logger = logging.getLogger(__name__)


def init_database():
    """Create any missing tables"""
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database schema is up to date")


@asynccontextmanager
async def lifespan(app: FastAPI):

    initialize_permission_handlers()

    if settings.DEBUG_MODE != "production":
        init_database()

    yield

app = FastAPI(title="Course Marketplace", lifespan=lifespan)

origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

app.include_router(
    signup_router,
    tags=["signup", "authentication"]
)

user_router.register_routes(app)
product_router.register_routes(app)
module_router.register_routes(app)
lesson_router.register_routes(app)

app.include_router(access_router)
app.include_router(catalog_router)
app.include_router(attachments_router)

@app.head("/", status_code=204)
def get_status_head():
    return
