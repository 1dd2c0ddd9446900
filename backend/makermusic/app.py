import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.engine import Engine

from .config import Settings
from .context import AppContext
from .database import check_connection, init_db
from .errors import register_exception_handlers
from .mailer import Mailer
from .routes import ROUTERS
from .services.users import seed_admin

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler()],
    )


def _seed_admin(context: AppContext) -> None:
    db = context.session_factory()
    try:
        admin = seed_admin(db, email=context.settings.admin_email, password=context.settings.admin_password)
        if admin:
            logger.info(f"Seeded administrator {admin.email}")
    finally:
        db.close()


def create_app(settings: Settings | None = None, *, engine: Engine | None = None, mailer: Mailer | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    context = AppContext.build(settings, engine=engine, mailer=mailer)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            logger.info("Checking database connection...")
            check_connection(context.engine)
            init_db(context.engine)
            logger.info("Database initialized.")
        except Exception:
            logger.critical("Could not connect to the database, shutting down.")
            raise
        _seed_admin(context)
        if not settings.mail_configured:
            logger.warning("EMAIL_USER/EMAIL_PASS not set, outgoing email is disabled.")
        yield
        logger.info("Shutting down...")
        context.engine.dispose()

    app = FastAPI(title="MakerMusic API", lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # StaticFiles answers Range requests, which mobile video players rely on.
    context.attachments.ensure_directory()
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

    for router in ROUTERS:
        app.include_router(router)

    @app.get("/")
    def root():
        return {"message": "API MakerMusic a funcionar!"}

    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app = create_app(settings)
    logger.info(f"Starting MakerMusic API on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
