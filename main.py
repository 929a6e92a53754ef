from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from sqlalchemy.engine import Engine
from sqlmodel import Session

from predictor import config
from predictor.database import build_engine, create_db_and_tables
from predictor.errors import register_exception_handlers
from predictor.logging import get_logger, setup_logging
from predictor.routers import admin, auth, comments, leaderboard, matches, predictions
from predictor.services.auth import ensure_admin
from predictor.services.storage import PhotoStorage

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: create tables and make sure an admin exists
    create_db_and_tables(app.state.engine)
    with Session(app.state.engine) as db:
        ensure_admin(db, config.ADMIN_USERNAME, config.ADMIN_PASSWORD)
    log.info("startup_complete", database=app.state.engine.url.render_as_string(hide_password=True))
    yield
    app.state.engine.dispose()


def create_app(engine: Optional[Engine] = None, photo_storage: Optional[PhotoStorage] = None) -> FastAPI:
    """Build the application around one engine and one photo store."""
    setup_logging(config.LOG_LEVEL, json_format=config.LOG_JSON)

    app = FastAPI(
        title="Premier League Predictor",
        description="Predict Premier League scores and compete on the leaderboard",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.engine = engine or build_engine(config.DATABASE_URL)
    app.state.photo_storage = photo_storage or PhotoStorage(config.UPLOAD_DIR, config.UPLOAD_URL_PREFIX)

    register_exception_handlers(app)

    # Uploaded profile photos
    app.mount(
        config.UPLOAD_URL_PREFIX,
        StaticFiles(directory=str(app.state.photo_storage.root), check_dir=False),
        name="uploads"
    )

    app.include_router(auth.router)
    app.include_router(matches.router)
    app.include_router(predictions.router)
    app.include_router(comments.router)
    app.include_router(leaderboard.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
