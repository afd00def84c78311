from typing import Optional
from fastapi import FastAPI
from sqlalchemy.engine import Engine
from app.config import Settings, get_settings
from app.db import Base, create_db_engine, make_session_factory
from app.api.routes import router as api_router
from app.utils import logger
import app.models  # noqa: F401 ensure models are imported so tables are known


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the API around an injected storage handle.

    When `engine` is omitted one is created from `settings` on startup and
    disposed on shutdown.
    """
    application = FastAPI(title="imoveis-import")
    application.include_router(api_router)
    application.state.settings = settings or get_settings()
    owns_engine = engine is None

    @application.on_event("startup")
    def on_startup_bind_storage():
        bound = engine or create_db_engine(application.state.settings)
        application.state.engine = bound
        application.state.session_factory = make_session_factory(bound)
        # Ensure database tables are created on startup
        Base.metadata.create_all(bind=bound)
        logger.info("Storage ready (%s)", bound.dialect.name)

    @application.on_event("shutdown")
    def on_shutdown_release_storage():
        if owns_engine:
            application.state.engine.dispose()

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
