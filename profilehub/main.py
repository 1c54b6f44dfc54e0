# main.py
from pathlib import Path

from dotenv import load_dotenv

# Ensure repo-root .env is loaded for the running server process.
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from profilehub.config import build_sqlalchemy_db_url, settings
from profilehub.database import Base, engine
from profilehub.logging_config import configure_logging
import profilehub.models  # noqa: F401  # ensure all models are registered
from profilehub.routers import auth, health, media, portfolio, profile, users


def create_app() -> FastAPI:
    configure_logging(level=settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        debug=settings.debug,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Cookie session carries flash status messages only; identity comes from the bearer token.
    application.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        same_site="lax",
        https_only=settings.environment.lower() == "production",
    )

    application.include_router(health.router)
    application.include_router(auth.router, prefix="/auth", tags=["auth"])
    application.include_router(users.router, prefix="/users", tags=["users"])
    application.include_router(profile.router)
    application.include_router(portfolio.router)
    application.include_router(media.router)

    @application.get("/", include_in_schema=False)
    def root() -> dict:
        return {"name": settings.app_name, "version": settings.version}

    # Shared databases get their DDL from scripts/create_orm_tables.py.
    if build_sqlalchemy_db_url(settings).startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    return application


app = create_app()
