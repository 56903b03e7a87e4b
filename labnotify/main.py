"""Main FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from labnotify import __version__
from labnotify.api.endpoints import router
from labnotify.config import Settings
from labnotify.utils.logging import LogConfig, setup_logging


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Service settings (defaults to the process environment)
    """
    settings = settings or Settings.from_env()
    setup_logging(LogConfig(level=settings.log_level))

    app = FastAPI(
        title="Lab Notification Relay",
        description=(
            "Relays lab-result notifications to patients over Telegram and runs the "
            "bot commands patients use to link their chat to their hospital record."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "Telegram",
                "description": "Bot webhook, identity check and webhook registration.",
            },
            {
                "name": "Notifications",
                "description": "Deliver a notification to a patient's linked Telegram chat.",
            },
            {
                "name": "Health",
                "description": "Service health monitoring and status checks.",
            },
        ],
    )
    app.state.settings = settings
    app.state.memory_store = None

    # Staff dashboard calls the dispatch endpoint from the browser
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("labnotify.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
