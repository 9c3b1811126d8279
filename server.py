from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from persistence.db import init_db
from routers import bookings, catalog, payments
from webhooks import webhooks


def create_app() -> FastAPI:
    config.setup_logging()
    # initialize DB (creates tables)
    init_db()

    app = FastAPI(
        title="Aurora Voyages API",
        description="Destinations, vacation packages, bookings and card payments",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(catalog.router)
    app.include_router(bookings.router)
    app.include_router(payments.router)
    app.include_router(webhooks.router)

    @app.get("/api/health")
    def health():
        return {"status": "ok", "message": "Aurora Voyages API is running", "docs": "/docs"}

    return app


app = create_app()
