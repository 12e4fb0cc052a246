import logging
import sys
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
import uvicorn

from server.api.chat import router as chat_router
from server.api.destinations import router as destinations_router
from server.api.dev import router as dev_router
from server.api.itineraries import router as itineraries_router
from server.utils.config import CORS_ORIGINS, ITINERARY_STORAGE_PATH, LOG_LEVEL, TEMPO
from server.utils.db import connect_to_mongo, close_mongo_connection
from server.workflow.itinerary_store import ItineraryStore

logging.basicConfig(
    level=LOG_LEVEL,
    stream=sys.stdout,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(store: Optional[ItineraryStore] = None, dev_routes: Optional[bool] = None) -> FastAPI:
    app = FastAPI(title="Trip Itinerary Planner API")

    # One store per process; every router reaches it through app.state.
    app.state.store = store if store is not None else ItineraryStore(snapshot_path=ITINERARY_STORAGE_PATH)
    app.state.chat_sessions = {}

    origins = [origin.strip() for origin in CORS_ORIGINS.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(itineraries_router, prefix="/api/itineraries")
    app.include_router(chat_router, prefix="/api/chat")
    app.include_router(destinations_router, prefix="/api/destinations")
    if dev_routes is None:
        dev_routes = TEMPO
    if dev_routes:
        app.include_router(dev_router, prefix="/dev")

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the Trip Itinerary Planner API"}

    @app.get("/health")
    def health_check():
        return {"status": "ok", "store": app.state.store.state.value}

    @app.on_event("startup")
    async def startup_event():
        # Persistence is optional for generation and chat; keep serving without it.
        try:
            await connect_to_mongo()
        except Exception as e:
            logger.error("Failed to connect to MongoDB: %s", e)

    @app.on_event("shutdown")
    async def shutdown_event():
        await close_mongo_connection()
        logger.info("Server shutdown complete.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("server.api.main:app", host="0.0.0.0", port=8000, reload=True)
