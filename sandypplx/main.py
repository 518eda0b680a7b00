from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sandypplx.api.routes import chat, search, session
from sandypplx.config import settings
from sandypplx.services import logger as log_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_service.configure_logging()
    log_service.log_event(event_type="startup", message="SandyPPLX API starting")
    yield
    log_service.log_event(event_type="shutdown", message="SandyPPLX API stopped")


app = FastAPI(
    title="SandyPPLX",
    description="Chat over web search with streamed, cited answers",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(search.router)
app.include_router(chat.router)
app.include_router(session.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "sandypplx"}
