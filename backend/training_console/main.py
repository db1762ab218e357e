from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from training_console.api.router import api_router

CORS_ORIGINS = [
    "http://localhost:3000",
    "https://localhost:3443",
    "http://127.0.0.1:3000",
    "https://127.0.0.1:3443",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.lifespan_started = True
    yield
    app.state.lifespan_shutdown = True


app = FastAPI(title="Training Evaluation Console", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix="/api")
