from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CONFIG
from .db import initialize_db
from .routes import activities as activity_routes
from .routes import children as children_routes
from .routes import development as development_routes
from .routes import milestones as milestone_routes
from .routes import profile as profile_routes

logger = logging.getLogger(__name__)

initialize_db()

app = FastAPI(
    title="BabySteps API",
    version="0.1.0",
    description="Tracks children, activities and milestones with age-appropriate guidance",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(children_routes.router)
app.include_router(activity_routes.router)
app.include_router(milestone_routes.router)
app.include_router(profile_routes.router)
app.include_router(development_routes.router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/")
async def root() -> dict:
    return {"message": "BabySteps API is running"}
