"""
AgriCure - soil health scoring and fertilizer recommendation backend.
FastAPI app: soil health index, sensor status, ML prediction with rule-based fallback.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agricure import config
from agricure.routers.recommendations import router as recommendations_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="AgriCure API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(recommendations_router)


@app.get("/health")
def health():
    return {"status": "ok"}
