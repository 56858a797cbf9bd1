from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from ..core.eco_score import compute_scores, derive_badges, is_perfect_score, score_tips
from ..core.errors import (
    IdentifyTimeoutError,
    InvalidImageError,
    MissingImageError,
    SustainifyError,
)
from ..core.identify import identify_image
from ..core.logging_utils import setup_logging
from ..core.provider_config import identify_timeout, provider_config_loader, use_mocks
from ..core.records import RecordLog, make_record
from ..core.reporter import CSV_FILENAME, records_to_csv
from ..core.types import QuizInputs, QuizRecord

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield


app = FastAPI(title="Sustainify", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class IdentifyRequest(BaseModel):
    image: str | None = None
    provider: str | None = None


class QuizRequest(BaseModel):
    name: str = ""
    shower_min: float = Field(10, ge=1, le=30)
    uses_bucket: bool = False
    hours_devices: float = Field(6, ge=0, le=24)
    num_led: float = Field(5, ge=0, le=20)
    ac_hours: float = Field(1, ge=0, le=24)
    disposable_count: float = Field(2, ge=0)
    uses_reusable: bool = False
    recycles: bool = False

    def to_inputs(self) -> QuizInputs:
        return QuizInputs(**self.model_dump())


class RecordPayload(BaseModel):
    ts: str
    name: str = "-"
    inputs: dict
    scores: dict | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def get_record_log() -> RecordLog:
    return RecordLog()


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/api/providers")
def list_providers() -> dict:
    return {
        "providers": provider_config_loader.list_providers(use_mocks()),
        "default": provider_config_loader.default_provider,
    }


@app.post("/identify")
async def identify(req: IdentifyRequest):
    try:
        adapter = provider_config_loader.create_adapter(req.provider)
    except ValueError as exc:
        return _error(400, str(exc))
    try:
        return await identify_image(adapter, req.image, timeout=identify_timeout())
    except (MissingImageError, InvalidImageError) as exc:
        return _error(400, str(exc))
    except IdentifyTimeoutError:
        logger.warning("Identify via %s timed out", adapter.id)
        return _error(504, "Identification timed out. Try again.")
    except SustainifyError:
        logger.exception("Identify via %s failed", adapter.id)
        return _error(500, "Identification failed. Try later.")


@app.get("/api/quiz/defaults")
def quiz_defaults() -> dict:
    return QuizInputs.defaults().to_dict()


@app.post("/api/quiz/score")
def quiz_score(req: QuizRequest) -> dict:
    inputs = req.to_inputs()
    scores = compute_scores(inputs)
    record = make_record(inputs, scores)
    get_record_log().append(record)
    return {
        "scores": scores.to_dict(),
        "badges": [asdict(b) for b in derive_badges(inputs)],
        "tips": score_tips(scores),
        "perfect": is_perfect_score(scores),
        "record": record.to_dict(),
    }


@app.get("/api/quiz/records")
def list_records() -> dict:
    return {"records": [r.to_dict() for r in get_record_log().load()]}


@app.put("/api/quiz/records")
def replace_records(records: list[RecordPayload]) -> dict:
    try:
        parsed = [QuizRecord.from_dict(r.model_dump()) for r in records]
    except TypeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid record: {exc}") from exc
    stored = get_record_log().replace(parsed)
    return {"records": [r.to_dict() for r in stored]}


@app.delete("/api/quiz/records")
def clear_records() -> dict:
    get_record_log().clear()
    return {"records": []}


@app.get("/api/quiz/records.csv")
def export_records() -> Response:
    csv_text = records_to_csv(get_record_log().load())
    return Response(
        content=csv_text + "\n",
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
    )
