from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from bgmi_core import BatchExhausted, ImageInput, InferenceClient, Settings
from bgmi_core.export import EXPORT_FILENAME, to_csv
from bgmi_core.pipeline import analyze_results, analyze_slots
from bgmi_core.records import PointsRow
from bgmi_core.scoring import build_points_table, build_points_table_with_slots

app = FastAPI(title="BGMI Points Table API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)

OVERLOADED_MESSAGE = "Gemini API is currently overloaded. Please wait 2-3 minutes and try again."


class ApiError(Exception):
    def __init__(self, status_code: int, error: str, details: Optional[str] = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    content: Dict[str, str] = {"error": exc.error}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while serving %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) or type(exc).__name__,
            "details": "Failed to analyze images. Please check your images and try again.",
        },
    )


class SlotRecordModel(BaseModel):
    slot_no: Optional[int]
    team_members: List[str]


class ResultRecordModel(BaseModel):
    rank: Optional[int]
    team_members: List[str]
    finishes: List[int]
    total_finishes: int
    position_points: int = 0
    total_points: int = 0


class PointsRowModel(BaseModel):
    slot_no: Optional[int]
    team_members: List[str]
    total_finishes: int
    position_points: int
    total_points: int
    rank: Optional[int]


class SlotAnalysisResponse(BaseModel):
    success: bool = True
    data: List[SlotRecordModel]


class ResultAnalysisResponse(BaseModel):
    success: bool = True
    data: Dict[str, ResultRecordModel]


class PointsTableResponse(BaseModel):
    success: bool = True
    data: List[PointsRowModel] = Field(default_factory=list)


@lru_cache(maxsize=1)
def settings() -> Settings:
    return Settings.from_env()


def inference_client(config: Settings = Depends(settings)) -> InferenceClient:
    return InferenceClient(config)


def _read_uploads(uploads: Optional[List[UploadFile]], config: Settings) -> List[ImageInput]:
    if not uploads:
        raise ApiError(400, "No images uploaded")
    if len(uploads) > config.max_upload_files:
        raise ApiError(400, f"Too many images uploaded (maximum {config.max_upload_files})")

    images: List[ImageInput] = []
    for upload in uploads:
        content = upload.file.read()
        if len(content) > config.max_upload_bytes:
            raise ApiError(
                400,
                f"Image '{upload.filename}' is too large",
                f"Each image must be at most {config.max_upload_bytes // (1024 * 1024)}MB.",
            )
        images.append(
            ImageInput(
                filename=upload.filename or "image",
                content=content,
                content_type=upload.content_type or "image/jpeg",
            )
        )
    return images


def _exhausted_error(exc: BatchExhausted, subject: str) -> ApiError:
    logger.warning("No %s data extracted (%s failed image(s))", subject, len(exc.failures))
    if exc.overloaded:
        return ApiError(503, OVERLOADED_MESSAGE)
    return ApiError(
        500,
        str(exc),
        f"Please check if your images contain clear {subject} information and try again.",
    )


def _points_table(
    slot_images: Optional[List[UploadFile]],
    result_images: Optional[List[UploadFile]],
    join_slots: bool,
    client: InferenceClient,
    config: Settings,
) -> List[PointsRow]:
    if not slot_images or not result_images:
        raise ApiError(400, "Please upload both slot images and result images")

    slots_input = _read_uploads(slot_images, config)
    results_input = _read_uploads(result_images, config)

    try:
        slots = analyze_slots(slots_input, client, delay_seconds=config.image_delay_seconds)
    except BatchExhausted as exc:
        raise _exhausted_error(exc, "slot") from exc
    try:
        results = analyze_results(results_input, client, delay_seconds=config.image_delay_seconds)
    except BatchExhausted as exc:
        raise _exhausted_error(exc, "result") from exc

    if join_slots:
        return build_points_table_with_slots(slots, results)
    return build_points_table(results)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/analyze-slots", response_model=SlotAnalysisResponse)
def analyze_slots_endpoint(
    images: Optional[List[UploadFile]] = File(default=None),
    client: InferenceClient = Depends(inference_client),
    config: Settings = Depends(settings),
):
    inputs = _read_uploads(images, config)
    try:
        slots = analyze_slots(inputs, client, delay_seconds=config.image_delay_seconds)
    except BatchExhausted as exc:
        raise _exhausted_error(exc, "slot") from exc
    return SlotAnalysisResponse(data=[SlotRecordModel(**slot.to_dict()) for slot in slots])


@app.post("/api/analyze-results", response_model=ResultAnalysisResponse)
def analyze_results_endpoint(
    images: Optional[List[UploadFile]] = File(default=None),
    client: InferenceClient = Depends(inference_client),
    config: Settings = Depends(settings),
):
    inputs = _read_uploads(images, config)
    try:
        results = analyze_results(inputs, client, delay_seconds=config.image_delay_seconds)
    except BatchExhausted as exc:
        raise _exhausted_error(exc, "result") from exc
    return ResultAnalysisResponse(
        data={key: ResultRecordModel(**record.to_dict()) for key, record in results.items()}
    )


@app.post("/api/points-table", response_model=PointsTableResponse)
def points_table(
    slot_images: Optional[List[UploadFile]] = File(default=None),
    result_images: Optional[List[UploadFile]] = File(default=None),
    join_slots: bool = Query(default=False, alias="joinSlots"),
    client: InferenceClient = Depends(inference_client),
    config: Settings = Depends(settings),
):
    rows = _points_table(slot_images, result_images, join_slots, client, config)
    return PointsTableResponse(data=[PointsRowModel(**row.to_dict()) for row in rows])


@app.post("/api/points-table.csv")
def points_table_csv(
    slot_images: Optional[List[UploadFile]] = File(default=None),
    result_images: Optional[List[UploadFile]] = File(default=None),
    join_slots: bool = Query(default=False, alias="joinSlots"),
    client: InferenceClient = Depends(inference_client),
    config: Settings = Depends(settings),
):
    rows = _points_table(slot_images, result_images, join_slots, client, config)
    return Response(
        content=to_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )
