import logging

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from foodguard.config import settings
from foodguard.errors import PreconditionError
from foodguard.models.responses import AnalysisReport, DetectorInfo, HealthResponse
from foodguard.models.schemas.recommendation import UserHealthProfile
from foodguard.services import food_analyzer
from foodguard.services.image_input import decode_image_bytes

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/bmp"}


@router.get("/health", response_model=HealthResponse)
async def health():
    engine = food_analyzer.get_engine()
    return HealthResponse(
        status="ok",
        detectors=engine.registry.ids(),
        config_version=engine.rules.config_version,
    )


@router.get("/detectors", response_model=list[DetectorInfo])
async def detectors():
    engine = food_analyzer.get_engine()
    return [
        DetectorInfo(
            detector_id=d.detector_id,
            display_name=d.display_name,
            kind=d.kind,
            weight=engine.weights[d.detector_id],
            class_labels=list(d.class_labels),
            metrics=list(d.metrics),
        )
        for d in engine.registry.detectors()
    ]


@router.post("/analyze", response_model=AnalysisReport)
@limiter.limit(settings.rate_limit)
async def analyze(
    request: Request,
    image: UploadFile = File(...),
    profile: str | None = Form(None),
):
    # Validate file type
    if image.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported image type. Allowed: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}",
        )

    # Read and validate size
    content = await image.read()
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Max size: {settings.max_upload_size_mb}MB",
        )
    if not content:
        raise HTTPException(status_code=400, detail="Empty image upload")

    health_profile = None
    if profile:
        try:
            health_profile = UserHealthProfile.model_validate_json(profile)
        except ValidationError:
            raise HTTPException(status_code=400, detail="Invalid health profile JSON")

    try:
        food_image = await run_in_threadpool(
            decode_image_bytes, content, max_side=settings.max_image_side, source=image.filename or ""
        )
        return await food_analyzer.get_engine().analyze(food_image, health_profile)
    except PreconditionError as e:
        logger.info("Rejected upload %s: %s", image.filename, e)
        raise HTTPException(status_code=400, detail=str(e))
