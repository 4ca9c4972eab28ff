from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import to_http
from config import settings
from database import get_db
from models import AssessmentRun
from schemas.enums import RiskCategory, ScoreScale
from schemas.risk import AssessmentRequest
from services.category_scorer import select_data_points
from services.defaults import default_data_points
from services.assessment import run_assessment
from services.configuration_store import SqlConfigurationStore
from services.exceptions import RiskEngineError

router = APIRouter(prefix="/api", tags=["assessments"])


def _run_to_response(run: AssessmentRun) -> dict:
    return {
        "id": run.id,
        "configurationId": run.configuration_id,
        "status": run.status,
        "blocked": run.status == "blocked",
        "startedAt": run.started_at.isoformat() if run.started_at else None,
        "completedAt": run.completed_at.isoformat() if run.completed_at else None,
        "error": run.error_message,
        "result": run.result,
    }


@router.post("/assessments", response_model=dict, status_code=201)
async def create_assessment(body: AssessmentRequest, db: AsyncSession = Depends(get_db)):
    scale = body.scale or ScoreScale(settings.default_score_scale)
    try:
        run = await run_assessment(
            db,
            body.configuration_id,
            body.facts,
            weights=body.weights,
            customized_by=body.customized_by,
            scale=scale,
            category=body.category,
            details=body.details,
            data_points=body.data_points,
        )
    except RiskEngineError as e:
        # Keep the failed run record
        await db.commit()
        raise to_http(e) from e
    return _run_to_response(run)


@router.get("/assessments", response_model=list[dict])
async def list_assessments(
    configuration_id: str | None = Query(None, alias="configurationId"),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(AssessmentRun).order_by(AssessmentRun.created_at.desc())
    if configuration_id:
        stmt = stmt.where(AssessmentRun.configuration_id == configuration_id)
    result = await db.execute(stmt)
    return [_run_to_response(r) for r in result.scalars().all()]


@router.get("/assessments/{run_id}", response_model=dict)
async def get_assessment(run_id: str, db: AsyncSession = Depends(get_db)):
    run = await db.get(AssessmentRun, run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return _run_to_response(run)


@router.get("/risk/data-points", response_model=list[dict])
async def list_data_points(
    category: str = "all",
    configuration_id: str | None = Query(None, alias="configurationId"),
    db: AsyncSession = Depends(get_db),
):
    if category != "all" and category not in {c.value for c in RiskCategory}:
        raise HTTPException(status_code=400, detail=f"Unknown risk category: {category}")
    catalog = default_data_points()
    if configuration_id:
        try:
            config = await SqlConfigurationStore(db).get(configuration_id)
        except RiskEngineError as e:
            raise to_http(e) from e
        if config.data_points is not None:
            catalog = config.data_points
    return [dp.model_dump(mode="json", by_alias=True) for dp in select_data_points(catalog, category)]
