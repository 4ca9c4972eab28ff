from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Literal, Mapping

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from models import AssessmentRun
from schemas.enums import RiskCategory, ScoreScale
from schemas.risk import AssessmentDetails, DataPoint, RiskScoreCustomization
from services.composite_engine import assess
from services.configuration_store import SqlConfigurationStore
from services.exceptions import InactiveConfigurationError

logger = structlog.get_logger()


async def run_assessment(
    session: AsyncSession,
    configuration_id: str,
    facts: Mapping[str, Any],
    weights: RiskScoreCustomization | None = None,
    customized_by: str | None = None,
    scale: ScoreScale = ScoreScale.HUNDRED,
    category: RiskCategory | Literal["all"] = "all",
    details: AssessmentDetails | None = None,
    data_points: list[DataPoint] | None = None,
) -> AssessmentRun:
    """
    Load the configuration, score the applicant facts and persist the run.
    A blocked assessment is stored with status "blocked" so it is never read as a low score;
    one where every data point was excluded is stored as "unscored".
    """
    config = await SqlConfigurationStore(session).get(configuration_id)
    if not config.is_active:
        raise InactiveConfigurationError(configuration_id)

    run_id = f"run-{uuid.uuid4().hex[:12]}"
    run = AssessmentRun(
        id=run_id,
        configuration_id=configuration_id,
        status="running",
        started_at=datetime.now(timezone.utc),
        result=None,
    )
    session.add(run)
    await session.flush()

    try:
        assessment = assess(
            config,
            facts,
            data_points=data_points,
            weights=weights,
            scale=scale,
            customized_by=customized_by,
            category=category,
            details=details,
        )
        run.result = assessment.model_dump(mode="json", by_alias=True)
        if assessment.blocked:
            run.status = "blocked"
        else:
            run.status = "completed" if assessment.scored else "unscored"
        run.completed_at = datetime.now(timezone.utc)
    except Exception as e:
        run.status = "failed"
        run.error_message = str(e)
        run.completed_at = datetime.now(timezone.utc)
        logger.warning("assessment_failed", run_id=run_id, configuration_id=configuration_id, error=str(e))
        raise

    logger.info("assessment_run_completed", run_id=run_id, configuration_id=configuration_id, status=run.status)
    return run
