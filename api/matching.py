from fastapi import APIRouter

from schemas.matching import RankRequest
from services.matching_engine import rank_candidates

router = APIRouter(prefix="/api/matching", tags=["matching"])


@router.post("/rank", response_model=list[dict])
async def rank(body: RankRequest):
    """Rank lender candidates for a deal, best match first."""
    results = rank_candidates(body.deal, body.candidates, config=body.config, as_of=body.as_of)
    return [r.model_dump(mode="json", by_alias=True) for r in results]
