"""Read-only HTTP API over computed tallies.

Routes (prefix ``/power_voting/api``):
    GET /health_check
    GET /proposal/result?proposalId=&network=
    GET /proposal/history?proposalId=&network=

Usage:
    python -m src.api
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import uvicorn

from src.analysis.models import VoteHistory, VoteResult
from src.data.store import GovernanceStore
from src.helpers.config import get_int_env, get_optional_env
from src.helpers.db import get_session_factory
from src.helpers.errors import PersistenceError
from src.helpers.logging import get_logger


logger = get_logger(__name__)

API_PREFIX = "/power_voting/api"


class Envelope(BaseModel):
    """Response wrapper shared by every route."""

    code: int = 200
    message: str = "success"
    data: Any = None


class ResultEnvelope(Envelope):
    data: list[VoteResult]


class HistoryEnvelope(Envelope):
    data: list[VoteHistory]


def get_store() -> GovernanceStore:
    """Store bound to the process-wide session factory."""
    return GovernanceStore(get_session_factory())


StoreDep = Annotated[GovernanceStore, Depends(get_store)]
ProposalIdQuery = Annotated[int, Query(alias="proposalId", ge=0)]
NetworkQuery = Annotated[int, Query(ge=0)]

router = APIRouter(prefix=API_PREFIX)


@router.get("/health_check", response_model=Envelope, response_model_exclude_none=True)
async def health_check() -> Envelope:
    return Envelope()


@router.get("/proposal/result", response_model=ResultEnvelope)
async def proposal_result(
    store: StoreDep, proposal_id: ProposalIdQuery, network: NetworkQuery
) -> ResultEnvelope:
    """Weighted totals of a closed proposal, ordered by option."""
    results = await store.find_vote_results(network, proposal_id)
    return ResultEnvelope(data=results)


@router.get("/proposal/history", response_model=HistoryEnvelope)
async def proposal_history(
    store: StoreDep, proposal_id: ProposalIdQuery, network: NetworkQuery
) -> HistoryEnvelope:
    """Per-voter weighted rows written when a proposal was tallied."""
    histories = await store.find_vote_history(network, proposal_id)
    return HistoryEnvelope(data=histories)


async def persistence_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content=Envelope(code=500, message="database error").model_dump(exclude_none=True),
    )


def create_app() -> FastAPI:
    """Build the API application."""
    app = FastAPI(title="Governance mirror API")
    app.include_router(router)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    return app


app = create_app()


def main() -> None:
    """Serve the API with uvicorn."""
    host = get_optional_env("API_HOST", "0.0.0.0") or "0.0.0.0"
    port = get_int_env("API_PORT", 8000)
    logger.info("Serving API on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
