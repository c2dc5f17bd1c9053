"""Weekly leaderboard endpoints."""

from __future__ import annotations

import logging
from typing import List, Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.config import get_settings
from ...core.database import get_db
from ...schemas import LeaderboardGenerated, LeaderboardRow, UnrankedResponse
from ...services import leaderboard_service
from ...services.leaderboard_service import LeaderboardRuleViolation
from ..deps import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

_ROW_EXAMPLE = {
    "user_id": "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa",
    "user_name": "Asha Verma",
    "points": 110,
    "weekly_time_spent": 500,
    "videos_watched": 4,
    "assessments_completed": 2,
    "rank": 1,
    "week_start": "2026-10-18T00:00:00",
    "week_end": "2026-10-24T23:59:59.999999",
}


def _store_unavailable(db: Session) -> HTTPException:
    db.rollback()
    logger.exception("leaderboard store failure")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Leaderboard store unavailable")


def _read_leaderboard(db: Session, limit: int) -> List[LeaderboardRow]:
    try:
        views = leaderboard_service.get_weekly(db, limit=limit)
        db.commit()
    except LeaderboardRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    except SQLAlchemyError as exc:
        raise _store_unavailable(db) from exc
    return [LeaderboardRow.model_validate(view) for view in views]


@router.get(
    "",
    response_model=List[LeaderboardRow],
    summary="Current week leaderboard",
    responses={
        200: {
            "description": "Entries ordered by live weekly standing",
            "content": {"application/json": {"example": [_ROW_EXAMPLE]}},
        },
        409: {"description": "Top-3 bonus could not be awarded"},
        503: {"description": "Leaderboard store unavailable"},
    },
)
def get_leaderboard(
    limit: int = Query(
        get_settings().leaderboard_default_limit, ge=1, le=100, description="Number of top users to return"
    ),
    db: Session = Depends(get_db),
) -> List[LeaderboardRow]:
    """Return the current week's leaderboard, generating it on first access."""

    return _read_leaderboard(db, limit)


@router.get(
    "/top3",
    response_model=List[LeaderboardRow],
    summary="Top three users this week",
    responses={
        409: {"description": "Top-3 bonus could not be awarded"},
        503: {"description": "Leaderboard store unavailable"},
    },
)
def get_top3(db: Session = Depends(get_db)) -> List[LeaderboardRow]:
    """Return the podium of the current week."""

    return _read_leaderboard(db, 3)


@router.get(
    "/my-rank",
    response_model=Union[LeaderboardRow, UnrankedResponse],
    summary="Persisted rank of the calling user",
    responses={
        200: {
            "description": "Snapshot entry, or a null rank when unranked this week",
            "content": {
                "application/json": {
                    "examples": {
                        "ranked": {"value": _ROW_EXAMPLE},
                        "unranked": {"value": {"rank": None, "message": "No ranking for this week yet"}},
                    }
                }
            },
        },
        401: {"description": "Not authenticated"},
    },
)
def get_my_rank(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Union[LeaderboardRow, UnrankedResponse]:
    """Return the rank stored at generation time, not the live order."""

    try:
        entry = leaderboard_service.get_user_rank(db, user_id)
    except SQLAlchemyError as exc:
        raise _store_unavailable(db) from exc

    if entry is None:
        return UnrankedResponse()
    return LeaderboardRow.model_validate(entry)


@router.post(
    "/generate",
    response_model=LeaderboardGenerated,
    summary="Regenerate this week's leaderboard",
    responses={
        401: {"description": "Not authenticated"},
        409: {"description": "Top-3 bonus could not be awarded"},
        503: {"description": "Leaderboard store unavailable"},
    },
)
def generate_leaderboard(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> LeaderboardGenerated:
    """Purge and rebuild the current week, awarding top-3 bonuses again."""

    try:
        week_start, week_end, entries = leaderboard_service.regenerate_leaderboard(db)
        db.commit()
    except LeaderboardRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    except SQLAlchemyError as exc:
        raise _store_unavailable(db) from exc

    logger.info("leaderboard regenerated by %s with %s entries", user_id, len(entries))
    return LeaderboardGenerated(
        week_start=week_start,
        week_end=week_end,
        leaderboard=[LeaderboardRow.model_validate(entry) for entry in entries],
    )
