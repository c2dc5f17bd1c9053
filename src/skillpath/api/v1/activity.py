"""Activity tracking endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...schemas import (
    ActivityStats,
    AssessmentCompletion,
    AssessmentResultRead,
    TrackTimeRequest,
    TrackTimeResponse,
    VideoProgressRead,
    VideoProgressUpdate,
)
from ...services import activity_service
from ...services.activity_service import ActivityRuleViolation
from ..deps import get_current_user_id

router = APIRouter(prefix="/activity", tags=["activity"])


def _persistence_failure(db: Session) -> HTTPException:
    db.rollback()
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Activity store unavailable")


@router.post(
    "/track-time",
    response_model=TrackTimeResponse,
    summary="Report elapsed time on the site",
    responses={
        200: {
            "description": "Updated totals",
            "content": {
                "application/json": {
                    "example": {
                        "total_time_spent": 5400,
                        "weekly_time_spent": 1800,
                        "week_start": "2026-10-18T00:00:00",
                        "new_week": False,
                    }
                }
            },
        },
        400: {"description": "Business rule violation"},
        401: {"description": "Not authenticated"},
        404: {"description": "User not found"},
    },
)
def track_time(
    payload: TrackTimeRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TrackTimeResponse:
    """Accumulate a client timer tick.

    Example request body::

        {
            "seconds": 60,
            "timestamp": "2026-10-19T09:30:00Z"
        }
    """

    try:
        result = activity_service.record_time(
            db,
            user_id,
            seconds=payload.seconds,
            timestamp=payload.timestamp,
        )
        db.commit()
    except ActivityRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    except SQLAlchemyError as exc:
        raise _persistence_failure(db) from exc

    return TrackTimeResponse(
        total_time_spent=result.total_time_spent,
        weekly_time_spent=result.weekly_time_spent,
        week_start=result.week_start,
        new_week=result.new_week,
    )


@router.get(
    "/stats",
    response_model=ActivityStats,
    summary="Activity summary for the calling user",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "User not found"}},
)
def get_stats(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActivityStats:
    try:
        stats = activity_service.activity_stats(db, user_id)
    except ActivityRuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return ActivityStats(**stats)


@router.post(
    "/videos/{video_id}/progress",
    response_model=VideoProgressRead,
    summary="Update video watch progress",
    responses={
        400: {"description": "Business rule violation"},
        401: {"description": "Not authenticated"},
        404: {"description": "User not found"},
    },
)
def update_video_progress(
    payload: VideoProgressUpdate,
    video_id: str = Path(..., min_length=1),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> VideoProgressRead:
    """Record progress; watching 90% of a video completes it for 10 points."""

    try:
        progress, just_completed = activity_service.record_video_progress(
            db,
            user_id,
            video_id=video_id,
            watched_duration=payload.watched_duration,
            total_duration=payload.total_duration,
        )
        db.commit()
    except ActivityRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    except SQLAlchemyError as exc:
        raise _persistence_failure(db) from exc

    return VideoProgressRead(
        video_id=progress.video_id,
        watched_duration=progress.watched_duration,
        total_duration=progress.total_duration,
        completed=progress.completed,
        points_awarded=activity_service.VIDEO_COMPLETION_POINTS if just_completed else 0,
        progress=round(progress.watched_duration / progress.total_duration * 100, 2),
    )


@router.post(
    "/assessments",
    response_model=AssessmentResultRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record a completed assessment",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "User not found"}},
)
def complete_assessment(
    payload: AssessmentCompletion,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> AssessmentResultRead:
    try:
        result = activity_service.record_assessment(
            db,
            user_id,
            assessment_id=payload.assessment_id,
            score=payload.score,
        )
        db.commit()
        db.refresh(result)
    except ActivityRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    except SQLAlchemyError as exc:
        raise _persistence_failure(db) from exc

    return AssessmentResultRead.model_validate(result)
