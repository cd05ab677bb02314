import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func
from sqlalchemy.orm import Session

from marketplace.auth import CurrentUser, get_current_user
from marketplace.database import get_db
from marketplace.models import (
    VOTE_TYPES,
    CrowdfundingNotification,
    CrowdfundingPledge,
    CrowdfundingProject,
    CrowdfundingVote,
    PledgeStatus,
    ProjectStatus,
    utcnow,
)
from marketplace.schemas import (
    NotificationOut,
    PledgeOut,
    PledgeWithProject,
    ProjectOut,
    ProjectSummary,
    UserVote,
    VoteRequest,
    VoteTally,
)
from marketplace.store import upsert_vote

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/crowdfunding", tags=["crowdfunding"])

NOTIFICATION_PAGE_SIZE = 50


def _get_project_or_404(db: Session, project_id: str) -> CrowdfundingProject:
    project = db.get(CrowdfundingProject, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("/projects", response_model=List[ProjectOut])
def list_projects(status: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(CrowdfundingProject)
    if status:
        if status not in ProjectStatus.LISTED:
            raise HTTPException(status_code=400, detail="Invalid project status filter")
        query = query.filter(CrowdfundingProject.status == status)
    else:
        query = query.filter(CrowdfundingProject.status.in_(ProjectStatus.LISTED))
    return query.order_by(CrowdfundingProject.created_at.desc()).all()


@router.get("/projects/{project_id}", response_model=ProjectOut)
def get_project(project_id: str, db: Session = Depends(get_db)):
    return _get_project_or_404(db, project_id)


@router.get("/projects/{project_id}/votes", response_model=VoteTally)
def get_vote_tally(project_id: str, db: Session = Depends(get_db)):
    rows = (
        db.query(CrowdfundingVote.vote_type, func.count(CrowdfundingVote.id))
        .filter(CrowdfundingVote.project_id == project_id)
        .group_by(CrowdfundingVote.vote_type)
        .all()
    )
    counts = {vote_type: count for vote_type, count in rows if vote_type in VOTE_TYPES}
    return VoteTally(**counts)


@router.get("/projects/{project_id}/vote", response_model=UserVote)
def get_my_vote(project_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    vote = db.query(CrowdfundingVote).filter_by(project_id=project_id, user_id=user.id).first()
    return UserVote(vote_type=vote.vote_type if vote else None)


@router.put("/projects/{project_id}/vote", response_model=UserVote)
def cast_vote(
    project_id: str,
    request: VoteRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if request.voteType not in VOTE_TYPES:
        raise HTTPException(status_code=400, detail="voteType must be one of: " + ", ".join(VOTE_TYPES))
    _get_project_or_404(db, project_id)

    upsert_vote(db, project_id, user.id, request.voteType)
    return UserVote(vote_type=request.voteType)


@router.delete("/projects/{project_id}/vote", status_code=204)
def remove_vote(project_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    db.query(CrowdfundingVote).filter_by(project_id=project_id, user_id=user.id).delete()
    db.commit()
    return Response(status_code=204)


@router.get("/pledges", response_model=List[PledgeWithProject])
def list_my_pledges(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = (
        db.query(CrowdfundingPledge, CrowdfundingProject)
        .outerjoin(CrowdfundingProject, CrowdfundingProject.id == CrowdfundingPledge.project_id)
        .filter(CrowdfundingPledge.user_id == user.id)
        .order_by(CrowdfundingPledge.created_at.desc())
        .all()
    )
    return [
        PledgeWithProject(
            **PledgeOut.model_validate(pledge).model_dump(),
            project=ProjectSummary.model_validate(project) if project else None,
        )
        for pledge, project in rows
    ]


@router.get("/projects/{project_id}/pledge", response_model=Optional[PledgeOut])
def get_my_pledge(project_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(CrowdfundingPledge).filter_by(project_id=project_id, user_id=user.id).first()


@router.post("/projects/{project_id}/pledge/cancel", response_model=PledgeOut)
def cancel_pledge(project_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    pledge = db.query(CrowdfundingPledge).filter_by(project_id=project_id, user_id=user.id).first()
    if not pledge:
        raise HTTPException(status_code=404, detail="Pledge not found")

    pledge.status = PledgeStatus.CANCELLED
    pledge.updated_at = utcnow()
    db.commit()
    db.refresh(pledge)

    logger.info("Pledge %s cancelled by %s", pledge.id, user.id)
    return pledge


@router.get("/notifications", response_model=List[NotificationOut])
def list_notifications(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(CrowdfundingNotification)
        .filter_by(user_id=user.id)
        .order_by(CrowdfundingNotification.created_at.desc())
        .limit(NOTIFICATION_PAGE_SIZE)
        .all()
    )


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = (
        db.query(CrowdfundingNotification)
        .filter_by(id=notification_id, user_id=user.id)
        .first()
    )
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    if notification.read_at is None:
        notification.read_at = utcnow()
        db.commit()
        db.refresh(notification)
    return notification
