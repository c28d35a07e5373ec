# hrfe/routers/incidents.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..services.incident_store import IncidentStore
from ..services.sync_incidents import SyncAborted, run_sync
from ..services.timeline import TimelineClient

router = APIRouter()


def get_timeline_client() -> TimelineClient:
    return TimelineClient()


@router.post("/sync")
async def sync_incidents(
    db: Session = Depends(get_db),
    source: TimelineClient = Depends(get_timeline_client),
):
    """
    One-off dev endpoint: run a forward and a backward pass against the
    account timeline. Anything stored before a failure stays stored.
    """
    try:
        report = await run_sync(source, IncidentStore(db))
    except SyncAborted as e:
        raise HTTPException(
            status_code=502,
            detail={
                "error": str(e),
                "direction": e.direction,
                "phase": e.phase,
                "tweet_id": e.message_id,
                "cause": str(e.__cause__),
            },
        )
    return {"status": "ok", **report.to_dict()}


@router.get("/recent")
def get_recent_incidents(
    limit: int = 100,
    hours: int = 24,
    db: Session = Depends(get_db),
):
    """
    Return incidents published in the last `hours` hours,
    up to `limit` rows.
    """
    items = []
    for inc in IncidentStore(db).recent(hours=hours, limit=limit):
        items.append(
            {
                "id": inc.incident_number,
                "location": inc.location,
                "community": inc.community,
                "type": inc.incident_type,
                "apparatuses": inc.apparatuses.split() if inc.apparatuses else [],
                "stations": inc.stations.split() if inc.stations else [],
                "tweet_id": inc.tweet_id,
                "tweet_created_at": (
                    inc.tweet_created_at.isoformat() if inc.tweet_created_at else None
                ),
            }
        )

    return {"items": items}
