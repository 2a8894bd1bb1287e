from typing import Optional

from fastapi import APIRouter, Depends, Query

from kitchen.api.deps import get_event_log, get_kitchen

router = APIRouter(prefix="/api", tags=["events"])


@router.get("/events")
def recent_events(since: Optional[int] = Query(default=None), kitchen=Depends(get_kitchen),
                  event_log=Depends(get_event_log)):
    """Change notifications newer than `since`; poll again with `next_cursor`."""
    event_log.start(kitchen.event_bus)
    return event_log.get_events(since)
