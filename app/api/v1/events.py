from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.db.session import get_db
from app.core.dependencies import get_current_user_id
from app.models.event import Event
from app.schemas.event import EventResponse, EventListResponse


router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=EventListResponse)
async def list_events(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """All events, soonest first."""
    result = await db.execute(select(Event).order_by(Event.starts_at.asc()))
    events = result.scalars().all()

    event_list = []
    for event in events:
        response = EventResponse.model_validate(event)
        response.spots_left = event.max_participants or 0
        event_list.append(response)

    return EventListResponse(events=event_list, total=len(event_list))
