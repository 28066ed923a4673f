"""
Banner upload endpoints.

The image arrives as the ``banner`` field of a multipart form.  Type
and size limits are checked by ``MediaStorage.upload_image``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Path, UploadFile

from eventhub_api.app.core.config import settings
from eventhub_api.app.core.errors import InvalidInputError
from eventhub_api.app.core.responses import format_success
from eventhub_api.app.core.security import get_current_user
from eventhub_api.app.schemas.user import UserRead
from eventhub_api.app.services.event_service import BANNER_UPLOAD_ACTION, EventService

router = APIRouter()


@router.post("/{event_id}/banner")
async def upload_banner(
    event_id: str = Path(..., description="ID of the event"),
    banner: Optional[UploadFile] = File(None),
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    """Upload or replace the banner image of an event owned by the current user."""
    if banner is None:
        raise InvalidInputError("No file provided")
    await EventService.ensure_owner(event_id, current_user, BANNER_UPLOAD_ACTION)
    # One byte past the limit is enough for the size check to reject it.
    data = await banner.read(settings.max_upload_bytes + 1)
    event, url = await EventService.replace_banner(
        event_id, current_user, data, banner.filename, banner.content_type
    )
    return format_success({"event": event.to_api(), "bannerUrl": url}, "Banner uploaded successfully")


@router.delete("/{event_id}/banner")
async def delete_banner(
    event_id: str = Path(..., description="ID of the event"),
    current_user: UserRead = Depends(get_current_user),
) -> dict:
    event = await EventService.remove_banner(event_id, current_user)
    return format_success({"event": event.to_api()}, "Banner deleted successfully")
