from fastapi import APIRouter, Depends, File, UploadFile

from bgremoval.deps import get_clerk_id, get_removal_client
from bgremoval.services import removal as removal_service
from bgremoval.services.removal import ClipdropClient

router = APIRouter()


@router.post("/remove-bg")
async def remove_bg(
    image: UploadFile = File(...),
    clerk_id: str = Depends(get_clerk_id),
    client: ClipdropClient = Depends(get_removal_client),
):
    """Strip the background from an uploaded image; costs one credit."""
    content = await image.read()
    result = await removal_service.remove_background(
        clerk_id,
        content,
        image.filename or "image",
        image.content_type or "application/octet-stream",
        client,
    )
    return {"success": True, "message": "Background Removed", **result}
