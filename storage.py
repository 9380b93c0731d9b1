"""
Helpers for request photos kept in the Supabase storage bucket.
Each uploaded file gets a storage object and a scrap_request_images row.
"""
import logging
import uuid
from typing import Any, Dict, List

from config import SCRAP_IMAGES_BUCKET, SIGNED_URL_EXPIRES_IN
from models import RequestImage

logger = logging.getLogger(__name__)


def build_image_path(user_id: str, request_id: str, filename: str) -> str:
    """Storage path for one upload: <user>/<request>/<uuid>.<ext>"""
    file_extension = filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else 'jpg'
    return f"{user_id}/{request_id}/{uuid.uuid4()}.{file_extension}"


async def upload_request_images(supabase, user_id: str, request_id: str, files) -> List[Dict[str, Any]]:
    """
    Upload each file and record it against the request.

    Uploads run one after another; a failure part-way leaves the earlier
    images uploaded and recorded.
    """
    bucket = supabase.storage.from_(SCRAP_IMAGES_BUCKET)
    images = []
    for file in files:
        file_content = await file.read()
        image_path = build_image_path(user_id, request_id, file.filename)

        bucket.upload(
            image_path,
            file_content,
            {
                'content-type': file.content_type or 'image/jpeg'
            }
        )

        image = RequestImage(request_id=request_id, image_path=image_path)
        response = supabase.table("scrap_request_images").insert(image.model_dump(exclude={"id"})).execute()
        images.append(response.data[0])
        logger.info(f"Image uploaded for request {request_id}: {image_path}")

    return images


def signed_image_urls(supabase, images: List[Dict[str, Any]], expires_in: int = SIGNED_URL_EXPIRES_IN) -> List[Dict[str, Any]]:
    """Attach an image_url to each row; a row that cannot be signed gets None"""
    bucket = supabase.storage.from_(SCRAP_IMAGES_BUCKET)
    images_with_urls = []
    for image in images:
        try:
            signed = bucket.create_signed_url(image["image_path"], expires_in) or {}
            image_url = signed.get("signedURL") or signed.get("signedUrl")
        except Exception as e:
            logger.warning(f"Could not sign image {image['image_path']}: {e}")
            image_url = None
        images_with_urls.append({**image, "image_url": image_url})
    return images_with_urls


def fetch_request_images(supabase, request_id: str) -> List[Dict[str, Any]]:
    response = supabase.table("scrap_request_images").select("*").eq("request_id", request_id).execute()
    return response.data or []


def remove_request_images(supabase, request_id: str, images: List[Dict[str, Any]]) -> None:
    """Delete the storage objects, then the image rows"""
    paths = [image["image_path"] for image in images]
    if paths:
        supabase.storage.from_(SCRAP_IMAGES_BUCKET).remove(paths)
    supabase.table("scrap_request_images").delete().eq("request_id", request_id).execute()
    logger.info(f"Removed {len(paths)} images for request {request_id}")
