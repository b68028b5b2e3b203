"""
Supabase Storage Operations

This module handles all interactions with Supabase storage buckets,
i.e. uploading rendered story audio and resolving public URLs.
"""

import logging
import uuid
from datetime import date
from typing import Optional
from supabase import Client

logger = logging.getLogger(__name__)


def story_audio_path(story_id: str, extension: str = "mp3", day: Optional[date] = None) -> str:
    """
    Build the storage path for a story's audio.

    Args:
        story_id: Story identifier
        extension: File extension of the rendered clip
        day: Date folder (defaults to today)

    Returns:
        Path like podcasts/2025-01-15/story-<id>-<uuid>.mp3
    """
    day = day or date.today()
    return f"podcasts/{day.isoformat()}/story-{story_id}-{uuid.uuid4()}.{extension}"


def upload_audio_to_storage(
    supabase: Client,
    audio_data: bytes,
    storage_path: str,
    content_type: str = "audio/mpeg",
    bucket: str = "podcast-audio"
) -> Optional[str]:
    """
    Upload an audio clip to Supabase storage.

    Args:
        supabase: Supabase client instance
        audio_data: Encoded audio
        storage_path: Object path within the bucket
        content_type: MIME type of the clip
        bucket: Supabase storage bucket name

    Returns:
        Storage path if successful, None otherwise
    """
    try:
        supabase.storage.from_(bucket).upload(
            path=storage_path,
            file=audio_data,
            file_options={
                "content-type": content_type,
                "upsert": "true"
            }
        )

        logger.info(f"Uploaded audio to storage: {bucket}/{storage_path}")
        return storage_path

    except Exception as e:
        logger.error(f"Failed to upload audio to storage: {e}")
        return None


def get_public_url(
    supabase: Client,
    bucket: str,
    path: str
) -> str:
    """
    Get public URL for a storage object.

    Args:
        supabase: Supabase client instance
        bucket: Storage bucket name
        path: Object path within bucket

    Returns:
        Public URL for the object
    """
    return supabase.storage.from_(bucket).get_public_url(path)


def upload_story_audio(
    supabase: Client,
    audio_data: bytes,
    story_id: str,
    extension: str = "mp3",
    content_type: str = "audio/mpeg",
    bucket: str = "podcast-audio"
) -> Optional[str]:
    """
    Upload a story clip and return its public URL.

    Returns:
        Public URL, or None when the upload failed
    """
    path = story_audio_path(story_id, extension)
    stored = upload_audio_to_storage(supabase, audio_data, path, content_type, bucket)
    if stored is None:
        return None
    return get_public_url(supabase, bucket, stored)
