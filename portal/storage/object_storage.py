# portal/storage/object_storage.py

# Uploads petition forms, evidence files and profile pictures to a
# Supabase-style storage bucket and hands back the object's public URL.

import os
import uuid
import logging
import requests
from flask import current_app

from portal.results import ErrorKind, Result

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {
    'forms': {'.pdf'},
    'sources': {'.pdf', '.png', '.jpg', '.jpeg', '.doc', '.docx', '.txt'},
    'profiles': {'.png', '.jpg', '.jpeg', '.webp'},
}

UPLOAD_TIMEOUT_S = 30


class ObjectStorageService:
    def __init__(self, base_url=None, api_key=None, bucket=None, max_upload_mb=None):
        self.base_url = base_url
        self.api_key = api_key
        self.bucket = bucket
        self.max_upload_mb = max_upload_mb

    @classmethod
    def from_app_config(cls, config=None):
        config = config if config is not None else current_app.config
        return cls(
            base_url=config.get('STORAGE_URL'),
            api_key=config.get('STORAGE_API_KEY'),
            bucket=config.get('STORAGE_BUCKET'),
            max_upload_mb=config.get('MAX_UPLOAD_MB', 10),
        )

    def object_path(self, filename, prefix):
        extension = os.path.splitext(filename or '')[1].lower()
        return f"{prefix.strip('/')}/{uuid.uuid4()}{extension}"

    def public_url(self, path):
        return f"{self.base_url.rstrip('/')}/storage/v1/object/public/{self.bucket}/{path}"

    def upload(self, file_bytes, filename, content_type, prefix='sources'):
        if not self.base_url or not self.api_key:
            logger.error("Storage URL or API key is not configured.")
            return Result.failure(ErrorKind.TRANSPORT, "Upload configuration error.")

        extension = os.path.splitext(filename or '')[1].lower()
        allowed = ALLOWED_EXTENSIONS.get(prefix)
        if allowed is None:
            return Result.failure(ErrorKind.VALIDATION, f"Unknown upload category: {prefix}")
        if extension not in allowed:
            return Result.failure(ErrorKind.VALIDATION, f"File type {extension or '(none)'} is not allowed for {prefix}.")
        if not file_bytes:
            return Result.failure(ErrorKind.VALIDATION, "The uploaded file is empty.")
        if len(file_bytes) > self.max_upload_mb * 1024 * 1024:
            return Result.failure(ErrorKind.VALIDATION, f"Files must be smaller than {self.max_upload_mb} MB.")

        path = self.object_path(filename, prefix)
        upload_url = f"{self.base_url.rstrip('/')}/storage/v1/object/{self.bucket}/{path}"
        try:
            response = requests.post(
                upload_url,
                headers={
                    'apikey': self.api_key,
                    'Authorization': f'Bearer {self.api_key}',
                },
                files={'file': (os.path.basename(path), file_bytes, content_type or 'application/octet-stream')},
                timeout=UPLOAD_TIMEOUT_S,
            )
        except requests.RequestException as e:
            logger.error(f"Upload error: {e}")
            return Result.failure(ErrorKind.TRANSPORT, "Upload failed, the storage service is unreachable.")

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get('message') if isinstance(body, dict) else None
            logger.error(f"Storage upload error {response.status_code}: {message or response.text}")
            return Result.failure(ErrorKind.TRANSPORT, message or f"Upload failed with status: {response.status_code}")

        logger.info(f"Upload successful: {path}")
        return Result.success({'url': self.public_url(path), 'fileName': filename, 'path': path})
