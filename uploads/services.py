# uploads/services.py
"""
ImageKit integration.

Required .env settings:
    IMAGEKIT_PRIVATE_KEY   = "private_..."
    IMAGEKIT_PUBLIC_KEY    = "public_..."
    IMAGEKIT_URL_ENDPOINT  = "https://ik.imagekit.io/<your-id>"
"""

import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class ImageHostError(Exception):
    pass


class ImageKitService:
    UPLOAD_URL = 'https://upload.imagekit.io/api/v1/files/upload'
    BULK_DELETE_URL = 'https://api.imagekit.io/v1/files/batch/deleteByFileIds'
    TIMEOUT = 30

    @classmethod
    def _auth(cls):
        private_key = getattr(settings, 'IMAGEKIT_PRIVATE_KEY', '')
        if not private_key:
            raise ImageHostError("ImageKit is not configured. Set IMAGEKIT_PRIVATE_KEY in your .env file.")
        # Private key as the basic-auth user, empty password
        return (private_key, '')

    @classmethod
    def upload(cls, uploaded_file):
        """Upload one Django ``UploadedFile``; returns ``{id, name, url}``"""
        auth = cls._auth()
        try:
            resp = requests.post(
                cls.UPLOAD_URL,
                auth=auth,
                files={'file': (uploaded_file.name, uploaded_file.read(), uploaded_file.content_type)},
                data={
                    'fileName': uploaded_file.name,
                    'folder': getattr(settings, 'IMAGEKIT_UPLOAD_FOLDER', '/'),
                    'useUniqueFileName': 'true',
                },
                timeout=cls.TIMEOUT,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise ImageHostError(f"Upload of {uploaded_file.name} failed: {e}") from e

        try:
            data = resp.json()
            hosted = {'id': data['fileId'], 'name': data['name'], 'url': data['url']}
        except (ValueError, KeyError, TypeError) as e:
            raise ImageHostError(f"Unexpected upload response for {uploaded_file.name}") from e

        logger.info("Uploaded %s to ImageKit as %s", uploaded_file.name, hosted['id'])
        return hosted

    @classmethod
    def upload_many(cls, uploaded_files):
        return [cls.upload(f) for f in uploaded_files]

    @classmethod
    def bulk_delete(cls, file_ids):
        auth = cls._auth()
        try:
            resp = requests.post(
                cls.BULK_DELETE_URL,
                auth=auth,
                json={'fileIds': list(file_ids)},
                timeout=cls.TIMEOUT,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise ImageHostError(f"Delete failed: {e}") from e

        logger.info("Deleted %d file(s) from ImageKit", len(file_ids))
        try:
            return resp.json()
        except ValueError as e:
            raise ImageHostError("Unexpected delete response") from e
