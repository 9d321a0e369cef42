"""
Image uploads stored through Django's default_storage under UPLOAD_DIR.

Stored names are "<sanitized original>-<epoch ms>-<uuid4><ext>" so uploads
never collide or overwrite each other.
"""
import logging
import os
import posixpath
import re
import time
import uuid

from django.conf import settings
from django.core.files.storage import default_storage
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from storefront.core.exceptions import AppError, not_found
from storefront.core.responses import success_response, created_response

logger = logging.getLogger('storefront.uploads')


def _stored_name(original_name):
    stem, ext = os.path.splitext(os.path.basename(original_name))
    stem = re.sub(r'[^a-zA-Z0-9]', '_', stem) or 'file'
    return f"{stem}-{int(time.time() * 1000)}-{uuid.uuid4()}{ext.lower()}"


def _validate(upload):
    if upload.content_type not in settings.UPLOAD_ALLOWED_TYPES:
        raise AppError('Invalid File Type', status.HTTP_400_BAD_REQUEST)
    if upload.size > settings.UPLOAD_MAX_FILE_SIZE:
        raise AppError('File Upload Error', status.HTTP_400_BAD_REQUEST)


def _describe(name, original_name=None, mimetype=None, size=None):
    path = posixpath.join(settings.UPLOAD_DIR, name)
    return {
        'filename': name,
        'originalName': original_name or name,
        'mimetype': mimetype,
        'size': size if size is not None else default_storage.size(path),
        'url': default_storage.url(path),
    }


def _save(upload):
    name = _stored_name(upload.name)
    saved = default_storage.save(posixpath.join(settings.UPLOAD_DIR, name), upload)
    name = posixpath.basename(saved)
    logger.info(f"Stored upload {name} ({upload.content_type}, {upload.size} bytes)")
    return _describe(name, upload.name, upload.content_type, upload.size)


def _safe_filename(filename):
    if not filename or filename != posixpath.basename(filename) or '\\' in filename or filename.startswith('.'):
        raise AppError('Invalid filename', status.HTTP_400_BAD_REQUEST)
    return filename


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def upload_single(request):
    upload = request.FILES.get('file') or request.FILES.get('image')
    if upload is None:
        raise AppError('No file uploaded', status.HTTP_400_BAD_REQUEST)
    _validate(upload)
    return created_response(_save(upload), 'File uploaded successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def upload_multiple(request):
    """Store up to UPLOAD_MAX_FILES images; all are validated before any is written"""
    uploads = request.FILES.getlist('files') or request.FILES.getlist('images')
    if not uploads:
        raise AppError('No files uploaded', status.HTTP_400_BAD_REQUEST)
    if len(uploads) > settings.UPLOAD_MAX_FILES:
        raise AppError(
            f'Too many files. Maximum {settings.UPLOAD_MAX_FILES} files allowed',
            status.HTTP_400_BAD_REQUEST
        )
    for upload in uploads:
        _validate(upload)
    stored = [_save(upload) for upload in uploads]
    return created_response(stored, f'Successfully uploaded {len(stored)} file(s)')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def upload_list(request):
    try:
        _, names = default_storage.listdir(settings.UPLOAD_DIR)
    except FileNotFoundError:
        names = []
    files = [_describe(name) for name in sorted(names) if not name.startswith('.')]
    if not files:
        return success_response([], 'No files found')
    return success_response(files, f'Found {len(files)} file(s)')


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def upload_delete(request, filename):
    path = posixpath.join(settings.UPLOAD_DIR, _safe_filename(filename))
    if not default_storage.exists(path):
        raise not_found('File not found')
    default_storage.delete(path)
    logger.info(f"Deleted upload {filename}")
    return success_response(message='File deleted successfully')
