"""HTTP views for uploading, previewing, downloading and listing videos.

Views only translate between HTTP and the logic layer: they read
settings, build the store, and pick JSON or HTML for the response.
"""

import functools
import logging
from typing import Any, Final
from urllib.parse import urlencode

from django.conf import settings
from django.core.files.storage import default_storage
from django.http import (
    HttpRequest,
    HttpResponse,
    JsonResponse,
    StreamingHttpResponse,
)
from django.shortcuts import render
from django.urls import reverse
from django.utils.http import content_disposition_header
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from server.apps.videos.exceptions import (
    BlobStorageError,
    MetadataStoreError,
    RecordNotFoundError,
    UploadRejectedError,
)
from server.apps.videos.infrastructure.metadata import sanitize_disposition_filename
from server.apps.videos.infrastructure.stores import Record, get_store
from server.apps.videos.logic.ingest_operations import ingest_video
from server.apps.videos.logic.retrieval_operations import (
    iter_blob,
    open_download,
    record_download,
)

_UPLOAD_FIELD: Final = 'video'
_NOT_FOUND_MESSAGE: Final = 'File not found.'
_STORAGE_FAILURE_MESSAGE: Final = 'Failed to store uploaded file.'
_UNAVAILABLE_MESSAGE: Final = 'Service temporarily unavailable.'

logger = logging.getLogger(__name__)


def _wants_json(request: HttpRequest) -> bool:
    requested_with = request.headers.get('X-Requested-With', '')
    if requested_with.lower() == 'xmlhttprequest':
        return True
    return 'application/json' in request.headers.get('Accept', '')


def _message(
    request: HttpRequest,
    title: str,
    message: str,
    status: int,
) -> HttpResponse:
    return render(
        request,
        'videos/message.html',
        {'title': title, 'message': message},
        status=status,
    )


def _locator_path(view_name: str, record_id: str) -> str:
    return f'{reverse(view_name)}?{urlencode({"id": record_id})}'


def _locator(request: HttpRequest, view_name: str, record_id: str) -> str:
    return request.build_absolute_uri(_locator_path(view_name, record_id))


def index(request: HttpRequest) -> HttpResponse:
    """Upload form plus the client-rendered list of videos."""
    return render(request, 'videos/index.html', {
        'max_filesize_mb': settings.VIDEOS_MAX_FILESIZE_BYTES // (1024 * 1024),
        'allowed_mime': settings.VIDEOS_ALLOWED_MIME,
    })


@csrf_exempt  # anonymous endpoint, there is no session to protect
@require_POST
def upload(request: HttpRequest) -> HttpResponse:
    """Accept a multipart upload in field ``video``.

    Optional form fields ``title`` and ``password``. Programmatic callers
    get JSON, browsers get a small HTML page.
    """
    wants_json = _wants_json(request)

    def failure(message: str, status: int) -> HttpResponse:
        if wants_json:
            return JsonResponse({'error': message}, status=status)
        return _message(request, 'Upload error', message, status)

    file_obj = request.FILES.get(_UPLOAD_FIELD)
    if file_obj is None:
        return failure('No file sent.', 400)

    try:
        record = ingest_video(
            get_store(),
            default_storage,
            file_obj,
            file_obj.name or '',
            max_size=settings.VIDEOS_MAX_FILESIZE_BYTES,
            allowed_mime=settings.VIDEOS_ALLOWED_MIME,
            title=request.POST.get('title'),
            password=request.POST.get('password'),
            title_max_length=settings.VIDEOS_TITLE_MAX_LENGTH,
            password_max_length=settings.VIDEOS_PASSWORD_MAX_LENGTH,
        )
    except UploadRejectedError as error:
        return failure(str(error), 400)
    except (BlobStorageError, MetadataStoreError):
        logger.exception('Upload failed: %s', file_obj.name)
        return failure(_STORAGE_FAILURE_MESSAGE, 500)

    preview_url = _locator(request, 'videos:preview', record.id)
    download_url = _locator(request, 'videos:download', record.id)

    if wants_json:
        return JsonResponse({
            'success': True,
            'id': record.id,
            'preview': preview_url,
            'download': download_url,
            'entry': record.public_dict(),
        })
    return render(request, 'videos/uploaded.html', {
        'record': record,
        'preview_url': preview_url,
        'download_url': download_url,
    })


@csrf_exempt  # the password form posts back here without a session
@require_http_methods(['GET', 'POST'])
def download(request: HttpRequest) -> HttpResponse:
    """Stream a video as an attachment.

    ``id`` and ``pw`` are read from the form body or the query string.
    """
    record_id = request.POST.get('id') or request.GET.get('id')
    if not record_id:
        return _message(request, 'Error', 'Missing id parameter.', 400)
    provided_password = request.POST.get('pw', request.GET.get('pw'))

    store = get_store()
    try:
        retrieval = open_download(
            store,
            default_storage,
            record_id,
            provided_password,
            global_password=settings.VIDEOS_GLOBAL_DOWNLOAD_PASSWORD,
        )
    except RecordNotFoundError:
        return _message(request, 'Not found', _NOT_FOUND_MESSAGE, 404)
    except MetadataStoreError:
        logger.exception('Download lookup failed: %s', record_id)
        return _message(request, 'Error', _UNAVAILABLE_MESSAGE, 500)

    if not retrieval.granted:
        return render(
            request,
            'videos/password.html',
            {'record_id': record_id, 'attempted': provided_password is not None},
            status=401,
        )

    record = retrieval.record
    response = StreamingHttpResponse(
        iter_blob(
            retrieval.blob_path,
            functools.partial(record_download, store, record.id),
        ),
        content_type=record.mime,
    )
    response['Content-Length'] = retrieval.blob_path.stat().st_size
    response['Content-Disposition'] = content_disposition_header(
        as_attachment=True,
        filename=sanitize_disposition_filename(record.original_name),
    )
    response['Cache-Control'] = 'public, must-revalidate, max-age=0'
    return response


@require_GET
def preview(request: HttpRequest) -> HttpResponse:
    """Inline player pointing at the blob's static URL.

    Playback is served by the static file server, not by this app.
    """
    record_id = request.GET.get('id')
    if not record_id:
        return _message(request, 'Error', 'Missing id parameter.', 400)

    try:
        record = get_store().get(record_id)
    except RecordNotFoundError:
        return _message(request, 'Not found', _NOT_FOUND_MESSAGE, 404)
    except MetadataStoreError:
        logger.exception('Preview lookup failed: %s', record_id)
        return _message(request, 'Error', _UNAVAILABLE_MESSAGE, 500)

    if not default_storage.exists(record.stored_name):
        logger.warning('Preview of record with missing blob: %s', record.id)
        return _message(request, 'Not found', _NOT_FOUND_MESSAGE, 404)

    return render(request, 'videos/preview.html', {
        'record': record,
        'video_url': default_storage.url(record.stored_name),
        'download_url': _locator(request, 'videos:download', record.id),
        'size_mb': record.size / 1024 / 1024,
    })


def _listing_entry(record: Record) -> dict[str, Any]:
    entry = record.public_dict()
    entry['preview'] = _locator_path('videos:preview', record.id)
    entry['download'] = _locator_path('videos:download', record.id)
    return entry


@require_GET
def listing(request: HttpRequest) -> HttpResponse:
    """Snapshot of every record, oldest first, without passwords."""
    try:
        records = get_store().all()
    except MetadataStoreError:
        logger.exception('Listing failed')
        return JsonResponse({'error': _UNAVAILABLE_MESSAGE}, status=500)

    response = JsonResponse(
        [_listing_entry(record) for record in records],
        safe=False,
    )
    response['Cache-Control'] = 'no-store'
    return response
