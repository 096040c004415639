# uploads/views.py
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from core.exceptions import UNEXPECTED_ERROR_MESSAGE

from .services import ImageHostError, ImageKitService

logger = logging.getLogger(__name__)


@require_http_methods(["POST", "DELETE"])
def upload(request):
    """
    POST: multipart field ``files`` -> ``[{id, name, url}]``
    DELETE: ``?file_ids=a,b`` -> ``{"message": "file deleted"}``
    """
    if not request.user.is_authenticated or request.user.is_customer:
        return JsonResponse({'error': 'Not allowed'}, status=403)

    try:
        if request.method == 'POST':
            files = request.FILES.getlist('files')
            if not files:
                return JsonResponse({'error': 'No files received'}, status=400)
            return JsonResponse(ImageKitService.upload_many(files), safe=False)

        raw_ids = request.GET.get('file_ids', '')
        file_ids = [file_id.strip() for file_id in raw_ids.split(',') if file_id.strip()]
        if not file_ids:
            return JsonResponse({'error': 'No file ids received'}, status=400)

        ImageKitService.bulk_delete(file_ids)
        return JsonResponse({'message': 'file deleted'})

    except ImageHostError as e:
        logger.error("Image host request failed: %s", e, exc_info=True)
        return JsonResponse({'error': str(e)}, status=500)
    except Exception:
        logger.error("Upload request failed", exc_info=True)
        return JsonResponse({'error': UNEXPECTED_ERROR_MESSAGE}, status=500)
