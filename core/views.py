from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

from .exceptions import LearningEngineError, NotFoundError, StorageError, ValidationError


ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(exc: LearningEngineError) -> Response:
    """
    JSON body for an engine error:
    {"success": false, "error": "<code>", "message": "<text>"}
    """
    return Response({
        'success': False,
        'error': exc.code,
        'message': str(exc),
    }, status=ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR))


def validation_error_response(errors) -> Response:
    """
    400 for serializer errors, flattened into one message that names each field:
    "part_of_speech: This field may not be blank."
    """
    message = "; ".join(
        f"{field}: {' '.join(str(m) for m in messages)}"
        for field, messages in errors.items()
    )
    return error_response(ValidationError(message))


def health(request):
    return JsonResponse({"status": "ok"})
