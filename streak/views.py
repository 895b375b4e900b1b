from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import LearningEngineError
from core.views import error_response

from .serializers import CheckinStatusSerializer
from .services import checkin, get_checkin_status


class CheckinView(APIView):
    """
    POST /api/v1/checkin  - check in for today (idempotent) and return the status
    GET  /api/v1/checkin  - current status without checking in
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            result = get_checkin_status(request.user.user_id)
        except LearningEngineError as e:
            return error_response(e)
        return Response(CheckinStatusSerializer(result).data)

    def post(self, request):
        try:
            result = checkin(request.user.user_id)
        except LearningEngineError as e:
            return error_response(e)
        return Response(CheckinStatusSerializer(result).data)
