"""
Flashcard API views (Django Rest Framework).
"""

from django.http import JsonResponse
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import LearningEngineError
from core.views import error_response, validation_error_response

from .serializers import (
    FlashcardSerializer,
    NextCardQuerySerializer,
    ReviewRequestSerializer,
    StatsSerializer,
)
from .services.flashcard_service import FlashcardService


class NextFlashcardView(APIView):
    """
    GET /api/v1/flashcards/next?part_of_speech=noun&status=new

    Returns the next card for the learner, or null when nothing matches.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = NextCardQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return validation_error_response(query.errors)

        try:
            card = FlashcardService.get_next_card(
                request.user.user_id,
                part_of_speech=query.validated_data.get('part_of_speech'),
                status=query.validated_data.get('status'),
            )
        except LearningEngineError as e:
            return error_response(e)

        if card is None:
            # DRF renders None as an empty body; clients expect JSON null
            return JsonResponse(None, safe=False)
        return Response(FlashcardSerializer(card).data)


class ReviewView(APIView):
    """
    POST /api/v1/flashcards/<entry_id>/review

    Body: {"result": "mastered" | "learning", "notes": "..."}
    Response (200): {"status": "ok"}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, entry_id):
        payload = ReviewRequestSerializer(data=request.data)
        if not payload.is_valid():
            return validation_error_response(payload.errors)

        try:
            FlashcardService.record_review(
                request.user.user_id,
                entry_id,
                payload.validated_data['result'],
                notes=payload.validated_data.get('notes'),
            )
        except LearningEngineError as e:
            return error_response(e)

        return Response({'status': 'ok'})


class StatsView(APIView):
    """
    GET /api/v1/flashcards/stats
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            stats = FlashcardService.get_stats(request.user.user_id)
        except LearningEngineError as e:
            return error_response(e)
        return Response(StatsSerializer(stats).data)
