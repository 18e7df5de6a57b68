"""
Drafts App Views - form drafts in the user's session

The browser debounces edits itself, so PUT writes immediately.
"""

import logging
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import DraftSaveSerializer
from .store import DraftStore

logger = logging.getLogger(__name__)


def draft_state(store: DraftStore, form_key: str) -> dict:
    draft = store.load(form_key)
    return {
        'form_key': form_key,
        'has_draft': draft is not None,
        'saved_at': draft.saved_at.isoformat() if draft else None,
    }


class DraftView(APIView):
    """GET state, PUT save, DELETE discard."""

    def get(self, request, form_key):
        return Response(draft_state(DraftStore(request.session), form_key))

    def put(self, request, form_key):
        serializer = DraftSaveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        DraftStore(request.session).save(form_key, serializer.validated_data['data'])
        return Response(draft_state(DraftStore(request.session), form_key))

    def delete(self, request, form_key):
        DraftStore(request.session).discard(form_key)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DraftRestoreView(APIView):
    """POST: the draft data to load into the form; the banner flag is cleared."""

    def post(self, request, form_key):
        draft = DraftStore(request.session).load(form_key)
        if draft is None:
            return Response(
                {'error': "Aucun brouillon à restaurer."},
                status=status.HTTP_404_NOT_FOUND
            )
        return Response({'form_key': form_key, 'data': draft.data, 'has_draft': False})
