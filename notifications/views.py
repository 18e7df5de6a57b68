"""
Notifications App Views - the backoffice bell
"""

from rest_framework.decorators import api_view
from rest_framework.response import Response

from .serializers import AdminNotificationSerializer
from .services import NotificationService


def notifications_payload(limit=None) -> dict:
    notifications = NotificationService.get_notifications(limit)
    return {
        'results': AdminNotificationSerializer(notifications, many=True).data,
        'unread_count': NotificationService.get_unread_count(),
    }


@api_view(['GET'])
def notification_list(request):
    """Latest notifications (newest first) and the unread count. ?limit= overrides the page size."""
    limit = request.query_params.get('limit')
    return Response(notifications_payload(int(limit) if limit and limit.isdigit() else None))


@api_view(['POST'])
def notification_mark_read(request, pk):
    return Response({'unread_count': NotificationService.mark_read(pk)})


@api_view(['POST'])
def notification_mark_all_read(request):
    return Response({'unread_count': NotificationService.mark_all_read()})
