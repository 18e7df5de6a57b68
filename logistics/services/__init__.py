from .status import DeliveryStatusService
from .timeline import StatusTimeline, TimelineEntry, load_status_timeline, TIMELINE_ERROR_MESSAGE

__all__ = [
    'DeliveryStatusService',
    'StatusTimeline',
    'TimelineEntry',
    'load_status_timeline',
    'TIMELINE_ERROR_MESSAGE',
]
