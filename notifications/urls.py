"""
Notifications App URLs
"""

from django.urls import path

from . import views

urlpatterns = [
    path('notifications/', views.notification_list, name='notification-list'),
    path('notifications/read-all/', views.notification_mark_all_read, name='notification-read-all'),
    path('notifications/<uuid:pk>/read/', views.notification_mark_read, name='notification-read'),
]
