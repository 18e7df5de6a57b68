"""
Drafts App URLs
"""

from django.urls import path

from .views import DraftRestoreView, DraftView

urlpatterns = [
    path('drafts/<slug:form_key>/', DraftView.as_view(), name='draft'),
    path('drafts/<slug:form_key>/restore/', DraftRestoreView.as_view(), name='draft-restore'),
]
