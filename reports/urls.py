"""
REPORTS App - URL Configuration
"""

from django.urls import path
from . import views

app_name = 'reports'

urlpatterns = [
    # Dashboard
    path('dashboard/', views.dashboard, name='dashboard'),
    path('active-deliveries/', views.active_deliveries, name='active-deliveries'),

    # CSV exports (same filters as the tables)
    path('drivers.csv', views.DriverCSVExportView.as_view(), name='drivers-csv'),
    path('deliveries.csv', views.DeliveryCSVExportView.as_view(), name='deliveries-csv'),
]
