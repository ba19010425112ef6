"""
URL configuration for the rideshare project.

Every client-facing endpoint lives under /api/; the Django admin site is
mounted for platform staff.
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/', include('user.urls')),
    path('api/', include('booking.urls')),
    path('api/', include('payments.urls')),
]
