"""Main URL mapping configuration file.

Only the admin is routed here; the drive API is served elsewhere.
"""

from django.contrib import admin
from django.urls import path

admin.autodiscover()

urlpatterns = [
    path('admin/', admin.site.urls),
]
