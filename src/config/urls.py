"""
URL Configuration.

Estrutura:
- /admin/ - Django Admin (eventos, inscrições, ingressos)
- /health/ - Health check
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import path


def health(request):
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', health),
]
