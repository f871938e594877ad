# config/urls.py

from django.contrib import admin
from django.urls import path, include

from apps.core.views import health_check

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # API
    path('api/', include('apps.core.urls')),
    path('api/', include('apps.board.urls')),

    # Monitoramento
    path('health/', health_check, name='health_check'),
]

# Respostas 404 em JSON
handler404 = 'apps.board.views.not_found'

# Customizar títulos do admin
admin.site.site_header = 'Fluxo Board Admin'
admin.site.site_title = 'Fluxo Board'
admin.site.index_title = 'Administração do Sistema'
