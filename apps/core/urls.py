# apps/core/urls.py

from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    # === AUTENTICAÇÃO ===
    path('auth/token/', views.obtain_token, name='token'),
    path('auth/me/', views.current_user, name='me'),
]
