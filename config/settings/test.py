# config/settings/test.py

from .base import *

# === TESTES ===

DEBUG = False

SECRET_KEY = 'fluxo-test-secret-key-not-for-production'
JWT_SECRET_KEY = 'fluxo-test-jwt-secret-key-with-32-bytes!'

ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'fluxo-test-cache',
    }
}

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer'
    }
}

# Hash rápido para criação de usuários
PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES['staticfiles'] = {
    'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
}

# Desabilitar logs em arquivo durante os testes
LOGGING['handlers'] = {
    'console': {
        'level': 'WARNING',
        'class': 'logging.StreamHandler',
        'formatter': 'simple',
    },
}
LOGGING['root']['handlers'] = ['console']
LOGGING['loggers'] = {}
