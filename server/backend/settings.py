import os
import json
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / '.env')

SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')
DEBUG = os.getenv('DEBUG', '1') == '1'
ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', '127.0.0.1,localhost').split(',')

INSTALLED_APPS = [
    'daphne',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'channels',
    'conversions',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'backend.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'backend.wsgi.application'
ASGI_APPLICATION = 'backend.asgi.application'

# Channels configuration
redis_url = os.getenv('REDIS_URL', 'redis://127.0.0.1:6379/0')
# Parse Redis URL for channels (use different DB: 0 for channels, 1 for cache)
if redis_url.startswith('redis://'):
    redis_host = redis_url.replace('redis://', '').split('/')[0]
else:
    redis_host = redis_url

# Parse host and port
if ':' in redis_host:
    redis_host_parts = redis_host.split(':')
    redis_host_name = redis_host_parts[0]
    redis_port = int(redis_host_parts[1])
else:
    redis_host_name = redis_host
    redis_port = 6379

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels_redis.core.RedisChannelLayer',
        'CONFIG': {
            "hosts": [(redis_host_name, redis_port)],
        },
    },
}

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('SQLITE_PATH', BASE_DIR / 'db.sqlite3'),
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': f'redis://{redis_host_name}:{redis_port}/1',
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            # A Redis outage reads as a cache miss; rates are then fetched live.
            'IGNORE_EXCEPTIONS': True,
        }
    }
}

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [],
    'UNAUTHENTICATED_USER': None,
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Live rates
RATES_API_URL = os.getenv('RATES_API_URL', 'https://api.exchangerate.host')
RATES_API_KEY = os.getenv('RATES_API_KEY', '')
RATES_BASE_CURRENCY = os.getenv('RATES_BASE_CURRENCY', 'USD').upper()
RATES_CACHE_TTL = int(os.getenv('RATES_CACHE_TTL', '600'))  # 10 minutes
RATES_HTTP_TIMEOUT = float(os.getenv('RATES_HTTP_TIMEOUT', '10'))
RATES_MAX_RETRIES = int(os.getenv('RATES_MAX_RETRIES', '0'))
RATES_SOURCE = os.getenv('RATES_SOURCE', 'conversions.services.HttpRateSource')
# Only used by conversions.services.StaticRateSource
RATES_STATIC_TABLE = json.loads(os.getenv('RATES_STATIC_TABLE', '{"USD": 1}'))

CONVERSION_HISTORY_SIZE = int(os.getenv('CONVERSION_HISTORY_SIZE', '100'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'console': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'console',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'conversions': {
            'level': os.getenv('LOG_LEVEL', 'INFO'),
        },
    },
}

CORS_ALLOW_ALL_ORIGINS = True if DEBUG else False
CORS_ALLOWED_ORIGINS = [o for o in os.getenv('CORS_ALLOWED_ORIGINS', '').split(',') if o] if not DEBUG else []
