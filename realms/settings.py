"""
Django settings for the Parallel Realms project.
Location-based persistent-world game: territory flags, monsters, crafting.
"""

from pathlib import Path
import os
import dj_database_url
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent

# Security settings
SECRET_KEY = os.environ.get('SECRET_KEY', 'realms-dev-key-change-in-production')
DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'
ALLOWED_HOSTS = [
    h.strip() for h in os.environ.get('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h.strip()
]

# Application definition
INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'channels',
    'corsheaders',
    'game',  # Game engine + persistence API
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'realms.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

ASGI_APPLICATION = 'realms.asgi.application'

# Database
if 'DATABASE_URL' in os.environ and os.environ.get('DATABASE_URL'):
    DATABASES = {
        'default': dj_database_url.parse(
            os.environ.get('DATABASE_URL'),
            conn_max_age=600,
            conn_health_checks=True,
        )
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# Local save cache. In-memory by default; any Django cache backend works.
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'realms-default-cache',
    },
    'saves': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'realms-local-saves',
        'TIMEOUT': None,
    },
}

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# CORS settings for development
CORS_ALLOW_ALL_ORIGINS = True

CSRF_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_HTTPONLY = False
SESSION_COOKIE_SECURE = not DEBUG

# WebSocket layer: in-memory unless a Redis URL is configured
REDIS_URL = os.environ.get('REDIS_URL')
if REDIS_URL:
    CHANNEL_LAYERS = {
        'default': {
            'BACKEND': 'channels_redis.core.RedisChannelLayer',
            'CONFIG': {
                "hosts": [REDIS_URL],
                "capacity": 1500,
                "expiry": 10,
            },
        },
    }
else:
    CHANNEL_LAYERS = {
        'default': {
            'BACKEND': 'channels.layers.InMemoryChannelLayer',
        },
    }

# Celery configuration (remote save sync runs out of band)
CELERY_BROKER_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = os.environ.get('CELERY_TASK_ALWAYS_EAGER', 'false').lower() == 'true'

# Logging: game services log through the 'game' logger
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{levelname} {asctime} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'game': {
            'handlers': ['console'],
            'level': os.environ.get('GAME_LOG_LEVEL', 'INFO'),
            'propagate': True,
        },
    },
}

# Game-specific settings
GAME_SETTINGS = {
    # Territory rules
    'TERRITORY_RADIUS_M': int(os.environ.get('TERRITORY_RADIUS_M', '200')),
    'TERRITORY_EDGE_BUFFER_M': int(os.environ.get('TERRITORY_EDGE_BUFFER_M', '20')),
    'PLACEMENT_MIN_DISTANCE_M': 10,  # spacing between buildings / live monsters
    'CLAIM_OCCUPIED_RADIUS_M': 25,  # any flag this close makes a spot "claimed"
    'DUPLICATE_CLAIM_RADIUS_M': 5,  # same-owner claims this close are duplicates
    'TERRITORY_COLOR': '#4169e1',

    # Procedural world chunks
    'WORLD_CHUNK_SIZE_KM': 2,
    'WORLD_CHUNKS_RADIUS': 0,  # self chunk only
    'MONSTERS_PER_CHUNK': 3,
    'RESOURCES_PER_CHUNK': 3,
    'SPAWN_SAFE_RADIUS_M': 50,

    # Proximity triggers
    'ENCOUNTER_RADIUS_M': 25,
    'HARVEST_RADIUS_M': 25,
    'HARVEST_AMOUNT': 20,
    'RESOURCE_REGEN_DELAY_S': 5,
    'LOOT_PICKUP_RADIUS_M': 20,
    'COMPANION_TRACK_RANGE_M': 1000,

    # Combat / movement
    'COUNTER_ATTACK_DELAY_S': 0.5,
    'METERS_PER_ENERGY': 100,
    'BLACK_FLAG_ENERGY_MULTIPLIER': 2,

    # Persistence
    'AUTOSAVE_INTERVAL_S': int(os.environ.get('AUTOSAVE_INTERVAL_S', '30')),
    'SAVE_KEY': 'parallel-realms-game-save',
    'SAVE_CACHE_ALIAS': 'saves',
    'REMOTE_BACKEND': os.environ.get('REMOTE_BACKEND', 'game.services.backends.DatabaseBackend'),
    'REMOTE_API_BASE': os.environ.get('REMOTE_API_BASE', 'http://localhost:8000/api'),
    'REMOTE_TIMEOUT_S': 10,
    'BANK_OWNER_USERNAME': os.environ.get('BANK_OWNER_USERNAME', ''),  # empty = any admin
}

# Optional catalog overrides (monsters, resource_nodes, buildings, recipes, ...)
GAME_CATALOGS = {}
