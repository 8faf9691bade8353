from .base import *  # noqa: F403
from .base import CacheSettings, OpenDotaSettings

DEBUG = False
SECRET_KEY = "test-only-secret-key"
ALLOWED_HOSTS = ["*"]

# Nothing in the test suite may reach the network.
OPENDOTA_CONFIG = OpenDotaSettings(BASE_URL="https://opendota.test/api", API_KEY=None)
CACHE_CONFIG = CacheSettings(REDIS_URL="redis://127.0.0.1:1/0", CONNECT_TIMEOUT_S=0.1, KEY_PREFIX="test:")
