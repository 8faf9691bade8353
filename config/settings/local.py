from .base import *  # noqa: F403
from .base import env

DEBUG = env.bool("DJANGO_DEBUG", True)
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="local-insecure-5c1b0f8e2d7a4b6c9e3f1a0d8b7c6e5f4a3b2c1d0e9f8a7b",
)
ALLOWED_HOSTS = ["localhost", "0.0.0.0", "127.0.0.1"]
