from .base import *  # noqa

DEBUG = True

# Surface raw gateway/exception messages while developing locally.
BOOSTS_EXPOSE_ERROR_DETAILS = True

LOGGING["loggers"]["apps"]["level"] = "DEBUG"  # noqa: F405
