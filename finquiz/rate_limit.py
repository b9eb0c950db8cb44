"""Shared slowapi limiter for the application and its routers."""
from slowapi import Limiter
from slowapi.util import get_remote_address
from finquiz.constants import DEFAULT_RATE_LIMIT

limiter = Limiter(key_func=get_remote_address, default_limits=[DEFAULT_RATE_LIMIT])
