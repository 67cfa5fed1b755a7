from slowapi import Limiter
from slowapi.util import get_remote_address
from app.config import RATE_LIMIT_ENABLED

GENERAL_LIMIT = '100/15 minutes'
AI_LIMIT = '50/15 minutes'
HEAVY_LIMIT = '10/5 minutes'

GENERAL_MESSAGE = 'Too many requests from this IP, please try again later.'
AI_MESSAGE = 'Too many AI requests from this IP, please try again later.'
HEAVY_MESSAGE = 'Too many intensive AI requests. Please wait before trying again.'

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

# Shared scopes: every route carrying the same decorator draws from one per-IP bucket.
api_limit = limiter.shared_limit(GENERAL_LIMIT, scope='api', error_message=GENERAL_MESSAGE)
ai_limit = limiter.shared_limit(AI_LIMIT, scope='ai', error_message=AI_MESSAGE)
heavy_limit = limiter.shared_limit(HEAVY_LIMIT, scope='ai_heavy', error_message=HEAVY_MESSAGE)
