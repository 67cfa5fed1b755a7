import os, uuid, logging
from datetime import datetime, timezone
import structlog
from app.config import LOG_LEVEL

SAMPLE_RATE = float(os.getenv('SAMPLE_RATE', '1.0'))

def setup_logging():
    logging.basicConfig(level=LOG_LEVEL, format='%(message)s')
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
    )
    return structlog.get_logger()

log = setup_logging()

def new_request_id() -> str:
    return uuid.uuid4().hex

def should_sample() -> bool:
    return SAMPLE_RATE >= 1.0 or (os.urandom(1)[0] / 255.0 < SAMPLE_RATE)

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
