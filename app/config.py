import os
from dotenv import load_dotenv

load_dotenv()

def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')

APP_ENV = os.getenv('APP_ENV', 'production').lower()
PORT = int(os.getenv('PORT', '5000'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

NASA_API_KEY = os.getenv('NASA_API_KEY') or 'DEMO_KEY'
NASA_API_URL = os.getenv('NASA_API_URL', 'https://api.nasa.gov')
NASA_IMAGES_URL = os.getenv('NASA_IMAGES_URL', 'https://images-api.nasa.gov')
NASA_TIMEOUT_S = float(os.getenv('NASA_TIMEOUT_S', '20'))

HF_API_TOKEN = os.getenv('HF_API_TOKEN') or None
HF_API_URL = os.getenv('HF_API_URL', 'https://api-inference.huggingface.co/models')
IMAGE_FETCH_TIMEOUT_S = 30
INFERENCE_TIMEOUT_S = 60
SENTIMENT_TIMEOUT_S = 30
HEALTH_PROBE_TIMEOUT_S = 5

ALLOWED_ORIGINS = [o.strip() for o in os.getenv('ALLOWED_ORIGINS', 'http://localhost:3000').split(',') if o.strip()]

RATE_LIMIT_ENABLED = _flag('RATE_LIMIT_ENABLED', '1')
ENRICH_NASA_RESPONSES = _flag('ENRICH_NASA_RESPONSES', '1')

USER_AGENT = 'NASA-App/1.0'
MAX_BATCH_ITEMS = 10
