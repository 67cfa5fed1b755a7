"""Hosted inference adapters: image captioning, summarization and sentiment.

Every public method here absorbs upstream failures and answers with a fixed
fallback. Only programming errors escape.
"""
import re, time
from typing import Any, Optional
import requests
from pydantic import ValidationError
from app import config
from app.errors import FetchError, InferencePayloadError
from app.local_analysis import fallback_caption
from app.metrics import record_upstream, record_fallback
from app.obs import log
from app.schemas import Sentiment
from app.services import make_session, read_capped

CAPTION_MODEL = 'Salesforce/blip-image-captioning-large'
SUMMARY_MODEL = 'facebook/bart-large-cnn'
SENTIMENT_MODEL = 'nlptown/bert-base-multilingual-uncased-sentiment'

MAX_IMAGE_BYTES = 10_000_000
SUMMARY_MIN_LENGTH = 20

MSG_NO_TOKEN = 'AI analysis requires API token - please add HF_API_TOKEN to your environment variables'
MSG_FORBIDDEN = 'AI analysis temporarily unavailable - API key may be invalid'
MSG_RATE_LIMITED = 'AI analysis temporarily unavailable - rate limit exceeded'
MSG_UNAVAILABLE = 'AI analysis temporarily unavailable'

NEUTRAL = Sentiment(label='NEUTRAL', score=0.5)

_STARS = re.compile(r'^\s*([1-5])\s+stars?\s*$', re.IGNORECASE)

# Errors the adapters swallow and turn into fallbacks.
ABSORBED = (requests.RequestException, FetchError, InferencePayloadError, ValidationError)


def star_to_sentiment(label: str, score: float) -> Sentiment:
    m = _STARS.match(label or '')
    if not m:
        raise InferencePayloadError(f'unrecognised sentiment label: {label!r}')
    stars = int(m.group(1))
    if stars >= 4:
        return Sentiment(label='POSITIVE', score=score)
    if stars <= 2:
        return Sentiment(label='NEGATIVE', score=score)
    return Sentiment(label='NEUTRAL', score=score)


def normalize_sentiment_payload(data: Any) -> list[dict]:
    """Accepts ``[{label, score}, ...]`` or ``[[{label, score}, ...]]``."""
    if isinstance(data, list) and len(data) == 1 and isinstance(data[0], list):
        data = data[0]
    if not isinstance(data, list) or not data:
        raise InferencePayloadError(f'unexpected sentiment payload: {str(data)[:120]}')
    for entry in data:
        if not (isinstance(entry, dict) and isinstance(entry.get('label'), str)
                and isinstance(entry.get('score'), (int, float))):
            raise InferencePayloadError(f'unexpected sentiment entry: {str(entry)[:120]}')
    return data


def _first_field(data: Any, field: str) -> str:
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = data[0]
    if isinstance(data, dict) and isinstance(data.get(field), str):
        return data[field]
    raise InferencePayloadError(f'missing {field} in payload: {str(data)[:120]}')


def failure_message(exc: Exception) -> str:
    status = getattr(getattr(exc, 'response', None), 'status_code', None)
    if status == 403:
        return MSG_FORBIDDEN
    if status == 429:
        return MSG_RATE_LIMITED
    return MSG_UNAVAILABLE


class InferenceClient:
    def __init__(self, token: Optional[str] = None, base_url: str = config.HF_API_URL,
                 session: Optional[requests.Session] = None):
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.session = session or make_session()

    def is_available(self) -> bool:
        return bool(self.token)

    def _post(self, model: str, timeout: float, **kwargs) -> Any:
        headers = {'Authorization': f'Bearer {self.token}'}
        headers.update(kwargs.pop('headers', {}))
        t0 = time.time()
        try:
            resp = self.session.post(f'{self.base_url}/{model}', headers=headers, timeout=timeout, **kwargs)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException:
            record_upstream('inference', 'error', int((time.time() - t0) * 1000))
            raise
        record_upstream('inference', 'ok', int((time.time() - t0) * 1000))
        return data

    def fetch_image(self, image_url: str) -> bytes:
        deadline = time.monotonic() + config.IMAGE_FETCH_TIMEOUT_S
        try:
            resp = self.session.get(image_url, timeout=config.IMAGE_FETCH_TIMEOUT_S, stream=True,
                                    headers={'Accept': '*/*'})
        except requests.RequestException as e:
            raise FetchError(f'image fetch failed: {type(e).__name__}') from e
        if not 200 <= resp.status_code < 300:
            resp.close()
            raise FetchError(f'image fetch returned http_{resp.status_code}', status_code=resp.status_code)
        try:
            return read_capped(resp, MAX_IMAGE_BYTES, deadline)
        except requests.RequestException as e:
            raise FetchError(f'image read failed: {type(e).__name__}') from e

    def caption_image(self, image_url: str) -> str:
        if not self.is_available():
            record_fallback('caption', 'no_token')
            return MSG_NO_TOKEN
        try:
            image = self.fetch_image(image_url)
            data = self._post(CAPTION_MODEL, config.INFERENCE_TIMEOUT_S, data=image,
                              headers={'Content-Type': 'application/octet-stream'})
            return _first_field(data, 'generated_text')
        except ABSORBED as e:
            log.warning('caption_fallback', error=str(e), error_type=type(e).__name__)
            record_fallback('caption', type(e).__name__)
            return fallback_caption(image_url) or failure_message(e)

    def summarize(self, text: str, max_length: int = 100, min_length: int = SUMMARY_MIN_LENGTH) -> str:
        if len(text) < max_length:
            return text
        if not self.is_available():
            record_fallback('summary', 'no_token')
            return text
        payload = {'inputs': text, 'parameters': {'max_length': max_length, 'min_length': min_length}}
        try:
            data = self._post(SUMMARY_MODEL, config.INFERENCE_TIMEOUT_S, json=payload)
            return _first_field(data, 'summary_text')
        except ABSORBED as e:
            log.warning('summary_fallback', error=str(e), error_type=type(e).__name__)
            record_fallback('summary', type(e).__name__)
            return text

    def _classify(self, text: str, timeout: float) -> Sentiment:
        data = self._post(SENTIMENT_MODEL, timeout, json={'inputs': text})
        entries = normalize_sentiment_payload(data)
        best = max(entries, key=lambda e: e['score'])
        return star_to_sentiment(best['label'], float(best['score']))

    def analyze_sentiment(self, text: str) -> Sentiment:
        if not self.is_available():
            record_fallback('sentiment', 'no_token')
            return NEUTRAL
        try:
            return self._classify(text, config.SENTIMENT_TIMEOUT_S)
        except ABSORBED as e:
            log.warning('sentiment_fallback', error=str(e), error_type=type(e).__name__)
            record_fallback('sentiment', type(e).__name__)
            return NEUTRAL

    def probe(self, timeout: float = config.HEALTH_PROBE_TIMEOUT_S) -> Sentiment:
        """Live sentiment call for health checks; raises instead of falling back."""
        return self._classify("NASA's Astronomy Picture of the Day showcases stunning cosmic imagery.", timeout)
