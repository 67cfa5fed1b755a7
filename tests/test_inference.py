import time
import pytest
import requests
from app import config
from app import inference as inference_module
from app.errors import FetchError, InferencePayloadError
from app.inference import (InferenceClient, normalize_sentiment_payload, star_to_sentiment,
                           MSG_NO_TOKEN, MSG_RATE_LIMITED, MSG_FORBIDDEN, MSG_UNAVAILABLE)

LONG_TEXT = 'The rover climbed the crater rim and sent back images. ' * 10

def test_gate_follows_token(inference_session):
    assert InferenceClient(token='x', session=inference_session).is_available()
    assert not InferenceClient(token=None, session=inference_session).is_available()
    assert not InferenceClient(token='', session=inference_session).is_available()

def test_gate_closed_never_calls_network(inference, inference_session):
    assert inference.caption_image('https://example.com/a.jpg') == MSG_NO_TOKEN
    assert inference.summarize(LONG_TEXT, 50) == LONG_TEXT
    s = inference.analyze_sentiment('Great launch today')
    assert (s.label, s.score) == ('NEUTRAL', 0.5)
    assert inference_session.calls == []

@pytest.mark.parametrize('label,expected', [
    ('5 stars', 'POSITIVE'), ('4 stars', 'POSITIVE'), ('3 stars', 'NEUTRAL'),
    ('2 stars', 'NEGATIVE'), ('1 star', 'NEGATIVE'),
])
def test_star_mapping(label, expected):
    s = star_to_sentiment(label, 0.7)
    assert s.label == expected
    assert s.score == 0.7

def test_star_mapping_rejects_unknown_label():
    with pytest.raises(InferencePayloadError):
        star_to_sentiment('LABEL_2', 0.9)

def test_normalize_flat_and_nested(sentiment_payload):
    assert normalize_sentiment_payload(sentiment_payload) == sentiment_payload
    assert normalize_sentiment_payload([sentiment_payload]) == sentiment_payload

@pytest.mark.parametrize('payload', [{}, [], {'label': '5 stars', 'score': 1}, [[[]]], [{'label': 5}], 'oops'])
def test_normalize_rejects_unknown_shapes(payload):
    with pytest.raises(InferencePayloadError):
        normalize_sentiment_payload(payload)

def test_sentiment_picks_highest_score(live_inference, inference_session, fake_response, sentiment_payload):
    inference_session.routes['bert-base-multilingual'] = fake_response(payload=[sentiment_payload])
    s = live_inference.analyze_sentiment('What a spectacular image of the nebula!')
    assert s.label == 'POSITIVE'
    assert s.score == 0.60
    method, url, kwargs = inference_session.calls[0]
    assert method == 'POST'
    assert kwargs['headers']['Authorization'] == 'Bearer hf_test'
    assert kwargs['json'] == {'inputs': 'What a spectacular image of the nebula!'}

@pytest.mark.parametrize('outcome', [
    requests.Timeout('slow'),
    requests.ConnectionError('down'),
])
def test_sentiment_network_failure_is_neutral(live_inference, inference_session, outcome):
    inference_session.routes['bert-base-multilingual'] = outcome
    s = live_inference.analyze_sentiment('text')
    assert (s.label, s.score) == ('NEUTRAL', 0.5)

def test_sentiment_http_error_and_bad_shape_are_neutral(live_inference, inference_session, fake_response):
    inference_session.routes['bert-base-multilingual'] = fake_response(status_code=503, payload={'error': 'loading'})
    assert live_inference.analyze_sentiment('text').label == 'NEUTRAL'
    inference_session.routes['bert-base-multilingual'] = fake_response(payload={'unexpected': True})
    s = live_inference.analyze_sentiment('text')
    assert (s.label, s.score) == ('NEUTRAL', 0.5)

def test_summarize_short_text_is_returned_unchanged(live_inference, inference_session):
    assert live_inference.summarize('Short.', 150) == 'Short.'
    assert inference_session.calls == []

def test_summarize_calls_model(live_inference, inference_session, fake_response):
    inference_session.routes['bart-large-cnn'] = fake_response(payload=[{'summary_text': 'Rover climbs rim.'}])
    assert live_inference.summarize(LONG_TEXT, 150) == 'Rover climbs rim.'
    _, _, kwargs = inference_session.calls[0]
    assert kwargs['json']['parameters'] == {'max_length': 150, 'min_length': 20}

def test_summarize_fails_open(live_inference, inference_session, fake_response):
    inference_session.routes['bart-large-cnn'] = fake_response(status_code=500, payload={'error': 'boom'})
    assert live_inference.summarize(LONG_TEXT, 150) == LONG_TEXT

def test_caption_success(live_inference, inference_session, fake_response):
    inference_session.routes['images.test'] = fake_response(content=b'\x89PNG' * 100)
    inference_session.routes['blip-image-captioning'] = fake_response(payload=[{'generated_text': 'a red planet'}])
    assert live_inference.caption_image('https://images.test/pic.png') == 'a red planet'
    post = [c for c in inference_session.calls if c[0] == 'POST'][0]
    assert post[2]['data'] == b'\x89PNG' * 100
    assert post[2]['headers']['Content-Type'] == 'application/octet-stream'

@pytest.mark.parametrize('status,message', [(429, MSG_RATE_LIMITED), (403, MSG_FORBIDDEN), (500, MSG_UNAVAILABLE)])
def test_caption_failure_categories(live_inference, inference_session, fake_response, status, message):
    inference_session.routes['images.test'] = fake_response(content=b'img')
    inference_session.routes['blip-image-captioning'] = fake_response(status_code=status, payload={'error': 'x'})
    assert live_inference.caption_image('https://images.test/pic.png') == message

def test_caption_fetch_failure_uses_fallback_classifier(live_inference, inference_session, fake_response):
    inference_session.routes['mars.test'] = fake_response(status_code=404, content=b'')
    caption = live_inference.caption_image('https://mars.test/rover/photo.jpg')
    assert 'Martian' in caption
    assert all(c[0] == 'GET' for c in inference_session.calls)

def test_caption_fetch_failure_without_keyword(live_inference, inference_session):
    inference_session.routes['example.test'] = requests.Timeout('slow')
    assert live_inference.caption_image('https://example.test/x.jpg') == MSG_UNAVAILABLE

def test_probe_raises(live_inference, inference_session, fake_response):
    inference_session.routes['bert-base-multilingual'] = fake_response(status_code=503, payload={})
    with pytest.raises(requests.HTTPError):
        live_inference.probe()

class DripResponse:
    """Sends one byte at a time with a pause between each."""
    status_code = 200

    def __init__(self, chunks=8, pause=0.03):
        self.chunks = chunks
        self.pause = pause
        self.closed = False

    def iter_content(self, chunk_size=1):
        for _ in range(self.chunks):
            time.sleep(self.pause)
            yield b'x'

    def close(self):
        self.closed = True

def test_image_fetch_is_bounded_by_total_deadline(live_inference, inference_session, monkeypatch):
    monkeypatch.setattr(config, 'IMAGE_FETCH_TIMEOUT_S', 0.05)
    drip = DripResponse()
    inference_session.routes['example.test'] = drip
    t0 = time.monotonic()
    with pytest.raises(FetchError):
        live_inference.fetch_image('https://example.test/slow.jpg')
    assert time.monotonic() - t0 < 8 * 0.03
    assert drip.closed

def test_slow_image_caption_falls_back(live_inference, inference_session, monkeypatch):
    monkeypatch.setattr(config, 'IMAGE_FETCH_TIMEOUT_S', 0.05)
    inference_session.routes['example.test'] = DripResponse()
    assert live_inference.caption_image('https://example.test/slow.jpg') == MSG_UNAVAILABLE
    assert all(c[0] == 'GET' for c in inference_session.calls)

def test_oversize_image_is_a_fetch_error(live_inference, inference_session, fake_response, monkeypatch):
    monkeypatch.setattr(inference_module, 'MAX_IMAGE_BYTES', 10)
    inference_session.routes['example.test'] = fake_response(content=b'x' * 20)
    with pytest.raises(FetchError):
        live_inference.fetch_image('https://example.test/huge.jpg')
    assert live_inference.caption_image('https://example.test/huge.jpg') == MSG_UNAVAILABLE
    assert all(c[0] == 'GET' for c in inference_session.calls)
