import os, pytest
import requests

os.environ['RATE_LIMIT_ENABLED'] = '0'
os.environ['HF_API_TOKEN'] = ''
os.environ.setdefault('NASA_API_KEY', 'TEST_KEY')
os.environ.setdefault('SAMPLE_RATE', '0')

from fastapi.testclient import TestClient
from app.main import app
from app.dependencies import get_inference_client, get_nasa_client
from app.inference import InferenceClient
from app.nasa import NasaClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b'', reason='OK'):
        self.status_code = status_code
        self._payload = payload
        self._content = content
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise requests.JSONDecodeError('no json', '', 0)
        return self._payload

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self._content), chunk_size):
            yield self._content[i:i + chunk_size]

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'http_{self.status_code}', response=self)

    def close(self):
        pass


class FakeSession:
    """Routes requests by URL substring; a route value may be a response,
    an exception instance to raise, or a callable(url, **kwargs)."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def _dispatch(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for fragment, outcome in self.routes.items():
            if fragment in url:
                if isinstance(outcome, Exception):
                    raise outcome
                if callable(outcome):
                    return outcome(url, **kwargs)
                return outcome
        raise requests.ConnectionError(f'no route for {url}')

    def get(self, url, **kwargs):
        return self._dispatch('GET', url, **kwargs)

    def post(self, url, **kwargs):
        return self._dispatch('POST', url, **kwargs)


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def nasa_session():
    return FakeSession()


@pytest.fixture
def inference_session():
    return FakeSession()


@pytest.fixture
def nasa(nasa_session):
    return NasaClient(api_key='TEST_KEY', base_url='https://api.nasa.test',
                      images_url='https://images.nasa.test', session=nasa_session)


@pytest.fixture
def inference(inference_session):
    return InferenceClient(token=None, base_url='https://hf.test/models', session=inference_session)


@pytest.fixture
def live_inference(inference_session):
    return InferenceClient(token='hf_test', base_url='https://hf.test/models', session=inference_session)


@pytest.fixture()
def client(nasa, inference):
    app.dependency_overrides[get_nasa_client] = lambda: nasa
    app.dependency_overrides[get_inference_client] = lambda: inference
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def live_client(nasa, live_inference):
    app.dependency_overrides[get_nasa_client] = lambda: nasa
    app.dependency_overrides[get_inference_client] = lambda: live_inference
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sentiment_payload():
    return [
        {'label': '1 star', 'score': 0.02},
        {'label': '2 stars', 'score': 0.03},
        {'label': '3 stars', 'score': 0.10},
        {'label': '4 stars', 'score': 0.25},
        {'label': '5 stars', 'score': 0.60},
    ]


def _neo(hazardous, dmin, dmax, miss_km, kph):
    return {
        'is_potentially_hazardous_asteroid': hazardous,
        'estimated_diameter': {'kilometers': {'estimated_diameter_min': dmin, 'estimated_diameter_max': dmax}},
        'close_approach_data': [{
            'miss_distance': {'kilometers': str(miss_km)},
            'relative_velocity': {'kilometers_per_hour': str(kph)},
        }],
    }


@pytest.fixture
def neo_feed():
    return {
        'element_count': 5,
        'near_earth_objects': {
            '2026-10-19': [
                _neo(True, 0.1, 0.3, 1_000_000, 40_000),
                _neo(False, 0.2, 0.4, 500_000, 20_000),
                _neo(False, 0.05, 0.15, 7_500_000, 90_000),
            ],
            '2026-10-20': [
                _neo(True, 1.0, 2.0, 300_000, 55_000),
                _neo(False, 0.01, 0.03, 2_000_000, 10_000),
            ],
        },
    }
