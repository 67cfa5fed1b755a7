import time
from typing import Any, Optional
import requests
from app import config
from app.errors import UpstreamError
from app.metrics import record_upstream
from app.obs import log
from app.schemas import NeoStats
from app.services import make_session

VALID_ROVERS = ('curiosity', 'opportunity', 'spirit', 'perseverance')


def _upstream_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason or f'http_{resp.status_code}'
    if isinstance(body, dict):
        err = body.get('error')
        if isinstance(err, dict) and err.get('message'):
            return str(err['message'])
        if isinstance(err, str):
            return err
        if body.get('msg'):
            return str(body['msg'])
        if body.get('reason'):
            return str(body['reason'])
    return resp.reason or f'http_{resp.status_code}'


class NasaClient:
    def __init__(self, api_key: str = config.NASA_API_KEY, base_url: str = config.NASA_API_URL,
                 images_url: str = config.NASA_IMAGES_URL, session: Optional[requests.Session] = None,
                 timeout_s: float = config.NASA_TIMEOUT_S):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.images_url = images_url.rstrip('/')
        self.session = session or make_session()
        self.timeout_s = timeout_s

    @property
    def using_demo_key(self) -> bool:
        return self.api_key == 'DEMO_KEY'

    def _get(self, url: str, params: dict, keyed: bool = True) -> Any:
        if keyed:
            params = {**params, 'api_key': self.api_key}
        t0 = time.time()
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout_s)
        except requests.RequestException as e:
            record_upstream('nasa', 'error', int((time.time() - t0) * 1000))
            log.error('nasa_request_failed', url=url, error=str(e), error_type=type(e).__name__)
            raise UpstreamError(f'Request to NASA API failed: {type(e).__name__}') from e
        dt = int((time.time() - t0) * 1000)
        if resp.status_code != 200:
            record_upstream('nasa', 'error', dt)
            message = _upstream_message(resp)
            log.error('nasa_http_error', url=url, status_code=resp.status_code, message=message)
            raise UpstreamError(message, status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            record_upstream('nasa', 'error', dt)
            raise UpstreamError('NASA API returned a non-JSON body') from e
        record_upstream('nasa', 'ok', dt)
        log.info('nasa_fetch', url=url, ms=dt)
        return data

    def get_apod(self, date: Optional[str] = None) -> dict:
        params = {'date': date} if date else {}
        return self._get(f'{self.base_url}/planetary/apod', params)

    def get_mars_photos(self, rover: str = 'curiosity', sol: int = 1000, page: int = 1) -> dict:
        return self._get(f'{self.base_url}/mars-photos/api/v1/rovers/{rover}/photos', {'sol': sol, 'page': page})

    def get_rover_info(self, rover: str) -> dict:
        return self._get(f'{self.base_url}/mars-photos/api/v1/rovers/{rover.lower()}', {})

    def get_neo_feed(self, start_date: str, end_date: str) -> dict:
        return self._get(f'{self.base_url}/neo/rest/v1/feed', {'start_date': start_date, 'end_date': end_date})

    def search_library(self, q: str, media_type: str = 'image') -> dict:
        return self._get(f'{self.images_url}/search', {'q': q, 'media_type': media_type}, keyed=False)


def _first_approach(neo: dict) -> Optional[dict]:
    approaches = neo.get('close_approach_data') or []
    return approaches[0] if approaches else None


def neo_stats(feed: dict) -> NeoStats:
    neos = [n for day in (feed.get('near_earth_objects') or {}).values() for n in (day or [])]

    diameters = []
    for n in neos:
        km = (n.get('estimated_diameter') or {}).get('kilometers') or {}
        lo, hi = km.get('estimated_diameter_min'), km.get('estimated_diameter_max')
        if lo is not None and hi is not None:
            diameters.append((float(lo) + float(hi)) / 2)

    misses, velocities = [], []
    for n in neos:
        a = _first_approach(n)
        if not a:
            continue
        miss = (a.get('miss_distance') or {}).get('kilometers')
        vel = (a.get('relative_velocity') or {}).get('kilometers_per_hour')
        if miss is not None:
            misses.append(float(miss))
        if vel is not None:
            velocities.append(float(vel))

    return NeoStats(
        total_count=len(neos),
        potentially_hazardous_count=sum(1 for n in neos if n.get('is_potentially_hazardous_asteroid')),
        average_diameter=sum(diameters) / len(diameters) if diameters else None,
        closest_approach=min(misses) if misses else None,
        fastest_velocity=max(velocities) if velocities else None,
    )
