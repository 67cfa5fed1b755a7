import time
from typing import Optional
import requests
from requests.adapters import HTTPAdapter
from app.config import USER_AGENT
from app.errors import FetchError

POOL_SIZE = 20
CHUNK_BYTES = 64_000

def make_session(pool_size: int = POOL_SIZE) -> requests.Session:
    # No Retry here: upstream failures fall through to the caller's fallback.
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=0, pool_connections=pool_size, pool_maxsize=pool_size)
    s.mount('http://', adapter)
    s.mount('https://', adapter)
    s.headers.update({
        'User-Agent': USER_AGENT,
        'Accept': 'application/json',
    })
    return s

def read_capped(resp: requests.Response, max_bytes: int, deadline: Optional[float] = None) -> bytes:
    """Read a streamed body, giving up past ``max_bytes`` or the ``time.monotonic()`` deadline.

    The ``timeout=`` given to requests only bounds each socket read, so a
    server dripping bytes is cut off here instead.
    """
    content = b''
    for chunk in resp.iter_content(CHUNK_BYTES):
        content += chunk
        if len(content) > max_bytes:
            resp.close()
            raise FetchError(f'payload exceeds {max_bytes} bytes')
        if deadline is not None and time.monotonic() > deadline:
            resp.close()
            raise FetchError('image read exceeded its deadline')
    return content
