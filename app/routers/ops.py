from fastapi import APIRouter, Depends, Request, Response
from app.dependencies import get_nasa_client
from app.metrics import snapshot_metrics, prometheus_payload
from app.nasa import NasaClient
from app.obs import utc_now_iso
from app.ratelimit import api_limit

router = APIRouter(prefix='', tags=['ops'])

ENDPOINTS = {
    'apod': ['GET /api/apod', 'GET /api/apod/random'],
    'mars': ['GET /api/mars/photos', 'GET /api/mars/rovers/{rover}'],
    'neo': ['GET /api/neo', 'GET /api/neo/stats'],
    'search': ['GET /api/search'],
    'ai': [
        'GET /api/ai/status',
        'GET /api/ai/health',
        'POST /api/ai/analyze',
        'POST /api/ai/batch',
        'POST /api/ai/image/analyze',
        'POST /api/ai/text/analyze',
        'POST /api/ai/text/summarize',
        'POST /api/ai/text/sentiment',
        'POST /api/ai/text/complexity',
        'GET /api/ai/tips/{topic}',
        'GET /api/ai/tips',
    ],
}

def _health_body(nasa: NasaClient) -> dict:
    return {
        'success': True,
        'status': 'OK',
        'service': 'NASA API Backend',
        'nasa_key_status': 'Demo Key' if nasa.using_demo_key else 'Real Key',
        'timestamp': utc_now_iso(),
    }

@router.get('/health')
def health(nasa: NasaClient = Depends(get_nasa_client)):
    return _health_body(nasa)

@router.get('/api/health')
@api_limit
def api_health(request: Request, nasa: NasaClient = Depends(get_nasa_client)):
    return _health_body(nasa)

@router.get('/')
def root():
    return {'success': True, 'message': 'NASA API Backend', 'endpoints': ENDPOINTS, 'timestamp': utc_now_iso()}

@router.get('/api')
@api_limit
def api_index(request: Request):
    return {'success': True, 'message': 'NASA API Endpoints', 'endpoints': ENDPOINTS, 'timestamp': utc_now_iso()}

@router.get('/metrics')
def metrics():
    return snapshot_metrics()

@router.get('/metrics.prom')
def metrics_prom():
    payload, content_type = prometheus_payload()
    return Response(payload, media_type=content_type)
