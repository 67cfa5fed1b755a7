import traceback, time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from app import config
from app.envelope import fail
from app.errors import AnalysisError, BatchValidationError, UpstreamError
from app.metrics import observe_ms, inc, P_REQUESTS, H_LAT
from app.obs import log, new_request_id, should_sample
from app.ratelimit import limiter, GENERAL_MESSAGE
from app.routers.ai import router as ai_router
from app.routers.apod import router as apod_router
from app.routers.mars import router as mars_router
from app.routers.neo import router as neo_router
from app.routers.ops import ENDPOINTS, router as ops_router
from app.routers.search import router as search_router

NASA_RATE_LIMIT_MESSAGE = 'NASA API rate limit exceeded. Please try again later.'

app = FastAPI(title='NASA API Backend')
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

@app.middleware('http')
async def add_request_context(request: Request, call_next):
    rid = new_request_id()
    request.state.request_id = rid
    start = time.time()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers['X-Request-ID'] = rid
        return response
    finally:
        dt = int((time.time() - start) * 1000)
        observe_ms('http_request_ms', dt)
        inc('http_requests_total')
        P_REQUESTS.labels(method=request.method, status=str(status)).inc()
        H_LAT.observe(dt)
        if should_sample():
            log.info('http_request', rid=rid, path=request.url.path, ms=dt, method=request.method, status=status)

@app.middleware('http')
async def security_headers(request: Request, call_next):
    resp = await call_next(request)
    resp.headers['X-Frame-Options'] = 'DENY'
    resp.headers['X-Content-Type-Options'] = 'nosniff'
    return resp

@app.exception_handler(UpstreamError)
async def upstream_error(request: Request, exc: UpstreamError):
    log.error('upstream_error', path=request.url.path, status_code=exc.status_code, message=exc.message)
    if exc.status_code == 429:
        return fail(429, NASA_RATE_LIMIT_MESSAGE)
    if exc.status_code and 400 <= exc.status_code < 500:
        return fail(exc.status_code, f'NASA API Error: {exc.message}')
    return fail(500, 'Internal Server Error')

@app.exception_handler(AnalysisError)
async def analysis_error(request: Request, exc: AnalysisError):
    return fail(500, str(exc))

@app.exception_handler(BatchValidationError)
async def batch_validation_error(request: Request, exc: BatchValidationError):
    return fail(400, str(exc))

@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = '.'.join(str(p) for p in first.get('loc', ()) if p not in ('body', 'query', 'path'))
    message = first.get('msg', 'Invalid request')
    return fail(400, f'Invalid {field}: {message}' if field else message)

@app.exception_handler(RateLimitExceeded)
async def rate_limited(request: Request, exc: RateLimitExceeded):
    message = getattr(exc.limit, 'error_message', None) or GENERAL_MESSAGE
    return fail(429, message)

@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == 'Not Found':
        if request.url.path.startswith('/api/ai/'):
            return fail(404, 'AI endpoint not found', path=request.url.path, method=request.method,
                        availableEndpoints=ENDPOINTS['ai'])
        return fail(404, 'Route not found', path=request.url.path)
    return fail(exc.status_code, str(exc.detail))

@app.exception_handler(Exception)
async def all_errors(request: Request, exc: Exception):
    tb = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    log.error('unhandled_error', path=request.url.path, method=request.method, error=str(exc), traceback=tb)
    if config.APP_ENV == 'development':
        return fail(500, 'Internal Server Error', stack=tb)
    return fail(500, 'Internal Server Error')

app.include_router(ops_router)
app.include_router(apod_router)
app.include_router(mars_router)
app.include_router(neo_router)
app.include_router(search_router)
app.include_router(ai_router)

def run():
    import uvicorn
    uvicorn.run('app.main:app', host='0.0.0.0', port=config.PORT)
