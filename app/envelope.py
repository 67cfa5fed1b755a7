from typing import Any
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from app.obs import utc_now_iso

def ok(data: Any) -> dict:
    return {'success': True, 'data': jsonable_encoder(data), 'timestamp': utc_now_iso()}

def fail(status_code: int, error: str, **extra) -> JSONResponse:
    content = {'success': False, 'error': error, **extra, 'timestamp': utc_now_iso()}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
