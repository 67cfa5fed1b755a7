from fastapi import APIRouter, Depends, HTTPException, Request
from app.analysis import Analyzer
from app.dependencies import get_analyzer, get_nasa_client
from app.envelope import ok
from app.nasa import NasaClient, VALID_ROVERS
from app.obs import log
from app.ratelimit import api_limit

router = APIRouter(prefix='/api/mars', tags=['mars'])

def _as_int(value: str):
    try:
        return int(str(value).strip())
    except ValueError:
        return None

@router.get('/photos')
@api_limit
def get_mars_photos(request: Request, rover: str = 'curiosity', sol: str = '1000', page: str = '1',
                    nasa: NasaClient = Depends(get_nasa_client),
                    analyzer: Analyzer = Depends(get_analyzer)):
    sol_n, page_n = _as_int(sol), _as_int(page)
    if sol_n is None or sol_n < 0:
        raise HTTPException(status_code=400, detail='Invalid sol parameter. Must be a positive number.')
    if page_n is None or page_n < 1:
        raise HTTPException(status_code=400, detail='Invalid page parameter. Must be a positive number.')
    rover = rover.lower()
    log.info('mars_photos', rover=rover, sol=sol_n, page=page_n)
    data = nasa.get_mars_photos(rover, sol_n, page_n)
    return ok(analyzer.enrich_mars_photos(data, rover))

@router.get('/rovers/{rover}')
@api_limit
def get_rover_info(request: Request, rover: str, nasa: NasaClient = Depends(get_nasa_client)):
    if rover.lower() not in VALID_ROVERS:
        raise HTTPException(status_code=400, detail=f"Invalid rover. Must be one of: {', '.join(VALID_ROVERS)}")
    log.info('rover_info', rover=rover.lower())
    return ok(nasa.get_rover_info(rover))
