import random
from datetime import date, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from app.analysis import Analyzer
from app.dependencies import get_analyzer, get_nasa_client
from app.envelope import ok
from app.nasa import NasaClient
from app.obs import log
from app.ratelimit import api_limit

DATE_PATTERN = r'^\d{4}-\d{2}-\d{2}$'
RANDOM_WINDOW_DAYS = 365

router = APIRouter(prefix='/api/apod', tags=['apod'])

def random_past_date(today: Optional[date] = None) -> str:
    today = today or date.today()
    return (today - timedelta(days=random.randrange(RANDOM_WINDOW_DAYS))).isoformat()

@router.get('')
@api_limit
def get_apod(request: Request,
             date: Optional[str] = Query(None, pattern=DATE_PATTERN),
             nasa: NasaClient = Depends(get_nasa_client),
             analyzer: Analyzer = Depends(get_analyzer)):
    log.info('apod', date=date or 'today')
    return ok(analyzer.enrich_apod(nasa.get_apod(date)))

@router.get('/random')
@api_limit
def get_random_apod(request: Request,
                    nasa: NasaClient = Depends(get_nasa_client),
                    analyzer: Analyzer = Depends(get_analyzer)):
    picked = random_past_date()
    log.info('apod_random', date=picked)
    return ok(analyzer.enrich_apod(nasa.get_apod(picked)))
