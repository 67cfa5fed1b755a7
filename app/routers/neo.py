from datetime import date, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from app.analysis import Analyzer
from app.dependencies import get_analyzer, get_nasa_client
from app.envelope import ok
from app.nasa import NasaClient, neo_stats
from app.obs import log
from app.ratelimit import api_limit
from app.routers.apod import DATE_PATTERN

DEFAULT_WINDOW_DAYS = 7

router = APIRouter(prefix='/api/neo', tags=['neo'])

def default_window(start_date: Optional[str], end_date: Optional[str]) -> tuple[str, str]:
    today = date.today()
    return (start_date or today.isoformat(),
            end_date or (today + timedelta(days=DEFAULT_WINDOW_DAYS)).isoformat())

@router.get('')
@api_limit
def get_neo(request: Request,
            start_date: Optional[str] = Query(None, pattern=DATE_PATTERN),
            end_date: Optional[str] = Query(None, pattern=DATE_PATTERN),
            nasa: NasaClient = Depends(get_nasa_client),
            analyzer: Analyzer = Depends(get_analyzer)):
    start, end = default_window(start_date, end_date)
    log.info('neo_feed', start_date=start, end_date=end)
    return ok(analyzer.enrich_neo_feed(nasa.get_neo_feed(start, end), start, end))

@router.get('/stats')
@api_limit
def get_neo_stats(request: Request,
                  start_date: Optional[str] = Query(None, pattern=DATE_PATTERN),
                  end_date: Optional[str] = Query(None, pattern=DATE_PATTERN),
                  nasa: NasaClient = Depends(get_nasa_client)):
    start, end = default_window(start_date, end_date)
    log.info('neo_stats', start_date=start, end_date=end)
    return ok(neo_stats(nasa.get_neo_feed(start, end)))
