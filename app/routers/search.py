from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from app.analysis import Analyzer
from app.dependencies import get_analyzer, get_nasa_client
from app.envelope import ok
from app.nasa import NasaClient
from app.obs import log
from app.ratelimit import api_limit

router = APIRouter(prefix='/api/search', tags=['search'])

@router.get('')
@api_limit
def search(request: Request, q: Optional[str] = None, media_type: str = 'image',
           nasa: NasaClient = Depends(get_nasa_client),
           analyzer: Analyzer = Depends(get_analyzer)):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail='Search query is required')
    data = nasa.search_library(q, media_type)
    hits = len(((data.get('collection') or {}).get('items')) or [])
    log.info('library_search', q=q, media_type=media_type, hits=hits)
    return ok(analyzer.enrich_search(data, q))
