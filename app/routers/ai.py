from concurrent.futures import ThreadPoolExecutor
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from app.analysis import Analyzer, SUMMARY_THRESHOLD_CHARS
from app.dependencies import get_analyzer, get_inference_client
from app.envelope import ok, fail
from app.inference import InferenceClient, ABSORBED
from app.local_analysis import analyze_text_complexity, generate_astronomy_tips
from app.obs import log, utc_now_iso
from app.ratelimit import api_limit, ai_limit, heavy_limit
from app.schemas import (AnalysisRequest, BatchRequest, ImageAnalyzeRequest, SummarizeRequest,
                         TextAnalyzeRequest, TextRequest)

router = APIRouter(prefix='/api/ai', tags=['ai'])

def _require_text(text: Optional[str]) -> str:
    if not text:
        raise HTTPException(status_code=400, detail='Text is required')
    return text

@router.get('/status')
@api_limit
def status(request: Request, inference: InferenceClient = Depends(get_inference_client)):
    available = inference.is_available()
    return ok({
        'available': available,
        'message': 'AI services are available' if available else 'AI services require HF_API_TOKEN environment variable',
        'services': {
            'imageAnalysis': available,
            'textSummarization': available,
            'sentimentAnalysis': available,
            'textComplexity': True,
            'astronomyTips': True,
        },
        'timestamp': utc_now_iso(),
    })

@router.get('/health')
@api_limit
def health(request: Request, inference: InferenceClient = Depends(get_inference_client)):
    try:
        available = inference.is_available()
        services = {'textComplexity': True, 'astronomyTips': True}
        if available:
            try:
                inference.probe()
                healthy = True
            except ABSORBED as e:
                log.warning('ai_health_probe_failed', error=str(e), error_type=type(e).__name__)
                healthy = False
            services.update(sentimentAnalysis=healthy, textSummarization=healthy, imageAnalysis=healthy)
        overall = any(services.values())
        body = {
            'success': overall,
            'data': {
                'status': 'healthy' if all(services.values()) else 'degraded',
                'available': available,
                'services': services,
                'timestamp': utc_now_iso(),
            },
            'timestamp': utc_now_iso(),
        }
        return JSONResponse(status_code=200 if overall else 503, content=body)
    except Exception as e:
        log.error('ai_health_check_error', error=str(e))
        return fail(503, 'AI health check failed')

@router.post('/analyze')
@api_limit
@ai_limit
@heavy_limit
def analyze(request: Request, body: AnalysisRequest, analyzer: Analyzer = Depends(get_analyzer)):
    if body.is_empty():
        raise HTTPException(status_code=400, detail='At least one of imageUrl, text, or topic is required')
    log.info('ai_analyze', has_image=bool(body.image_url), has_text=bool(body.text), has_topic=bool(body.topic))
    return ok(analyzer.perform_comprehensive_analysis(body))

@router.post('/batch')
@api_limit
@ai_limit
@heavy_limit
def batch(request: Request, body: BatchRequest, analyzer: Analyzer = Depends(get_analyzer)):
    log.info('ai_batch', item_count=len(body.items or []))
    return ok(analyzer.batch_analyze(body.items))

@router.post('/image/analyze')
@api_limit
@ai_limit
@heavy_limit
def analyze_image(request: Request, body: ImageAnalyzeRequest,
                  inference: InferenceClient = Depends(get_inference_client)):
    if not body.image_url:
        raise HTTPException(status_code=400, detail='Image URL is required')
    log.info('ai_image', image_url=body.image_url)
    return ok({'analysis': inference.caption_image(body.image_url), 'imageUrl': body.image_url,
               'timestamp': utc_now_iso()})

@router.post('/text/analyze')
@api_limit
@ai_limit
def analyze_text(request: Request, body: TextAnalyzeRequest,
                 inference: InferenceClient = Depends(get_inference_client)):
    text = _require_text(body.text)
    log.info('ai_text', text_length=len(text), summarize=body.summarize, max_summary_length=body.max_summary_length)
    with ThreadPoolExecutor(max_workers=2) as pool:
        sentiment_f = pool.submit(inference.analyze_sentiment, text)
        summary_f = None
        if body.summarize and len(text) > SUMMARY_THRESHOLD_CHARS:
            summary_f = pool.submit(inference.summarize, text, body.max_summary_length)
        complexity = analyze_text_complexity(text)
        sentiment = sentiment_f.result()
        summary = summary_f.result() if summary_f else None
    return ok({
        'complexity': complexity,
        'sentiment': sentiment,
        'summary': summary,
        'originalLength': len(text),
        'timestamp': utc_now_iso(),
    })

@router.post('/text/summarize')
@api_limit
@ai_limit
def summarize(request: Request, body: SummarizeRequest,
              inference: InferenceClient = Depends(get_inference_client)):
    text = _require_text(body.text)
    if len(text) < body.min_length:
        return ok({'summary': text, 'originalLength': len(text), 'summarized': False,
                   'reason': 'Text too short to summarize'})
    log.info('ai_summarize', original_length=len(text), max_length=body.max_length, min_length=body.min_length)
    summary = inference.summarize(text, body.max_length, body.min_length)
    return ok({
        'summary': summary,
        'originalLength': len(text),
        'summaryLength': len(summary),
        'summarized': summary != text,
        'compressionRatio': round(len(summary) / len(text), 2),
    })

@router.post('/text/sentiment')
@api_limit
@ai_limit
def sentiment(request: Request, body: TextRequest,
              inference: InferenceClient = Depends(get_inference_client)):
    text = _require_text(body.text)
    log.info('ai_sentiment', text_length=len(text))
    return ok({'sentiment': inference.analyze_sentiment(text), 'textLength': len(text), 'timestamp': utc_now_iso()})

@router.post('/text/complexity')
@api_limit
@ai_limit
def complexity(request: Request, body: TextRequest):
    text = _require_text(body.text)
    log.info('ai_complexity', text_length=len(text))
    return ok({'complexity': analyze_text_complexity(text), 'timestamp': utc_now_iso()})

def _tips(topic: str, count: int) -> dict:
    all_tips = generate_astronomy_tips(topic)
    tips = all_tips[:count]
    return {'tips': tips, 'topic': topic, 'totalAvailable': len(all_tips), 'returned': len(tips)}

@router.get('/tips/{topic}')
@api_limit
@ai_limit
def tips_for_topic(request: Request, topic: str, count: int = Query(3, ge=0)):
    log.info('ai_tips', topic=topic, count=count)
    return ok(_tips(topic, count))

@router.get('/tips')
@api_limit
@ai_limit
def tips(request: Request, topic: str = 'default', count: int = Query(3, ge=0)):
    log.info('ai_tips', topic=topic, count=count)
    return ok(_tips(topic, count))
