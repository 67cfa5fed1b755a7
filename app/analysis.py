"""Comprehensive analysis: fan out to the adapters implied by the request,
substitute fallbacks, and merge everything into one result.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence
from app.config import MAX_BATCH_ITEMS
from app.errors import AnalysisError, BatchValidationError
from app.inference import InferenceClient
from app.local_analysis import analyze_text_complexity, generate_astronomy_tips
from app.metrics import inc
from app.obs import log, utc_now_iso
from app.schemas import (AnalysisRequest, AnalysisResult, BatchFailure, BatchResult,
                         BatchSuccess, BatchSummary)

SUMMARY_THRESHOLD_CHARS = 200
SUMMARY_TARGET_LENGTH = 150
BRANCH_WORKERS = 3

APOD_ANALYSIS_UNAVAILABLE = 'AI analysis temporarily unavailable'


class Analyzer:
    def __init__(self, inference: InferenceClient, enrich: bool = True):
        self.inference = inference
        self.enrich = enrich

    def is_available(self) -> bool:
        return self.inference.is_available()

    def perform_comprehensive_analysis(self, req: AnalysisRequest) -> AnalysisResult:
        try:
            return self._analyze(req)
        except Exception as e:
            log.error('analysis_failed', error=str(e), error_type=type(e).__name__)
            raise AnalysisError(f'AI analysis failed: {e}') from e

    def _analyze(self, req: AnalysisRequest) -> AnalysisResult:
        result = AnalysisResult(timestamp=utc_now_iso())
        with ThreadPoolExecutor(max_workers=BRANCH_WORKERS) as pool:
            image_f = pool.submit(self.inference.caption_image, req.image_url) if req.image_url else None
            sentiment_f = summary_f = None
            if req.text:
                sentiment_f = pool.submit(self.inference.analyze_sentiment, req.text)
                if len(req.text) > SUMMARY_THRESHOLD_CHARS:
                    summary_f = pool.submit(self.inference.summarize, req.text, SUMMARY_TARGET_LENGTH)
                result.text_analysis = analyze_text_complexity(req.text)
            if req.topic:
                result.tips = generate_astronomy_tips(req.topic)

            if image_f:
                result.image_analysis = image_f.result()
            if sentiment_f:
                result.sentiment = sentiment_f.result()
            if summary_f:
                result.summary = summary_f.result()
        inc('analysis_total')
        return result

    def _analyze_item(self, index: int, item: AnalysisRequest):
        try:
            return BatchSuccess(index=index, data=self.perform_comprehensive_analysis(item))
        except Exception as e:
            log.warning('batch_item_failed', index=index, error=str(e))
            return BatchFailure(index=index, error=str(e))

    def batch_analyze(self, items: Optional[Sequence[AnalysisRequest]]) -> BatchResult:
        if not items:
            raise BatchValidationError('Items array is required and must not be empty')
        if len(items) > MAX_BATCH_ITEMS:
            raise BatchValidationError(f'Maximum {MAX_BATCH_ITEMS} items allowed per batch')

        with ThreadPoolExecutor(max_workers=len(items)) as pool:
            outcomes = list(pool.map(self._analyze_item, range(len(items)), items))

        results = [o for o in outcomes if isinstance(o, BatchSuccess)]
        errors = [o for o in outcomes if isinstance(o, BatchFailure)]
        rate = len(results) / len(items) * 100
        inc('batch_items_total', len(items))
        return BatchResult(
            results=results,
            errors=errors,
            summary=BatchSummary(total=len(items), successful=len(results), failed=len(errors),
                                 success_rate=f'{rate:.2f}%'),
        )

    # NASA payload enrichment

    def _should_enrich(self) -> bool:
        return self.enrich and self.is_available()

    def enrich_apod(self, apod: dict) -> dict:
        if not self._should_enrich():
            return apod
        try:
            analysis = self.perform_comprehensive_analysis(AnalysisRequest(
                image_url=apod.get('url'), text=apod.get('explanation'), topic=apod.get('title')))
            apod['aiAnalysis'] = analysis.model_dump(by_alias=True)
        except AnalysisError as e:
            log.warning('apod_enrichment_failed', error=str(e))
            apod['aiAnalysis'] = {'error': APOD_ANALYSIS_UNAVAILABLE, 'timestamp': utc_now_iso()}
        return apod

    def _attach(self, payload: dict, req: AnalysisRequest, what: str) -> dict:
        try:
            payload['aiAnalysis'] = self.perform_comprehensive_analysis(req).model_dump(by_alias=True)
        except AnalysisError as e:
            log.warning('enrichment_failed', source=what, error=str(e))
        return payload

    def enrich_mars_photos(self, data: dict, rover: str) -> dict:
        photos = data.get('photos') or []
        if not (self._should_enrich() and photos):
            return data
        # First photo only, to stay inside the inference rate limits.
        return self._attach(data, AnalysisRequest(image_url=photos[0].get('img_src'), topic=f'Mars {rover} rover'), 'mars')

    def enrich_neo_feed(self, data: dict, start_date: str, end_date: str) -> dict:
        if not self._should_enrich():
            return data
        count = data.get('element_count') or 0
        text = f'Near Earth Objects data for {start_date} to {end_date}. Found {count} objects.'
        return self._attach(data, AnalysisRequest(text=text, topic='near earth objects asteroids'), 'neo')

    def enrich_search(self, data: dict, q: str) -> dict:
        items = ((data.get('collection') or {}).get('items')) or []
        if not (self._should_enrich() and items):
            return data
        item_data = (items[0].get('data') or [None])[0]
        if not item_data:
            return data
        text = item_data.get('description') or item_data.get('title')
        return self._attach(data, AnalysisRequest(text=text, topic=q), 'search')
