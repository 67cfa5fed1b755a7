"""Shared client instances, resolved through FastAPI ``Depends``.

Tests swap them with ``app.dependency_overrides``.
"""
from fastapi import Depends
from app import config
from app.analysis import Analyzer
from app.inference import InferenceClient
from app.nasa import NasaClient
from app.obs import log

_inference: InferenceClient | None = None
_nasa: NasaClient | None = None

def get_inference_client() -> InferenceClient:
    global _inference
    if _inference is None:
        _inference = InferenceClient(token=config.HF_API_TOKEN, base_url=config.HF_API_URL)
        log.info('inference_client_ready', available=_inference.is_available())
    return _inference

def get_nasa_client() -> NasaClient:
    global _nasa
    if _nasa is None:
        _nasa = NasaClient(api_key=config.NASA_API_KEY)
        log.info('nasa_client_ready', demo_key=_nasa.using_demo_key)
    return _nasa

def get_analyzer(inference: InferenceClient = Depends(get_inference_client)) -> Analyzer:
    return Analyzer(inference, enrich=config.ENRICH_NASA_RESPONSES)
