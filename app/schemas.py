from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Literal

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class AnalysisRequest(CamelModel):
    image_url: Optional[str] = None
    text: Optional[str] = None
    topic: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.image_url or self.text or self.topic)

class TextComplexity(CamelModel):
    word_count: int
    sentence_count: int
    avg_words_per_sentence: int
    complexity: Literal['Simple', 'Moderate', 'Complex']

class Sentiment(CamelModel):
    label: Literal['POSITIVE', 'NEGATIVE', 'NEUTRAL']
    score: float = Field(ge=0.0, le=1.0)

class AnalysisResult(CamelModel):
    timestamp: str
    image_analysis: Optional[str] = None
    text_analysis: Optional[TextComplexity] = None
    sentiment: Optional[Sentiment] = None
    summary: Optional[str] = None
    tips: Optional[list[str]] = None

class BatchRequest(CamelModel):
    items: Optional[list[AnalysisRequest]] = None

class BatchSuccess(CamelModel):
    index: int
    data: AnalysisResult

class BatchFailure(CamelModel):
    index: int
    error: str

class BatchSummary(CamelModel):
    total: int
    successful: int
    failed: int
    success_rate: str

class BatchResult(CamelModel):
    results: list[BatchSuccess]
    errors: list[BatchFailure]
    summary: BatchSummary

class ImageAnalyzeRequest(CamelModel):
    image_url: Optional[str] = None

class TextRequest(CamelModel):
    text: Optional[str] = None

class TextAnalyzeRequest(TextRequest):
    summarize: bool = True
    max_summary_length: int = Field(default=150, ge=1)

class SummarizeRequest(TextRequest):
    max_length: int = Field(default=150, ge=1)
    min_length: int = Field(default=20, ge=0)

class NeoStats(BaseModel):
    total_count: int
    potentially_hazardous_count: int
    average_diameter: Optional[float] = None
    closest_approach: Optional[float] = None
    fastest_velocity: Optional[float] = None
