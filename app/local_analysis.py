import re
from typing import Optional
from app.schemas import TextComplexity

SENTENCE_SPLIT = re.compile(r'[.!?]+')

ASTRONOMY_TIPS = {
    'nebula': [
        '🔭 Try viewing nebulae with different filters to see various elements',
        '🌟 Nebulae are stellar nurseries where new stars are born',
        '📊 The colors in nebulae indicate different chemical elements',
    ],
    'galaxy': [
        '🌌 Our Milky Way contains over 100 billion stars',
        '🔄 Galaxies rotate, with spiral arms moving like waves',
        "🎯 Look for the galaxy's central black hole in deep images",
    ],
    'planet': [
        '🪐 Each planet has unique atmospheric conditions',
        '🌡️ Temperature varies greatly across planetary surfaces',
        '🔍 Study surface features to understand geological history',
    ],
    'mars': [
        '🚀 Mars has the largest volcano in the solar system',
        '❄️ Mars has polar ice caps made of water and dry ice',
        '🌪️ Dust storms on Mars can last for months',
    ],
    'default': [
        '⭐ Use dark sky locations for better astronomical viewing',
        '📱 Try astronomy apps to identify objects in the night sky',
        '🌙 The best viewing is often just after sunset or before sunrise',
    ],
}

# Match order is significant: first keyword contained in the topic wins.
TIP_TOPICS = ('nebula', 'galaxy', 'planet', 'mars')

# Best-effort fallback classifier for image captions. Only used when the
# captioning model could not be reached; first keyword found in the URL wins.
CAPTION_FALLBACKS = (
    ('mars', 'A view of the Martian surface captured by a NASA rover or orbiter'),
    ('nebula', 'A colorful nebula, a cloud of interstellar gas and dust'),
    ('galaxy', 'A distant galaxy filled with billions of stars'),
    ('moon', 'A view of the lunar surface'),
    ('sun', 'An image of the Sun showing solar activity'),
    ('earth', 'A view of Earth from space'),
    ('comet', 'A comet with its glowing tail'),
    ('jupiter', 'The gas giant Jupiter and its banded atmosphere'),
    ('saturn', 'The ringed planet Saturn'),
    ('aurora', 'An aurora lighting up the night sky'),
)

def analyze_text_complexity(text: str) -> TextComplexity:
    words = len((text or '').split())
    sentences = len([s for s in SENTENCE_SPLIT.split(text or '') if s.strip()])
    avg = words / sentences if sentences else 0.0

    complexity = 'Simple'
    if avg > 15:
        complexity = 'Moderate'
    if avg > 25:
        complexity = 'Complex'

    return TextComplexity(
        word_count=words,
        sentence_count=sentences,
        avg_words_per_sentence=int(avg + 0.5),  # half-up, not banker's rounding
        complexity=complexity,
    )

def tips_key(topic: str) -> str:
    t = (topic or '').lower()
    return next((k for k in TIP_TOPICS if k in t), 'default')

def generate_astronomy_tips(topic: str) -> list[str]:
    return list(ASTRONOMY_TIPS[tips_key(topic)])

def fallback_caption(image_url: str) -> Optional[str]:
    u = (image_url or '').lower()
    for keyword, caption in CAPTION_FALLBACKS:
        if keyword in u:
            return caption
    return None
