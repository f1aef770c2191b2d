"""
Domain Constants: service-wide constants.

Model IDs, storage layout, LLM response schemas and analytics thresholds.
Model names here are defaults only; default.yaml is the source of truth.
"""

# =============================================================================
# Models
# =============================================================================

TEXT_MODEL = "gemini-3-flash-preview"
TEXT_FALLBACK_MODEL = "gemini-2.5-flash"
LIVE_MODEL = "gemini-2.5-flash-native-audio-preview-12-2025"
TTS_MODEL = "gemini-2.5-flash-preview-tts"
CLAUDE_MODEL = "claude-sonnet-4-20250514"

# Voice call audio format
VOICE_NAME = "Kore"
INPUT_SAMPLE_RATE = 16000
OUTPUT_SAMPLE_RATE = 24000
SPEECH_CHUNK_BYTES = 24000  # 0.5 s of 16-bit mono PCM at OUTPUT_SAMPLE_RATE

# =============================================================================
# Storage Layout
# =============================================================================
# <data_root>/
# ├── _emails/<email_key>.json
# ├── .locks/<user_id>.lock
# └── users/<user_id>/
#     ├── profile.json
#     ├── chat.json
#     ├── journal.json
#     └── context.json

EMAILS_DIR = "_emails"
USERS_DIR = "users"
LOCKS_DIR = ".locks"
PROFILE_FILENAME = "profile.json"
CHAT_FILENAME = "chat.json"
JOURNAL_FILENAME = "journal.json"
CONTEXT_FILENAME = "context.json"

STORE_SCHEMA_VERSION = "1.0"

# =============================================================================
# LLM Response Schemas
# =============================================================================

EMOTION_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "label": {
            "type": "STRING",
            "description": (
                "The dominant emotion detected: Happy, Sad, Stress, Anxiety, "
                "Anger, Burnout, Neutral, Excited"
            ),
        },
        "confidence": {
            "type": "NUMBER",
            "description": "Confidence score from 0 to 1",
        },
        "intensity": {
            "type": "NUMBER",
            "description": "Intensity percentage from 0 to 100",
        },
        "response": {
            "type": "STRING",
            "description": "The empathetic AI response in the requested language.",
        },
        "activities": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": (
                "List of 2-3 recommended activities to improve or maintain "
                "current mood."
            ),
        },
    },
    "required": ["label", "confidence", "intensity", "response", "activities"],
}

REPORT_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "summary": {
            "type": "STRING",
            "description": "A 3-sentence summary of the user emotional trajectory.",
        },
        "stabilityScore": {
            "type": "NUMBER",
            "description": "Neural stability index from 0 to 100.",
        },
        "keyThemes": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Top 3 recurring emotional themes.",
        },
        "recommendation": {
            "type": "STRING",
            "description": "A personalized therapeutic action plan.",
        },
    },
    "required": ["summary", "stabilityScore", "keyThemes", "recommendation"],
}

# =============================================================================
# Chat / Journal / Report
# =============================================================================

DEFAULT_HISTORY_WINDOW = 10

# Journal fallback when the analysis returns nothing
FALLBACK_EMOTION_LABEL = "Neutral"
FALLBACK_EMOTION_CONFIDENCE = 1.0
FALLBACK_EMOTION_INTENSITY = 50.0

VOICE_MESSAGE_PLACEHOLDER = "Voice Message"
EMPTY_TRANSCRIPTION_PROMPT = "..."

MIN_REPORT_ITEMS = 2

# =============================================================================
# Wellness Path
# =============================================================================

WELLNESS_MILESTONES: list[dict] = [
    {
        "milestone": 1,
        "title": "Neural Baseline Establishment",
        "description": "Initial calibration of emotional resonance patterns.",
    },
    {
        "milestone": 2,
        "title": "Cognitive Pattern Recognition",
        "description": "Identifying recurring emotional drift triggers.",
    },
    {
        "milestone": 3,
        "title": "Regulation & Drift Control",
        "description": "Mastery over high-intensity emotional peaks.",
    },
    {
        "milestone": 4,
        "title": "Sustained Resilience",
        "description": "Achieving a stable state of psychological flow.",
    },
]

MAX_ACTIVE_NODES = 4
MAX_EQ = 10.0
