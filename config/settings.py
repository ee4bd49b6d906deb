# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    SESSION_TTL_SECONDS: int = Field(default=6 * 60 * 60, validation_alias="SESSION_TTL_SECONDS")

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(..., validation_alias="ALLOWED_ORIGIN")
    MAX_IMAGE_MB: int = Field(default=8, validation_alias="MAX_IMAGE_MB")
    MAX_UPLOAD_IMAGES: int = 5

    # Gemini Settings
    GEMINI_API_KEY: str = Field(..., validation_alias="GEMINI_API_KEY")
    GEMINI_API_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models",
        validation_alias="GEMINI_API_URL",
    )
    GEMINI_MODEL: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MODEL")
    GEMINI_TIMEOUT_SECONDS: float = Field(default=120.0, validation_alias="GEMINI_TIMEOUT_SECONDS")
    GEMINI_TEMPERATURE: float = Field(default=0.4, validation_alias="GEMINI_TEMPERATURE")

    # Generation knobs
    FLASHCARD_COUNT: int = 10
    MCQ_BATCH_SIZE: int = 50
    BONUS_CONTEXT_CHARS: int = 500
    USED_FACTS_MAX_CHARS: int = 6000

    # Logging knobs
    LOGGER_NAME: str = "study-kit"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    EXTRACTION_PROMPT: str = (
        "Extract all text from these book pages (keep it exactly as written). "
        "Mixed Bangla and English is expected.\n"
        "Detect the subject: Bangla 2nd Paper, English, Math, or GK.\n"
        'Return JSON: { "ocrText": "...", "subject": "..." }'
    )

    MASTER_NOTE_PROMPT: str = (
        "You are a professional notes generator. Generate a 3-layer Master Note from "
        'OCR_TEXT: """{text}"""\n'
        "Subject: {subject}, Language: {language}.\n"
        "\n"
        "LAYER 1: BOOK-EXACT (OCR-only)\n"
        "- Rules: 100% exact to OCR. Do NOT shorten. Use ONLY OCR facts.\n"
        "- Format: for each topic use a '### [Topic Name]' header followed by bullet points for "
        "**Meaning**, **Rules/Details** and **Examples**.\n"
        '- End Layer 1 with a "BOOK-EXACT Quick Table" in Markdown table format.\n'
        "\n"
        "LAYER 2: MEMORY TECHNIQUES\n"
        "- Use bold text for mnemonics. Add a specific \"Shortcut\" section for Math.\n"
        "- Add \"Trap Alerts\" in blockquote format (> Trap Alert: ...).\n"
        "\n"
        "LAYER 3: JOB PREP BONUS\n"
        "- Provide deep analysis, historical background, related terminology and expert-level insights.\n"
        '- Include a sub-section "🎯 TOP RELEVANT GOVT JOB QUESTIONS" with 30+ important questions '
        "and answers that frequently appear in BCS, Bank and Primary exams for this content.\n"
        "- Mark every item with 🧠 Bonus. Use bold text for keywords.\n"
        "\n"
        "Return JSON with keys: layer1, layer2, layer3. Each value is a single markdown string."
    )

    BONUS_PROMPT: str = (
        "Task: Generate ADDITIONAL High-Yield Job Prep Bonus Content.\n"
        'Original Context: """{text}"""\n'
        "Subject: {subject}\n"
        "Language: {language}\n"
        'Existing Bonus Snippet: """{existing}..."""\n'
        "\n"
        "Requirements:\n"
        "1. Generate 40+ NEW specific related questions and detailed answers for Bangladesh Govt Jobs "
        "(BCS, Bank, Primary).\n"
        "2. Focus on topics related to the text that haven't been fully explored.\n"
        "3. Mark every line with 🧠 Bonus.\n"
        '4. Include an "🎯 EXTRA GOVT JOB INSIGHTS" header.\n'
        "\n"
        "Return the raw text only."
    )

    SUMMARY_PROMPT: str = (
        "Generate a clean, readable Summary. Language: {language}.\n"
        "Use Markdown Headers (##) and Lists (-).\n"
        "Include: 10 key points, 10 Q/A one-liners, 5 traps, 1-min script.\n"
        "OCR: {text}"
    )

    MCQ_PROMPT: str = (
        'Generate {count} MCQs for Batch {batch_number} from OCR_TEXT: """{text}"""\n'
        "Language: {language}.\n"
        "Rules: exactly {count} MCQs, JSON only, a briefExplanation for each.\n"
        'Return JSON: {{ "questions": [{{ "id": 1, "question": "...", '
        '"options": {{ "A": "...", "B": "...", "C": "...", "D": "..." }}, '
        '"correctAnswer": "A", "briefExplanation": "...", "sourceTag": "...", "covers": ["..."] }}], '
        '"coverageReport": {{ "usedFactsCount": 0, "unusedFactsCount": 0, "unusedFactsPreview": [] }} }}\n'
        "Focus on unused facts. Do not repeat these already asked questions: {used_facts}"
    )

    FLASHCARD_PROMPT: str = (
        "Generate exactly {count} short flashcards from: {text}. Language: {language}. "
        'JSON format. {{ "cards": [{{ "id": 1, "question": "..." }}] }}'
    )

    CLARIFY_PROMPT: str = (
        "You are a helpful linguistic tutor. A student is struggling with a specific part of a sentence.\n"
        'Marked Text: "{span}"\n'
        'Full Context: "{context}"\n'
        "Language: {language}.\n"
        "\n"
        "Tasks:\n"
        '1. Define the "Marked Text" clearly and simply.\n'
        '2. Explain the "Full Context" sentence in plain language, showing how the marked text fits in.\n'
        "\n"
        'Return JSON with keys: "definition" and "fullExplanation".'
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
