import logging
import os

# === CONFIGURATION ===
from dotenv import load_dotenv
load_dotenv()

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LOG_LEVEL = os.getenv("SURVEY_XML_LOG_LEVEL", "INFO")
DEFAULT_OUTPUT = "survey_output.xml"


def get_api_key():
    return (os.getenv("OPENAI_API_KEY") or "").strip()


def configure_logging(level=None):
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # keep request-level chatter out of the extraction log
    logging.getLogger("httpx").setLevel(logging.WARNING)
