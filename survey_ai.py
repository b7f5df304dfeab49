import json
import logging

import openai
from openai import AsyncOpenAI

import survey_config
from survey_extract import EmptyInputError, heuristic_parse_block
from survey_model import Question, QuestionType, QUESTION_TYPES
from survey_segmenter import split_paragraph_blocks

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a JSON-only assistant that reads a survey question block and outputs valid JSON "
    "with keys: label (string), secondaryLabel (string or empty), title (string), "
    f"type (one of {', '.join(QUESTION_TYPES)}), rows (array of strings), cols (array of strings). "
    "Return strictly and only JSON."
)

USER_PROMPT = """
Parse this survey question block and return the JSON described:

{block}

Make rows an array of option strings. Make cols an array of column headers if the block is a grid.
If there is an "Other" option include it as a row and mark it normally (the builder will set open="1").
"""


# === CODE BLOCK: Errors ===
class AIExtractionError(Exception):
    pass


class AIRequestError(AIExtractionError):
    pass


class AIResponseError(AIExtractionError):
    pass


# === CODE BLOCK: Response normalization ===
def _as_text(value):
    return value if isinstance(value, str) else ""


def _as_list(value):
    if isinstance(value, list):
        return [v if isinstance(v, str) else str(v) for v in value if v is not None]
    if not value:
        return []
    return [value if isinstance(value, str) else str(value)]


def parse_ai_response(content):
    if not content:
        raise AIResponseError("AI returned no content")

    start, end = content.find("{"), content.rfind("}")
    if start == -1 or end < start:
        raise AIResponseError("AI output does not contain JSON")

    try:
        obj = json.loads(content[start:end + 1])
    except json.JSONDecodeError as e:
        raise AIResponseError(f"Failed to parse JSON from AI output: {e}") from e
    if not isinstance(obj, dict):
        raise AIResponseError("AI output is not a JSON object")

    q_type = obj.get("type")
    if not isinstance(q_type, str) or not q_type:
        q_type = QuestionType.RADIO.value

    return Question(
        label=_as_text(obj.get("label")),
        secondary_label=_as_text(obj.get("secondaryLabel")),
        title=_as_text(obj.get("title")),
        type=q_type,
        rows=_as_list(obj.get("rows")),
        cols=_as_list(obj.get("cols")),
    )


# === CODE BLOCK: Completion request ===
def make_client(api_key):
    # one attempt per block, the batch falls back instead of retrying
    return AsyncOpenAI(api_key=api_key, max_retries=0)


async def ai_extract_block(block, api_key, client=None, model=None):
    owns_client = client is None
    if owns_client:
        client = make_client(api_key)

    try:
        response = await client.chat.completions.create(
            model=model or survey_config.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": USER_PROMPT.format(block=block).strip()},
            ],
            temperature=0,
        )
    except openai.APIStatusError as e:
        raise AIRequestError(f"AI API error: {e.status_code} {e.message}") from e
    except openai.OpenAIError as e:
        raise AIRequestError(f"AI request failed: {e}") from e
    finally:
        if owns_client:
            await client.close()

    if not response.choices:
        raise AIResponseError("AI returned no choices")
    return parse_ai_response(response.choices[0].message.content)


# === CODE BLOCK: Batch extraction ===
async def extract_questions(text, api_key, questions, client=None, model=None):
    if not text or not text.strip():
        raise EmptyInputError("Paste or upload a document first.")
    blocks = split_paragraph_blocks(text)
    if not blocks:
        raise EmptyInputError("No blocks detected.")

    api_key = (api_key or "").strip()
    owns_client = False
    if api_key and client is None:
        client = make_client(api_key)
        owns_client = True
    if not api_key:
        logger.info("No API key, using local heuristic for %d block(s)", len(blocks))

    added = 0
    ai_hits = 0
    try:
        for idx, block in enumerate(blocks, 1):
            q = None
            if api_key:
                try:
                    q = await ai_extract_block(block, api_key, client=client, model=model)
                    ai_hits += 1
                except AIExtractionError as e:
                    logger.warning("AI failed for block %d, falling back to heuristic: %s", idx, e)
            if q is None:
                q = heuristic_parse_block(block)
            questions.append(q)
            added += 1
    finally:
        if owns_client:
            await client.close()

    logger.info("Extraction finished: %d question(s) added, %d via AI", added, ai_hits)
    return added
