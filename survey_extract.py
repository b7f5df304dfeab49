import logging
import re

from survey_model import Question, QuestionType
from survey_segmenter import split_blocks

logger = logging.getLogger(__name__)

# "S1. Title..." or "S1." on its own, title on the next line
LABEL_LINE_RE = re.compile(r'^([A-Za-z]{1,5}[0-9]{0,4}[A-Za-z]?)\.?\s*(.*)$')
METADATA_LINE_RE = re.compile(r'^[A-Z\s:]+$')
OPTION_PREFIX_RE = re.compile(r'^[-•*]?\s*(?:[A-Za-z0-9]{1,3}[.)]\s*)?(.+)$')
CELL_SPLIT_RE = re.compile(r'\t|\|')


class EmptyInputError(ValueError):
    pass


def is_metadata_line(line):
    # PN:, SHOW ALL, PROGRAMMER NOTE ...
    return bool(METADATA_LINE_RE.match(line)) or line.endswith(":")


def guess_question_type(text):
    lowered = text.lower()
    if "select all" in lowered or "multiple" in lowered:
        return QuestionType.CHECKBOX.value
    if "select one" in lowered or "choose one" in lowered or "single" in lowered:
        return QuestionType.RADIO.value
    if "%" in lowered or "percentage" in lowered:
        return QuestionType.NUMBER.value
    return QuestionType.RADIO.value


def clean_option(line):
    match = OPTION_PREFIX_RE.match(line)
    text = match.group(1).strip() if match else line.strip()

    if "\t" in text or "|" in text:
        # table row: first cell is the row label, the rest is kept flattened
        cells = [c.strip() for c in CELL_SPLIT_RE.split(text) if c.strip()]
        if len(cells) > 1:
            return " | ".join(cells[1:])
    return text


def heuristic_parse_block(block):
    lines = [l.strip() for l in block.split("\n") if l.strip()]
    label, secondary, title = "", "", ""
    start = 0

    first = lines[0] if lines else ""
    match = LABEL_LINE_RE.match(first)
    if match:
        label = match.group(1)
        title = match.group(2).strip()
        start = 1

    if label and start < len(lines) and lines[start] == label:
        secondary = lines[start]
        start += 1

    while start < len(lines) and is_metadata_line(lines[start]):
        start += 1

    if not title and start < len(lines):
        title = lines[start]
        start += 1

    rows = [clean_option(l) for l in lines[start:]]

    return Question(
        label=label,
        secondary_label=secondary,
        title=title,
        type=guess_question_type(block),
        rows=rows,
    )


def extract_questions_locally(text, questions):
    if not text or not text.strip():
        raise EmptyInputError("Paste or upload a document first.")
    blocks = split_blocks(text)
    if not blocks:
        raise EmptyInputError("No blocks detected by heuristic.")

    added = 0
    for block in blocks:
        questions.append(heuristic_parse_block(block))
        added += 1
    logger.info("Local extraction added %d question(s) from %d block(s)", added, len(blocks))
    return added
