import argparse
import asyncio
import logging
import random
import re
import sys
from pathlib import Path

import survey_config
from survey_ai import extract_questions
from survey_docx import docx_to_text
from survey_extract import EmptyInputError, extract_questions_locally
from survey_model import QuestionList, QuestionType

logger = logging.getLogger(__name__)

SURVEY_OPEN = '<survey name="Survey" alt="" autosave="0">'
SURVEY_CLOSE = '</survey>'
SUSPEND = '<suspend/>'
TEXTAREA_COMMENT = 'Please be as specific as possible'

OPEN_ENDED_RE = re.compile(r'\b(other|specify)\b')


class ExportNotReadyError(Exception):
    pass


# Utilities
def escape_xml(text):
    if text is None:
        return ""
    return (str(text)
            .replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&apos;"))


def is_open_ended(text):
    return bool(OPEN_ENDED_RE.search((text or "").lower()))


def row_xml(text, idx):
    if is_open_ended(text):
        return f'  <row label="r{idx}" open="1">{escape_xml(text)}</row>'
    return f'  <row label="r{idx}">{escape_xml(text)}</row>'


def col_xml(text, idx):
    return f'  <col label="c{idx}">{escape_xml(text)}</col>'


def choice_xml(text, idx):
    return f'  <choice label="ch{idx}">{escape_xml(text)}</choice>'


def title_xml(q):
    # titles may carry markup and are written as-is
    return f'  <title>{q.title or ""}</title>'


# === CODE BLOCK: Per-type builders ===
def build_radio_xml(q, atm1d=False):
    label = escape_xml(q.label)
    if atm1d:
        xml_lines = ['<radio', f'  label="{label}"', '  atm1d:showInput="0"', '  uses="atm1d.10">']
    else:
        xml_lines = ['<radio', f'  label="{label}">']
    xml_lines.append(title_xml(q))
    for idx, row in enumerate(q.rows, 1):
        xml_lines.append(row_xml(row, idx))
    for idx, col in enumerate(q.cols, 1):
        xml_lines.append(col_xml(col, idx))
    xml_lines.append('</radio>')
    return xml_lines


def build_checkbox_xml(q):
    xml_lines = ['<checkbox', f'  label="{escape_xml(q.label)}"', '  atleast="1">']
    xml_lines.append(title_xml(q))
    for idx, row in enumerate(q.rows, 1):
        xml_lines.append(row_xml(row, idx))
    for idx, col in enumerate(q.cols, 1):
        xml_lines.append(col_xml(col, idx))
    xml_lines.append('</checkbox>')
    return xml_lines


def build_select_xml(q):
    xml_lines = ['<select', f'  label="{escape_xml(q.label)}" optional="0">']
    xml_lines.append(title_xml(q))
    for idx, choice in enumerate(q.rows, 1):
        xml_lines.append(choice_xml(choice, idx))
    xml_lines.append('</select>')
    return xml_lines


def build_number_xml(q):
    return [
        '<number',
        f'  label="{escape_xml(q.label)}"',
        '  size="3"',
        '  optional="0">',
        title_xml(q),
        '</number>',
    ]


def build_text_xml(q):
    return [
        '<text',
        f'  label="{escape_xml(q.label)}"',
        '  size="40"',
        '  optional="0">',
        title_xml(q),
        '</text>',
    ]


def build_textarea_xml(q):
    return [
        '<textarea',
        f'  label="{escape_xml(q.label)}"',
        '  optional="0">',
        title_xml(q),
        f'  <comment>{TEXTAREA_COMMENT}</comment>',
        '</textarea>',
    ]


def build_rating_xml(q):
    xml_lines = ['<radio', f'  label="{escape_xml(q.label)}"', '  type="rating">']
    xml_lines.append(title_xml(q))
    for idx, row in enumerate(q.rows, 1):
        xml_lines.append(row_xml(row, idx))
    xml_lines.append('</radio>')
    return xml_lines


def build_pipe_xml(q):
    return ['<pipe', '  label=""', '  capture="">', f'  {escape_xml(q.title)}', '</pipe>']


BUILDERS = {
    QuestionType.RADIO.value: build_radio_xml,
    QuestionType.RADIO_ATM1D.value: lambda q: build_radio_xml(q, atm1d=True),
    QuestionType.CHECKBOX.value: build_checkbox_xml,
    QuestionType.SELECT.value: build_select_xml,
    QuestionType.NUMBER.value: build_number_xml,
    QuestionType.TEXT.value: build_text_xml,
    QuestionType.TEXTAREA.value: build_textarea_xml,
    QuestionType.RATING.value: build_rating_xml,
    QuestionType.PIPE.value: build_pipe_xml,
}


def build_question_xml(q):
    builder = BUILDERS.get(q.type, build_radio_xml)
    xml_lines = builder(q)
    if q.type != QuestionType.PIPE.value:
        xml_lines.append(SUSPEND)
    return "\n".join(xml_lines)


# === CODE BLOCK: Document ===
def assign_missing_labels(questions, rng=random):
    for q in questions:
        if not q.label:
            # no collision check against existing labels
            q.label = f"Q{rng.randint(1000, 9999)}"
            logger.debug("Assigned synthetic label %s to question %s", q.label, q.id)


def build_survey_xml(questions):
    if len(questions) == 0:
        return None
    xml_blocks = [SURVEY_OPEN, ""]
    for q in questions:
        xml_blocks.append(build_question_xml(q))
        xml_blocks.append("")
    xml_blocks.append(SURVEY_CLOSE)
    return "\n".join(xml_blocks)


def generate_survey_xml(questions):
    assign_missing_labels(questions)
    return build_survey_xml(questions)


def export_survey_xml(xml):
    if not xml:
        raise ExportNotReadyError("Generate XML first.")
    return xml.encode("utf-8")


def write_survey_xml(xml, output_path):
    payload = export_survey_xml(xml)
    with open(output_path, "wb") as f:
        f.write(payload)
    logger.info("Wrote %s", output_path)


# === CODE BLOCK: Command line ===
def read_source_text(path):
    path = Path(path)
    if path.suffix.lower() == ".docx":
        with open(path, "rb") as f:
            return docx_to_text(f)
    return path.read_text(encoding="utf-8", errors="replace")


def build_parser():
    parser = argparse.ArgumentParser(description="Convert a survey questionnaire into Decipher survey XML.")
    parser.add_argument("input", help="questionnaire as .docx or plain text")
    parser.add_argument("-o", "--output", default=survey_config.DEFAULT_OUTPUT, help="XML file to write")
    parser.add_argument("--ai", action="store_true", help="extract questions with the OpenAI model")
    parser.add_argument("--api-key", default=None, help="OpenAI API key (defaults to OPENAI_API_KEY)")
    parser.add_argument("--log-level", default=None, help="logging level, e.g. DEBUG")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    survey_config.configure_logging(args.log_level)

    try:
        text = read_source_text(args.input)
    except OSError as e:
        print(f"Error: cannot read {args.input}: {e}", file=sys.stderr)
        return 1
    questions = QuestionList()
    try:
        if args.ai:
            api_key = args.api_key if args.api_key is not None else survey_config.get_api_key()
            added = asyncio.run(extract_questions(text, api_key, questions))
        else:
            added = extract_questions_locally(text, questions)
    except EmptyInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Added {added} question(s).")

    try:
        write_survey_xml(generate_survey_xml(questions), args.output)
    except ExportNotReadyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"XML written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
