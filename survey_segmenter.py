import re

LABEL_TOKEN_RE = re.compile(r'^[A-Za-z]{1,5}[0-9]{0,4}[A-Za-z]?\.?$')
PARAGRAPH_BREAK_RE = re.compile(r'\n\s*\n')


def is_label_token(token):
    # e.g. S1. or A10 or QAGEb
    return bool(LABEL_TOKEN_RE.match(token.strip()))


def split_blocks(text):
    blocks = []
    current = []

    def flush():
        if current:
            blocks.append("\n".join(current).strip())
            current.clear()

    for line in text.replace("\r", "").split("\n"):
        stripped = line.strip()
        if not stripped:
            flush()
            continue
        if is_label_token(stripped.split()[0]):
            flush()
        current.append(line)

    flush()
    return blocks


def split_paragraph_blocks(text):
    # Coarser than split_blocks: the model copes with several questions per block
    blocks = PARAGRAPH_BREAK_RE.split(text.replace("\r", ""))
    return [b.strip() for b in blocks if b.strip()]
