import logging
import re
import zipfile

from docx import Document
from docx.oxml.table import CT_Tbl
from docx.oxml.text.paragraph import CT_P
from docx.table import Table
from docx.text.paragraph import Paragraph

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r'<[^>]+>')
SPACE_RE = re.compile(r'\s+')


def iter_block_items(parent):
    for child in parent.element.body.iterchildren():
        if isinstance(child, CT_P):
            yield Paragraph(child, parent)
        elif isinstance(child, CT_Tbl):
            yield Table(child, parent)


def document_to_text(document):
    lines = []
    for block in iter_block_items(document):
        if isinstance(block, Paragraph):
            lines.append(block.text.strip())
        elif isinstance(block, Table):
            # one line per table row so the segmenter keeps rows together
            for row in block.rows:
                lines.append(" | ".join(c.text.strip() for c in row.cells))
            lines.append("")
    return "\n".join(lines).strip()


def strip_tags(xml):
    return SPACE_RE.sub(" ", TAG_RE.sub(" ", xml)).strip()


def raw_text_dump(data):
    try:
        with zipfile.ZipFile(data) as archive:
            xml = archive.read("word/document.xml").decode("utf-8", errors="ignore")
    except (zipfile.BadZipFile, KeyError, OSError) as e:
        logger.warning("Could not open document archive, dumping raw bytes: %s", e)
        data.seek(0)
        xml = data.read().decode("utf-8", errors="ignore")
    return strip_tags(xml)


def docx_to_text(source):
    """Return the text of a .docx as paste-ready lines.

    ``source`` is a binary file object. A document python-docx cannot read
    still produces text: tags are stripped from word/document.xml, or from
    the raw bytes when the archive itself is broken.
    """
    try:
        return document_to_text(Document(source))
    except Exception as e:
        logger.warning("DOCX parsing had issues, using raw text: %s", e)
        source.seek(0)
        return raw_text_dump(source)
