import random
import re
import xml.etree.ElementTree as ET

import pytest

from survey_extract import heuristic_parse_block
from survey_model import Question, QuestionList
from surveytoXML import (
    ExportNotReadyError,
    assign_missing_labels,
    build_question_xml,
    build_survey_xml,
    escape_xml,
    export_survey_xml,
    generate_survey_xml,
    is_open_ended,
    main,
    write_survey_xml,
)

EXPECTED_RADIO = """<survey name="Survey" alt="" autosave="0">

<radio
  label="S3">
  <title>Are you satisfied?</title>
  <row label="r1">Yes</row>
  <row label="r2">No</row>
  <row label="r3" open="1">Other, specify</row>
</radio>
<suspend/>

</survey>"""


def survey(*questions):
    return QuestionList(list(questions))


def test_extracted_question_round_trip():
    q = heuristic_parse_block("S3. Are you satisfied?\nYes\nNo\nOther, specify")

    assert build_survey_xml(survey(q)) == EXPECTED_RADIO


class TestOpenEnded:
    @pytest.mark.parametrize("text", ["Other", "Please specify", "OTHER (SPECIFY)", "Something other than that"])
    def test_flagged(self, text):
        assert is_open_ended(text)

    @pytest.mark.parametrize("text", ["Otherwise unsure", "Others", "Another brand", "Specifying later", ""])
    def test_not_flagged(self, text):
        assert not is_open_ended(text)


def test_row_and_column_labels_are_positional():
    q = Question(label="G1", type="checkbox", rows=["Same", "Same", "Same"], cols=["X", "X"])

    xml = build_question_xml(q)

    assert re.findall(r'<row label="(r\d+)"', xml) == ["r1", "r2", "r3"]
    assert re.findall(r'<col label="(c\d+)"', xml) == ["c1", "c2"]


def test_each_type_shape():
    questions = survey(
        Question(label="R1", type="radio", title="Pick", rows=["A"]),
        Question(label="C1", type="checkbox", title="Pick", rows=["A", "Other"], cols=["Col"]),
        Question(label="D1", type="select", title="Pick", rows=["A", "Other"]),
        Question(label="N1", type="number", title="How many"),
        Question(label="T1", type="text", title="Name"),
        Question(label="TA1", type="textarea", title="Why"),
        Question(label="RT1", type="rating", title="Rate", rows=["Good", "Other"]),
        Question(label="", type="pipe", title="Tom & Jerry"),
        Question(label="U1", type="mystery", title="Unknown", rows=["A"]),
    )
    root = ET.fromstring(build_survey_xml(questions))

    assert root.tag == "survey"
    assert root.attrib == {"name": "Survey", "alt": "", "autosave": "0"}
    tags = [child.tag for child in root]
    assert tags == [
        "radio", "suspend", "checkbox", "suspend", "select", "suspend", "number", "suspend",
        "text", "suspend", "textarea", "suspend", "radio", "suspend", "pipe", "radio", "suspend",
    ]

    checkbox = root[2]
    assert checkbox.get("atleast") == "1"
    assert [r.get("open") for r in checkbox.findall("row")] == [None, "1"]
    assert [c.get("label") for c in checkbox.findall("col")] == ["c1"]

    select = root[4]
    assert select.get("optional") == "0"
    assert [c.get("label") for c in select.findall("choice")] == ["ch1", "ch2"]
    assert all(c.get("open") is None for c in select.findall("choice"))
    assert select.find("row") is None

    assert root[6].attrib == {"label": "N1", "size": "3", "optional": "0"}
    assert root[8].attrib == {"label": "T1", "size": "40", "optional": "0"}
    assert root[10].attrib == {"label": "TA1", "optional": "0"}
    assert root[10].find("comment").text == "Please be as specific as possible"

    rating = root[12]
    assert rating.attrib == {"label": "RT1", "type": "rating"}
    assert rating.findall("row")[1].get("open") == "1"

    pipe = root[14]
    assert pipe.attrib == {"label": "", "capture": ""}
    assert pipe.text.strip() == "Tom & Jerry"
    assert list(pipe) == []

    assert root[15].get("label") == "U1"


def test_atm1d_radio():
    q = Question(label="G2", type="radio-atm1d", title="Rate", rows=["Speed"], cols=["Good", "Bad"])

    xml = build_question_xml(q)

    assert xml.startswith('<radio\n  label="G2"\n  atm1d:showInput="0"\n  uses="atm1d.10">\n')
    assert '<col label="c2">Bad</col>' in xml
    assert xml.endswith("</radio>\n<suspend/>")


def test_pipe_has_no_sentinel():
    xml = build_question_xml(Question(label="P1", type="pipe", title="a < b"))

    assert xml == '<pipe\n  label=""\n  capture="">\n  a &lt; b\n</pipe>'


def test_special_characters_are_escaped_and_recoverable():
    nasty = """Tom & Jerry <"fans"> 'club'"""
    q = Question(label="A&B", type="radio", title="Pick", rows=[nasty], cols=[nasty])

    xml = build_survey_xml(survey(q))

    assert "&amp;" in xml and "&lt;" in xml and "&gt;" in xml
    assert "&quot;" in xml and "&apos;" in xml
    radio = ET.fromstring(xml).find("radio")
    assert radio.get("label") == "A&B"
    assert radio.find("row").text == nasty
    assert radio.find("col").text == nasty


def test_escape_xml():
    assert escape_xml("""&<>"'""") == "&amp;&lt;&gt;&quot;&apos;"
    assert escape_xml(None) == ""


def test_title_markup_is_kept():
    xml = build_question_xml(Question(label="S1", title="Pick <b>one</b>", rows=["A"]))

    assert "<title>Pick <b>one</b></title>" in xml


def test_empty_collection_is_a_noop():
    assert build_survey_xml(QuestionList()) is None
    assert generate_survey_xml(QuestionList()) is None


def test_output_is_deterministic():
    questions = survey(Question(label="S1", rows=["A", "Other"]), Question(label="S2", type="text"))

    assert build_survey_xml(questions) == build_survey_xml(questions)


def test_missing_labels_get_synthetic_ones():
    questions = survey(Question(label=""), Question(label="S2"), Question(label=""))

    assign_missing_labels(questions, rng=random.Random(7))

    assert re.fullmatch(r"Q\d{4}", questions[0].label)
    assert re.fullmatch(r"Q\d{4}", questions[2].label)
    assert questions[1].label == "S2"
    assert 1000 <= int(questions[0].label[1:]) <= 9999


def test_generate_fills_labels_before_building():
    questions = survey(Question(label="", rows=["A"]))

    xml = generate_survey_xml(questions)

    assert f'label="{questions[0].label}"' in xml
    assert questions[0].label.startswith("Q")


class TestExport:
    def test_not_ready(self, tmp_path):
        out = tmp_path / "survey.xml"

        with pytest.raises(ExportNotReadyError):
            export_survey_xml("")
        with pytest.raises(ExportNotReadyError):
            write_survey_xml(None, out)
        assert not out.exists()

    def test_write(self, tmp_path):
        out = tmp_path / "survey.xml"

        write_survey_xml(EXPECTED_RADIO, out)

        assert out.read_text(encoding="utf-8") == EXPECTED_RADIO


class TestMain:
    def test_local_extraction_from_text_file(self, tmp_path):
        source = tmp_path / "survey.txt"
        source.write_text("S3. Are you satisfied?\n1) Yes\n2) No\n3) Other, specify\n", encoding="utf-8")
        out = tmp_path / "out.xml"

        assert main([str(source), "-o", str(out)]) == 0
        assert out.read_text(encoding="utf-8") == EXPECTED_RADIO

    def test_ai_mode_without_key_uses_heuristic(self, tmp_path, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        source = tmp_path / "survey.txt"
        source.write_text("S3. Are you satisfied?\nYes\nNo\nOther, specify\n", encoding="utf-8")
        out = tmp_path / "out.xml"

        assert main([str(source), "-o", str(out), "--ai"]) == 0
        assert out.read_text(encoding="utf-8") == EXPECTED_RADIO

    def test_empty_input(self, tmp_path, capsys):
        source = tmp_path / "empty.txt"
        source.write_text("\n\n", encoding="utf-8")
        out = tmp_path / "out.xml"

        assert main([str(source), "-o", str(out)]) == 1
        assert not out.exists()
        assert "Error" in capsys.readouterr().err

    def test_missing_input_file(self, tmp_path, capsys):
        out = tmp_path / "out.xml"

        assert main([str(tmp_path / "nope.txt"), "-o", str(out)]) == 1
        assert not out.exists()
        assert "Error: cannot read" in capsys.readouterr().err
