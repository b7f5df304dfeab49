import asyncio
import re

import streamlit as st

import survey_config
from survey_ai import extract_questions
from survey_docx import docx_to_text
from survey_extract import EmptyInputError, extract_questions_locally
from survey_model import QUESTION_TYPES, QuestionList
from surveytoXML import ExportNotReadyError, export_survey_xml, generate_survey_xml

st.set_page_config(page_title="Survey XML Generator", layout="wide")
st.title("📄 Survey Questionnaire to XML")

survey_config.configure_logging()

# === CODE BLOCK: Session state ===
if "questions" not in st.session_state:
    st.session_state.questions = QuestionList()
    st.session_state.editing = None
    st.session_state.xml_output = ""
    st.session_state.paste_text = ""
    st.session_state.loaded_upload = None

questions = st.session_state.questions


def refresh_list():
    st.session_state.xml_output = ""
    st.rerun()


# === CODE BLOCK: Input ===
uploaded_file = st.file_uploader("Upload your .docx questionnaire file", type="docx")
if uploaded_file and st.session_state.loaded_upload != uploaded_file.file_id:
    st.session_state.paste_text = docx_to_text(uploaded_file)
    st.session_state.loaded_upload = uploaded_file.file_id
    st.info("DOCX extracted to paste area. Use AI Extract or Local Extract to parse blocks.")

st.text_area("Questionnaire text", key="paste_text", height=260)
api_key = st.text_input("OpenAI API key (optional)", value=survey_config.get_api_key(), type="password")

ai_col, local_col = st.columns(2)
if ai_col.button("AI Extract"):
    try:
        with st.spinner("Extracting..."):
            added = asyncio.run(extract_questions(st.session_state.paste_text, api_key, questions))
        st.success(f"Extraction finished. Added {added} question(s). Review and edit before generating XML.")
        st.session_state.xml_output = ""
    except EmptyInputError as e:
        st.warning(str(e))

if local_col.button("Local Extract"):
    try:
        added = extract_questions_locally(st.session_state.paste_text, questions)
        st.success(f"Local extraction added {added} question(s). Edit to refine.")
        st.session_state.xml_output = ""
    except EmptyInputError as e:
        st.warning(str(e))

# === CODE BLOCK: Question list ===
st.subheader("Questions")
if len(questions) == 0:
    st.caption("No questions yet. Paste or upload, then extract or add one.")

for idx, q in enumerate(questions):
    label_col, title_col, edit_col, up_col, down_col, del_col = st.columns([1, 6, 1, 1, 1, 1])
    label_col.markdown(f"**{q.label or '(no label)'}**")
    title_col.write(re.sub(r'<[^>]+>', '', q.title or '')[:110])
    if edit_col.button("Edit", key=f"edit_{q.id}"):
        st.session_state.editing = q.id
        st.rerun()
    if up_col.button("↑", key=f"up_{q.id}", help="Move up") and questions.move_up(idx):
        refresh_list()
    if down_col.button("↓", key=f"down_{q.id}", help="Move down") and questions.move_down(idx):
        refresh_list()
    if del_col.button("Delete", key=f"del_{q.id}"):
        questions.delete(q.id)
        if st.session_state.editing == q.id:
            st.session_state.editing = None
        refresh_list()

if st.button("Add question"):
    st.session_state.editing = questions.add_blank().id
    refresh_list()

# === CODE BLOCK: Editor ===
if st.session_state.editing:
    q = questions.get(st.session_state.editing)
    with st.form(f"editor_{q.id}"):
        st.markdown("**Edit question**")
        left, right = st.columns(2)
        label = left.text_input("Label", value=q.label)
        secondary = left.text_input("Secondary label (optional)", value=q.secondary_label)
        title = left.text_area("Title (HTML allowed)", value=q.title)
        comment = left.text_input("Comment (optional)", value=q.comment)
        type_index = QUESTION_TYPES.index(q.type) if q.type in QUESTION_TYPES else 0
        q_type = right.selectbox("Type", QUESTION_TYPES, index=type_index)
        rows = right.text_area("Rows (one per line)", value="\n".join(q.rows))
        cols = right.text_area("Columns (one per line)", value="\n".join(q.cols))
        save_col, cancel_col = st.columns(2)
        saved = save_col.form_submit_button("Save")
        cancelled = cancel_col.form_submit_button("Cancel")

    if saved:
        questions.edit(
            q.id,
            label=label,
            secondary_label=secondary,
            title=title,
            comment=comment,
            type=q_type,
            rows=rows,
            cols=cols,
        )
        st.session_state.editing = None
        refresh_list()
    if cancelled:
        st.session_state.editing = None
        st.rerun()

# === CODE BLOCK: XML output ===
st.subheader("Generated XML Output")
if st.button("Generate XML"):
    xml = generate_survey_xml(questions)
    if xml is None:
        st.warning("No questions to generate. Add or extract some first.")
    st.session_state.xml_output = xml or ""

file_name = st.text_input("Output file name", value=survey_config.DEFAULT_OUTPUT)
try:
    payload = export_survey_xml(st.session_state.xml_output)
    st.code(st.session_state.xml_output, language="xml")
    st.download_button("📅 Download XML Output", payload, file_name=file_name.strip() or "survey.xml", mime="text/xml")
except ExportNotReadyError as e:
    st.caption(str(e))
