"""
Document rendering for tests.

``build_test_html`` lays a test out as one linear HTML document:

    header -> instructions -> numbered questions -> answer key

each block switched by ``PDFOptions``. ``render_test_pdf`` flows that HTML
onto A4 pages with PyMuPDF's Story API. The HTML builder is a pure function;
nothing in the output depends on the clock.
"""
import io
import logging
from html import escape
from string import ascii_uppercase
from typing import List, Optional

import fitz  # PyMuPDF

from paperbank.core.config import settings
from paperbank.core.errors import RenderingError
from paperbank.models.orm import QuestionType
from paperbank.models.schemas import PDFOptions, QuestionSnapshot, TestOut

logger = logging.getLogger(__name__)

INSTRUCTIONS = [
    "All questions are compulsory.",
    "Write your answers clearly and legibly.",
    "Do not use calculators or mobile phones during the test.",
]
MARKS_INSTRUCTION = "Marks are indicated against each question."

STYLES = """
body { font-family: sans-serif; font-size: 11pt; line-height: 1.4; color: #333; }
.header { text-align: center; margin-bottom: 14pt; border-bottom: 1px solid #999; }
.header h1 { font-size: 16pt; margin: 4pt 0; }
.header h2 { font-size: 14pt; margin: 4pt 0; }
.meta { font-size: 10pt; margin-bottom: 8pt; }
.instructions { margin-bottom: 14pt; background-color: #f5f5f5; }
.instructions h3 { font-size: 12pt; margin: 2pt 0; }
.question { margin-bottom: 12pt; }
.question-number { font-weight: bold; }
.question-marks { font-style: italic; }
.option { margin-left: 14pt; }
.answer-line { border-bottom: 1px solid #bbb; margin: 0; }
.answer-key { margin-top: 16pt; border-top: 1px solid #999; }
.answer-key h3 { font-size: 12pt; }
.explanation { font-style: italic; margin: 0 0 6pt 0; }
"""


def option_letter(index: int) -> str:
    """A, B, C ... Z, AA, AB ... purely from position."""
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = ascii_uppercase[rem] + letters
    return letters


def answer_index(question: QuestionSnapshot) -> Optional[int]:
    """Position of the stored answer within the options, or None."""
    if question.type != QuestionType.MCQ or not question.options or question.answer is None:
        return None
    try:
        return question.options.index(question.answer)
    except ValueError:
        return None


def answer_text(question: QuestionSnapshot) -> str:
    index = answer_index(question)
    if index is not None:
        return f"Option {option_letter(index)}: {question.answer}"
    return question.answer or "N/A"


def marks_label(marks: int) -> str:
    return f"({marks} mark)" if marks == 1 else f"({marks} marks)"


def _header_block(test: TestOut, teacher_name: str, institution_name: str) -> List[str]:
    meta = [f"<p>Subject: {escape(test.subject)}</p>"]
    if test.chapter:
        meta.append(f"<p>Chapter: {escape(test.chapter)}</p>")
    if test.duration:
        meta.append(f"<p>Duration: {test.duration} minutes</p>")
    if test.total_marks:
        meta.append(f"<p>Total Marks: {test.total_marks}</p>")
    meta.append(f"<p>Teacher: {escape(teacher_name)}</p>")
    return [
        '<div class="header">',
        f"<h1>{escape(institution_name or settings.DEFAULT_INSTITUTION_NAME)}</h1>",
        f"<h2>{escape(test.title)}</h2>",
        '<div class="meta">', *meta, "</div>",
        "</div>",
    ]


def _instructions_block(show_marks: bool) -> List[str]:
    items = INSTRUCTIONS[:2] + ([MARKS_INSTRUCTION] if show_marks else []) + INSTRUCTIONS[2:]
    return [
        '<div class="instructions">',
        "<h3>Instructions:</h3>",
        "<ul>", *[f"<li>{item}</li>" for item in items], "</ul>",
        "</div>",
    ]


def _question_body(question: QuestionSnapshot) -> List[str]:
    if question.type == QuestionType.MCQ and question.options:
        return [
            '<div class="options">',
            *[
                f'<p class="option">{option_letter(i)}) {escape(option)}</p>'
                for i, option in enumerate(question.options)
            ],
            "</div>",
        ]
    lines = (
        settings.PDF_SHORT_ANSWER_LINES
        if question.type == QuestionType.SHORT_ANSWER
        else settings.PDF_LONG_ANSWER_LINES
    )
    return ['<div class="answer-space">', *['<p class="answer-line">&#160;</p>'] * lines, "</div>"]


def _question_block(number: int, question: QuestionSnapshot, show_marks: bool) -> List[str]:
    heading = f'<span class="question-number">Q{number}.</span>'
    if show_marks:
        heading += f' <span class="question-marks">{marks_label(question.marks)}</span>'
    return [
        '<div class="question">',
        f'<p class="question-header">{heading}</p>',
        f'<p class="question-text">{escape(question.question_text)}</p>',
        *_question_body(question),
        "</div>",
    ]


def _answer_key_block(questions: List[QuestionSnapshot]) -> List[str]:
    parts = ['<div class="answer-key">', "<h3>Answer Key:</h3>", "<ol>"]
    for question in questions:
        entry = f'<li class="answer">{escape(answer_text(question))}'
        if question.explanation:
            entry += f'<p class="explanation">Explanation: {escape(question.explanation)}</p>'
        parts.append(entry + "</li>")
    parts += ["</ol>", "</div>"]
    return parts


def build_test_html(test: TestOut, options: PDFOptions, teacher_name: str = "",
                    institution_name: str = "") -> str:
    parts: List[str] = ['<div class="container">']
    if options.include_header:
        parts += _header_block(test, teacher_name, institution_name)
    if options.include_instructions:
        parts += _instructions_block(options.show_marks)
    if test.questions_list:
        parts.append('<div class="questions">')
        for number, question in enumerate(test.questions_list, start=1):
            parts += _question_block(number, question, options.show_marks)
        parts.append("</div>")
    if options.include_answers:
        parts += _answer_key_block(test.questions_list)
    parts.append("</div>")
    return "\n".join(parts)


def html_to_pdf(html: str, title: str = "") -> bytes:
    """Flow HTML across as many pages as it needs and return the PDF bytes."""
    mediabox = fitz.paper_rect(settings.PDF_PAPER_SIZE)
    margin = settings.PDF_MARGIN
    where = mediabox + (margin, margin, -margin, -margin)
    try:
        story = fitz.Story(html=html, user_css=STYLES)
        buffer = io.BytesIO()
        writer = fitz.DocumentWriter(buffer)
        more = True
        while more:
            device = writer.begin_page(mediabox)
            more, _ = story.place(where)
            story.draw(device)
            writer.end_page()
        writer.close()
    except Exception as e:
        logger.error(f"PDF engine failed for '{title}': {e}", exc_info=True)
        raise RenderingError("Failed to render document") from e
    return buffer.getvalue()


def render_test_pdf(test: TestOut, options: PDFOptions, teacher_name: str = "",
                    institution_name: str = "") -> bytes:
    html = build_test_html(test, options, teacher_name, institution_name)
    pdf = html_to_pdf(html, title=test.title)
    logger.info(f"Rendered test {test.id} to PDF ({len(pdf)} bytes, {len(test.questions_list)} questions)")
    return pdf
