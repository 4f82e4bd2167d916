import fitz
import pytest

from conftest import mcq, paper_payload, short_answer
from paperbank.core.errors import RenderingError
from paperbank.models.schemas import PDFOptions, TestOut
from paperbank.services import renderer


def paper(questions=None, **overrides):
    data = paper_payload(questions, id=1, createdByTeacherId=1, **overrides)
    data.setdefault("totalMarks", sum(q["marks"] for q in data["questionsList"]))
    return TestOut.model_validate(data)


def html_for(test, **options):
    return renderer.build_test_html(test, PDFOptions(**options), teacher_name="Ada Teacher",
                                    institution_name="Hopper High")


def test_question_paper_without_answers():
    html = html_for(paper(), include_answers=False)

    assert html.count("Physics Chapter Test") == 1
    assert html.count('class="question"') == 2
    assert '<span class="question-marks">(2 marks)</span>' in html
    assert '<span class="question-marks">(3 marks)</span>' in html
    assert "answer-key" not in html
    assert "Answer Key" not in html


def test_answer_key_matches_stored_answers():
    html = html_for(paper(), include_answers=True)

    assert html.count('<li class="answer">') == 2
    assert '<li class="answer">Option B: 4' in html
    assert '<li class="answer">Rate of change of displacement.' in html
    assert "Explanation: Basic addition." in html


def test_options_are_lettered_by_position():
    question = mcq(options=["red", "green", "blue"], answer="blue")
    html = html_for(paper([question]), include_answers=True)

    assert '<p class="option">A) red</p>' in html
    assert '<p class="option">B) green</p>' in html
    assert '<p class="option">C) blue</p>' in html
    assert "Option C: blue" in html


def test_answer_letter_round_trips_to_stored_answer():
    test = paper([mcq(options=["w", "x", "y", "z"], answer=answer) for answer in "wxyz"])
    for question in test.questions_list:
        index = renderer.answer_index(question)
        assert question.options[index] == question.answer
        assert renderer.answer_text(question).startswith(f"Option {renderer.option_letter(index)}:")


def test_mcq_without_answer_falls_back():
    test = paper([mcq(answer=None)])
    assert renderer.answer_index(test.questions_list[0]) is None
    assert renderer.answer_text(test.questions_list[0]) == "N/A"


@pytest.mark.parametrize("kind, lines", [("short_answer", 3), ("long_answer", 8)])
def test_written_questions_get_answer_space(kind, lines):
    html = html_for(paper([short_answer(type=kind)]))
    assert html.count('class="answer-line"') == lines
    assert 'class="option"' not in html


def test_marks_can_be_hidden():
    html = html_for(paper(), show_marks=False)
    assert "question-marks" not in html
    assert renderer.MARKS_INSTRUCTION not in html


def test_marks_instruction_is_third_item():
    html = html_for(paper())
    items = [line for line in html.splitlines() if line.startswith("<li>")]
    assert items[2] == f"<li>{renderer.MARKS_INSTRUCTION}</li>"
    assert len(items) == 4


def test_single_mark_is_singular():
    html = html_for(paper([mcq(marks=1)]))
    assert "(1 mark)" in html
    assert "(1 marks)" not in html


def test_header_and_instructions_can_be_switched_off():
    html = html_for(paper(), include_header=False, include_instructions=False)
    assert 'class="header"' not in html
    assert "Instructions:" not in html
    assert "Physics Chapter Test" not in html


def test_header_falls_back_to_default_institution():
    html = renderer.build_test_html(paper(), PDFOptions())
    assert "<h1>School Name</h1>" in html


def test_text_is_escaped():
    html = html_for(paper([short_answer(questionText="Is 3 < 5 & 5 > 3?")]))
    assert "Is 3 &lt; 5 &amp; 5 &gt; 3?" in html


def test_empty_test_still_renders():
    test = paper([], totalMarks=0)
    html = html_for(test, include_answers=True)
    assert 'class="question"' not in html
    assert renderer.render_test_pdf(test, PDFOptions()).startswith(b"%PDF")


def test_rendering_is_deterministic():
    test = paper()
    options = PDFOptions(include_answers=True)
    assert renderer.build_test_html(test, options) == renderer.build_test_html(test, options)


def test_pdf_contains_the_paper():
    pdf = renderer.render_test_pdf(paper(), PDFOptions(), teacher_name="Ada Teacher")

    assert pdf.startswith(b"%PDF")
    with fitz.open(stream=pdf, filetype="pdf") as doc:
        text = "".join(page.get_text() for page in doc)
    assert "Physics Chapter Test" in text
    assert "Define velocity." in text


def test_long_papers_flow_onto_more_pages():
    questions = [short_answer(type="long_answer", id=i) for i in range(30)]
    pdf = renderer.render_test_pdf(paper(questions), PDFOptions())

    with fitz.open(stream=pdf, filetype="pdf") as doc:
        assert doc.page_count > 1


def test_engine_failure_becomes_rendering_error(monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("no fonts")

    monkeypatch.setattr(renderer.fitz, "Story", broken)

    with pytest.raises(RenderingError):
        renderer.render_test_pdf(paper(), PDFOptions())


@pytest.mark.parametrize("index, letter", [(0, "A"), (25, "Z"), (26, "AA"), (51, "AZ"), (701, "ZZ"), (702, "AAA")])
def test_option_letters_continue_past_z(index, letter):
    assert renderer.option_letter(index) == letter


def test_very_long_option_lists_render():
    options = [f"choice {i}" for i in range(705)]
    html = html_for(paper([mcq(options=options, answer="choice 704")]), include_answers=True)

    assert '<p class="option">AAC) choice 704</p>' in html
    assert "Option AAC: choice 704" in html
