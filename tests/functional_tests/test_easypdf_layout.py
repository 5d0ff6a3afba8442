"""
Functional Test for the EasyPDF layout engine

Drives EasyPDF against the recording FakeRenderer (see conftest.py) to
verify cursor movement, wrapping and pagination:
1. Inline text continues on the current line
2. Paragraphs start and end at the left margin
3. Overflow adds exactly one page per overflow
4. Rules, images and spaces advance the cursor by their exact height
5. Invalid options fail before anything is drawn
"""

import pytest

from easypdf import EasyPDF
from errors import DocumentClosedError, ImageDecodeError, InvalidOptionError
from utilities import Print

LINE = 8.8       # 16pt * 0.55
BASELINE = 6.4   # 16pt * 0.4


# =============================================================================
# Inline text
# =============================================================================

def test_initial_cursor(doc):
    Print("HEADER", "Testing EasyPDF layout with a fake renderer")
    assert doc.page_index == 1
    assert (doc.write_x, doc.write_y) == (10, 10)
    assert doc.client_width == 190
    assert doc.client_height == 277


def test_inline_text_continues_on_same_line(doc, fake_renderer):
    doc.add_text("Hello").add_text("World")

    texts = fake_renderer.of_kind('text')
    assert texts[0][1:4] == ("Hello", 10, pytest.approx(10 + BASELINE))
    assert texts[1][1:4] == ("World", 20, pytest.approx(10 + BASELINE))
    assert doc.write_x == 30
    assert doc.write_y == 10


def test_left_margin_narrows_first_line_and_right_margin_pads(doc, fake_renderer):
    doc.add_text("ab", left=5, right=3)

    assert fake_renderer.of_kind('text')[0][2] == 10
    assert doc.write_x == 17


def test_first_line_width_at_margin(doc, fake_renderer):
    # client_width - write_x - padding_x = 190 - 10 - 10 = 170mm, 85 characters
    doc.add_text("a" * 90)

    assert fake_renderer.texts() == ["a" * 85, "a" * 5]
    assert doc.write_x == 20


def test_inline_text_wraps_when_line_is_full(doc, fake_renderer):
    doc.add_text("a" * 80)
    assert doc.write_x == 170

    # 190 - 170 - 10 = 10mm left on the line: five characters fit, the rest wraps
    doc.add_text("b" * 10)

    assert fake_renderer.texts()[1:] == ["bbbbb", "bbbbb"]
    assert doc.write_x == 20
    assert doc.write_y == pytest.approx(10 + LINE)


def test_right_margin_past_client_width_breaks_line(doc):
    doc.add_text("a" * 85, right=15)

    assert doc.write_x == 10
    assert doc.write_y == pytest.approx(10 + LINE)


def test_right_margin_up_to_client_width_stays_inline(doc):
    doc.add_text("a" * 85, right=10)

    assert doc.write_x == 190
    assert doc.write_y == 10


def test_empty_text_still_renders_once(doc, fake_renderer):
    doc.add_text("")

    assert fake_renderer.texts() == [""]
    assert (doc.write_x, doc.write_y) == (10, 10)


def test_hard_newline_breaks_line(doc, fake_renderer):
    doc.add_text("ab\ncd")

    texts = fake_renderer.of_kind('text')
    assert [t[1] for t in texts] == ["ab", "cd"]
    assert texts[1][3] == pytest.approx(10 + LINE + BASELINE)
    assert doc.write_x == 14


def test_first_fragment_and_wrapped_lines_reconstruct_text(doc, fake_renderer):
    text = "Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod " * 6
    doc.add_text("prefix ")
    doc.add_text(text)

    assert "".join(fake_renderer.texts()[1:]) == text


def test_font_size_changes_line_height(doc):
    doc.add_article("big", font_size=20)

    assert doc.write_y == pytest.approx(10 + 20 * 0.55)
    assert doc.state.last_line_height == pytest.approx(11)


# =============================================================================
# Paragraphs
# =============================================================================

def test_article_starts_and_ends_at_margin(doc, fake_renderer):
    doc.add_text("abc")
    doc.add_article("para")

    para = fake_renderer.of_kind('text')[1]
    assert para[1:4] == ("para", 10, pytest.approx(10 + LINE + BASELINE))
    assert doc.write_x == 10
    assert doc.write_y == pytest.approx(10 + 2 * LINE)


def test_article_left_shortens_first_line(doc, fake_renderer):
    doc.add_article("x" * 100, left=6)

    texts = fake_renderer.of_kind('text')
    assert texts[0][2] == 10
    assert len(texts[0][1]) == 82
    assert len(texts[1][1]) == 18
    assert texts[1][2] == 10
    assert doc.write_x == 10


def test_long_article_wraps_to_full_lines(doc, fake_renderer):
    doc.add_article("x" * 200)

    assert [len(t) for t in fake_renderer.texts()] == [85, 95, 20]
    assert doc.write_y == pytest.approx(10 + 3 * LINE)


# =============================================================================
# Pagination
# =============================================================================

def test_31_lines_fit_on_one_page(doc, fake_renderer):
    for i in range(31):
        doc.add_article(f"line {i}")

    assert doc.page_index == 1
    assert fake_renderer.of_kind('add_page') == []


def test_32_lines_paginate_exactly_once(doc, fake_renderer):
    for i in range(32):
        doc.add_article(f"line {i}")

    assert doc.page_index == 2
    assert len(fake_renderer.of_kind('add_page')) == 1
    last = fake_renderer.of_kind('text')[-1]
    assert last[3] == pytest.approx(10 + BASELINE)
    assert last[4] == 2
    assert doc.write_y == pytest.approx(10 + LINE)


@pytest.mark.parametrize("lines, pages", [(62, 2), (63, 3), (93, 3), (94, 4)])
def test_one_page_per_overflow(doc, fake_renderer, lines, pages):
    for i in range(lines):
        doc.add_article(f"line {i}")

    assert doc.page_index == pages
    assert len(fake_renderer.of_kind('add_page')) == pages - 1
    assert ('set_page', pages) in fake_renderer.calls


def test_wrapped_lines_paginate_mid_paragraph(doc, fake_renderer):
    # First line fits at y=272, the second would end at 289.6
    doc.add_space(262)
    doc.add_article("x" * 200)

    texts = fake_renderer.of_kind('text')
    assert texts[0][4] == 1
    assert texts[0][3] == pytest.approx(272 + BASELINE)
    assert texts[1][4] == 2
    assert texts[1][3] == pytest.approx(10 + BASELINE)


# =============================================================================
# Rules, images, space
# =============================================================================

def test_add_line_defaults_advance_8_5mm(doc, fake_renderer):
    doc.add_article("title")
    y = doc.write_y

    doc.add_line()

    line = fake_renderer.of_kind('line')[0]
    assert line[1:5] == (10, pytest.approx(y + 4), 200, pytest.approx(y + 4))
    assert doc.write_y == pytest.approx(y + 8.5)
    assert doc.write_x == 10
    assert ('set_line_width', 0.5) in fake_renderer.calls


def test_add_line_after_inline_text_breaks_first(doc):
    doc.add_text("abc").add_line()

    assert doc.write_x == 10
    assert doc.write_y == pytest.approx(10 + LINE + 8.5)


def test_add_line_custom_color(doc, fake_renderer):
    doc.add_line(top=1, bottom=2, line_width=0.2, color=(255, 0, 0))

    assert ('set_draw_color', (255, 0, 0)) in fake_renderer.calls
    assert doc.write_y == pytest.approx(13.2)


def test_add_image_keeps_aspect_ratio(doc, fake_renderer):
    doc.add_image((200, 100), width=190)

    image = fake_renderer.of_kind('image')[0]
    assert image[1:5] == (10, 10, 190, pytest.approx(95))
    assert doc.write_y == pytest.approx(10 + 95)
    assert doc.write_x == 10


def test_add_image_margins_and_centering(doc, fake_renderer):
    doc.add_text("inline")
    doc.add_image((400, 200), top=2, bottom=3, width=100)

    image = fake_renderer.of_kind('image')[0]
    assert image[1] == 55
    assert image[2] == pytest.approx(10 + LINE + 2)
    assert doc.write_y == pytest.approx(10 + LINE + 2 + 50 + 3)


def test_add_image_default_width_is_content_width(doc, fake_renderer):
    doc.add_image((100, 100))

    assert fake_renderer.of_kind('image')[0][3:5] == (190, pytest.approx(190))


def test_add_image_explicit_height(doc, fake_renderer):
    doc.add_image((100, 100), width=50, height=20)

    assert fake_renderer.of_kind('image')[0][3:5] == (50, 20)
    assert doc.write_y == 30


def test_add_image_paginates(doc, fake_renderer):
    doc.add_space(200)
    doc.add_image((200, 100), width=190)

    assert doc.page_index == 2
    assert fake_renderer.of_kind('image')[0][2] == 10
    assert doc.write_y == pytest.approx(105)


def test_add_space_returns_to_margin(doc):
    doc.add_text("abc").add_space(5)

    assert doc.write_x == 10
    assert doc.write_y == pytest.approx(10 + LINE + 5)


def test_add_space_overflow_starts_new_page(doc):
    doc.add_space(270).add_space(10)

    assert doc.page_index == 2
    assert doc.write_y == 20


def test_add_page_resets_cursor(doc, fake_renderer):
    doc.add_text("abc").add_page()

    assert doc.page_index == 2
    assert (doc.write_x, doc.write_y) == (10, 10)
    assert doc.state.last_line_height == 0
    assert fake_renderer.current == 2


# =============================================================================
# Errors and lifecycle
# =============================================================================

@pytest.mark.parametrize("call", [
    lambda d: d.add_text("x", color=(1, 2)),
    lambda d: d.add_text("x", font_size=-1),
    lambda d: d.add_text("x", left=-1),
    lambda d: d.add_text(42),
    lambda d: d.add_line(top=-1),
    lambda d: d.add_line(color=(0, 0, 300)),
    lambda d: d.add_image((10, 10), height='tall'),
    lambda d: d.add_image((10, 10), width=0),
    lambda d: d.add_space(-2),
])
def test_invalid_options_fail_without_side_effects(doc, fake_renderer, call):
    doc.add_text("abc")
    state = doc.state
    calls = list(fake_renderer.calls)

    with pytest.raises(InvalidOptionError):
        call(doc)

    assert doc.state == state
    assert fake_renderer.calls == calls


@pytest.mark.parametrize("call, error", [
    (lambda d: d.add_image(b"not an image", width=50, height=20), ImageDecodeError),
    (lambda d: d.add_image((100, 50), width=50, height=20, image_format='GIF'), InvalidOptionError),
])
def test_rejected_image_adds_no_page(doc, fake_renderer, call, error):
    # 20mm no longer fits at y=280, so a drawn image would start page 2
    doc.add_space(270)
    state = doc.state
    calls = list(fake_renderer.calls)

    with pytest.raises(error):
        call(doc)

    assert doc.state == state
    assert fake_renderer.calls == calls
    assert fake_renderer.page_count == doc.page_index == 1


def test_invalid_constructor_options(fake_renderer):
    with pytest.raises(InvalidOptionError):
        EasyPDF(renderer=fake_renderer, color=(1, 2, 3, 4, 5))
    with pytest.raises(InvalidOptionError):
        EasyPDF(renderer=fake_renderer, page_padding_x=105)
    with pytest.raises(InvalidOptionError):
        EasyPDF(renderer=fake_renderer, size='a11')


def test_unknown_renderer():
    with pytest.raises(ValueError, match="Unknown renderer"):
        EasyPDF(renderer="cairo")


def test_save_closes_document(doc, fake_renderer, tmp_path):
    target = tmp_path / "out.pdf"
    assert doc.add_text("abc").save(target) is doc

    assert fake_renderer.saved_to == target
    assert doc.closed
    with pytest.raises(DocumentClosedError):
        doc.add_text("more")
    with pytest.raises(DocumentClosedError):
        doc.save(target)


def test_chaining_returns_same_instance(doc):
    result = (doc
        .add_text("a")
        .add_article("b")
        .add_line()
        .add_image((2, 1))
        .add_space(3)
        .add_page())
    assert result is doc


def test_output_does_not_close(doc):
    assert doc.output() == b'%PDF-fake'
    assert not doc.closed
