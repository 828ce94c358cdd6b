import pytest

from src.timetable.pages.locator import locate, parse_html, text_of

HTML = (
    "<html><body>"
    "<div>first</div>"
    "<div><p>a</p><span>one</span><p>b</p><span>two</span></div>"
    "</body></html>"
)


def test_locate_counts_positions_per_tag():
    doc = parse_html(HTML)
    assert text_of(locate(doc, "html/body/div[2]/span[2]")) == "two"
    assert text_of(locate(doc, "html/body/div[2]/p[2]")) == "b"


def test_bare_step_means_first_match():
    doc = parse_html(HTML)
    assert text_of(locate(doc, "html/body/div")) == "first"


def test_missing_step_returns_none():
    doc = parse_html(HTML)
    assert locate(doc, "html/body/div[3]") is None
    assert locate(doc, "html/body/div[2]/table/tr") is None


def test_locate_does_not_search_descendants():
    doc = parse_html(HTML)
    assert locate(doc, "html/body/span") is None


def test_invalid_step_is_rejected():
    doc = parse_html(HTML)
    with pytest.raises(ValueError):
        locate(doc, "html/body/div[0]")
