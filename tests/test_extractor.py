from voice_reader.extractor import extract_content, extract_text, normalize_text

LONG = "Readable paragraph about the topic at hand with enough words to count as real content. " * 3


def page(body, head="<title>Sample page</title>"):
    return f"<html><head>{head}</head><body>{body}</body></html>"


def test_main_wins_over_navigation_and_footer():
    html = page(
        "<nav>Home About Contact Blog Careers Press Links Everywhere In The Menu Bar</nav>"
        f"<main><h1>Title</h1><p>{LONG}</p></main>"
        "<footer>Copyright footer text that should never be read aloud to anyone.</footer>"
    )
    text = extract_text(html)
    assert text.startswith("Title Readable paragraph")
    assert "Copyright" not in text
    assert "Careers" not in text


def test_short_main_falls_through_to_article():
    html = page(f"<main>Too short</main><article>Short one</article><article><p>{LONG}</p></article>")
    assert extract_text(html) == normalize_text(LONG)


def test_role_main_and_role_article():
    assert extract_text(page(f"<div role='main'>{LONG}</div>")) == normalize_text(LONG)
    assert extract_text(page(f"<div role='article'>{LONG}</div>")) == normalize_text(LONG)


def test_best_content_container_is_longest():
    shorter = "Short but valid content block that is still more than one hundred characters long overall. " * 2
    html = page(
        f"<div class='post-body'>{shorter}</div>"
        f"<section><p>{LONG}</p><p>{LONG}</p></section>"
        f"<div class='sidebar'>{LONG}</div>"
    )
    assert extract_text(html) == normalize_text(LONG + " " + LONG)


def test_body_without_chrome_fallback():
    html = page(
        "<header>Site header with a logo and a tagline</header>"
        "<p>Body paragraph that is long enough to pass the fallback threshold.</p>"
        "<aside>Related links</aside>"
    )
    assert extract_text(html) == "Body paragraph that is long enough to pass the fallback threshold."


def test_tiny_page_returns_raw_body_text():
    assert extract_text(page("<nav>Menu</nav><p>Hi</p>")) == "Menu Hi"


def test_empty_document_never_fails():
    assert extract_text("") == ""
    assert extract_text("<html></html>") == ""


def test_scripts_and_styles_are_not_read():
    html = page(f"<main><script>var secret = 1;</script><style>p {{}}</style><p>{LONG}</p></main>")
    text = extract_text(html)
    assert "secret" not in text
    assert "{" not in text


def test_hidden_elements_are_not_read():
    html = page(
        "<main>"
        "<div hidden>Subscribe to our newsletter today</div>"
        "<span aria-hidden='true'>Decorative icon label</span>"
        "<span aria-hidden='false'>Visible caption</span>"
        f"<p>{LONG}</p>"
        "</main>"
    )
    text = extract_text(html)
    assert "newsletter" not in text
    assert "Decorative" not in text
    assert "Visible caption" in text
    assert "Readable paragraph" in text

def test_extraction_is_idempotent():
    html = page(f"<nav>Menu</nav><article>{LONG}</article>")
    assert extract_text(html) == extract_text(html)


def test_extract_content_uses_document_title_when_missing():
    content = extract_content(page(f"<main>{LONG}</main>"), url="https://example.org/a")
    assert content.title == "Sample page"
    assert content.metadata() == {"title": "Sample page", "url": "https://example.org/a"}

    explicit = extract_content(page(f"<main>{LONG}</main>"), title="  Given  ")
    assert explicit.title == "Given"
