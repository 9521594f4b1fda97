"""Tests for the section forest: ordering, nesting and filename rules."""

import pytest

from epubforge import FilenameAlreadyUsedError, FragmentInvalidError, ParentDoesNotExistError
from epubforge.sections import SectionTree


def test_sections_keep_insertion_order(doc):
    names = [doc.add_section(f"<p>{i}</p>", f"Chapter {i}") for i in range(1, 4)]
    assert names == ["section0001.xhtml", "section0002.xhtml", "section0003.xhtml"]
    assert [s.filename for s in doc.sections] == names


def test_subsection_is_appended_as_last_child(doc):
    roots = [doc.add_section(f"<p>{i}</p>", f"Chapter {i}") for i in range(1, 5)]
    first_child = doc.add_subsection(roots[1], "<p>2.1</p>", "2.1")
    second_child = doc.add_subsection(roots[1], "<p>2.2</p>", "2.2")

    assert [s.filename for s in doc.sections] == roots
    parent = doc.sections[1]
    assert [c.filename for c in parent.children] == [first_child, second_child]
    assert all(not s.children for i, s in enumerate(doc.sections) if i != 1)


def test_missing_parent_is_rejected_at_any_depth(doc):
    root = doc.add_section("<p>root</p>", "Root")
    child = doc.add_subsection(root, "<p>child</p>", "Child")
    doc.add_subsection(child, "<p>grandchild</p>", "Grandchild")

    with pytest.raises(ParentDoesNotExistError) as excinfo:
        doc.add_subsection("nope.xhtml", "<p>orphan</p>", "Orphan")
    assert excinfo.value.filename == "nope.xhtml"


def test_subsection_under_nested_parent(doc):
    root = doc.add_section("<p>root</p>", "Root")
    child = doc.add_subsection(root, "<p>child</p>", "Child")
    grandchild = doc.add_subsection(child, "<p>grandchild</p>", "Grandchild")

    assert doc.find_section(grandchild) is doc.sections[0].children[0].children[0]


def test_filenames_are_unique_across_the_forest(doc):
    root = doc.add_section("<p>root</p>", "Root", filename="intro")
    assert root == "intro.xhtml"
    doc.add_subsection(root, "<p>child</p>", "Child", filename="nested.xhtml")

    with pytest.raises(FilenameAlreadyUsedError):
        doc.add_section("<p>again</p>", "Again", filename="nested.xhtml")
    with pytest.raises(FilenameAlreadyUsedError):
        doc.add_subsection(root, "<p>again</p>", "Again", filename="intro")


def test_generated_names_skip_names_in_use(doc):
    doc.add_section("<p>a</p>", "A", filename="section0001.xhtml")
    doc.add_subsection("section0001.xhtml", "<p>b</p>", "B", filename="section0002")
    assert doc.add_section("<p>c</p>", "C") == "section0003.xhtml"


def test_extension_is_appended_when_missing():
    tree = SectionTree()
    assert tree.add("<p/>", filename="notes.html") == "notes.html.xhtml"
    assert tree.add("<p/>", filename="plain") == "plain.xhtml"


def test_depth_first_ordinals():
    tree = SectionTree()
    a = tree.add("<p/>", "A")
    b = tree.add("<p/>", "B")
    a1 = tree.add("<p/>", "A1", parent_filename=a)
    a1x = tree.add("<p/>", "A1x", parent_filename=a1)
    a2 = tree.add("<p/>", "A2", parent_filename=a)

    assert tree.filenames() == {a: 1, a1: 2, a1x: 3, a2: 4, b: 5}
    assert tree.locate(a1x) == (0, 0, 0)
    assert tree.locate(b) == (1,)
    assert tree.locate("missing.xhtml") is None


def test_invalid_body_is_rejected_and_nothing_is_added(doc):
    with pytest.raises(FragmentInvalidError):
        doc.add_section("<p>unclosed", "Broken")
    assert doc.sections == []


def test_section_carries_title_css_and_properties(doc, fetcher):
    fetcher.add("book.css")
    css = doc.add_css("book.css")
    name = doc.add_section('<svg xmlns="http://www.w3.org/2000/svg"/>', "Drawing", css_path=css)

    section = doc.find_section(name)
    assert section.title == "Drawing"
    assert section.xhtml.css_path == "../css/book.css"
    assert section.properties == "svg"
    assert b'href="../css/book.css"' in section.xhtml.to_string()


def test_untitled_section_has_empty_title(doc):
    name = doc.add_section("<p>hidden from the toc</p>")
    assert doc.find_section(name).title == ""


def test_body_round_trips(doc):
    name = doc.add_section('<h1>Title</h1><p class="x">Text &amp; more</p>', "T")
    assert doc.find_section(name).body == '<h1>Title</h1><p class="x">Text &amp; more</p>'


def test_concurrent_adds_get_distinct_names(doc):
    from concurrent.futures import ThreadPoolExecutor

    with ThreadPoolExecutor(max_workers=8) as pool:
        names = list(pool.map(lambda i: doc.add_section(f"<p>{i}</p>", str(i)), range(40)))

    assert len(set(names)) == 40
    assert len(doc.sections) == 40
