"""Unit tests for SelectorSynthesizer (parsed HTML, no browser)."""

from __future__ import annotations

from pages import list_page

from scriptrecorder.capture.dom import parse_document
from scriptrecorder.capture.selectors import SelectorSynthesizer


def resolves_to(doc, locator, element) -> bool:
    matches = doc.select(locator)
    return len(matches) == 1 and matches[0] is element


class TestSelectorSynthesizer:
    def setup_method(self):
        self.doc = list_page()
        self.synth = SelectorSynthesizer()

    # ------------------------------------------------------------------ identifiers

    def test_unique_id_returns_id_locator(self):
        button = self.doc.find("button", id="login")
        assert self.synth.synthesize(button) == "#login"

    def test_duplicate_id_is_not_used(self):
        doc = parse_document(
            '<html><body><p id="dup" class="a">1</p><p id="dup" class="b">2</p></body></html>'
        )
        second = doc.find_all("p")[1]
        locator = self.synth.synthesize(second)
        assert not locator.startswith("#")
        assert resolves_to(doc, locator, second)

    def test_special_characters_in_id_are_escaped(self):
        doc = parse_document('<html><body><div id="1st:item">x</div></body></html>')
        div = doc.find("div")
        locator = self.synth.synthesize(div)
        assert locator.startswith("#")
        assert locator != "#1st:item"
        assert resolves_to(doc, locator, div)

    def test_special_characters_in_class_are_escaped(self):
        doc = parse_document('<html><body><span class="w-1/2">x</span></body></html>')
        span = doc.find("span")
        locator = self.synth.synthesize(span)
        assert "\\/" in locator
        assert resolves_to(doc, locator, span)

    # ------------------------------------------------------------------ escalation

    def test_unique_tag_and_class(self):
        span = self.doc.find("span", class_="solo")
        assert self.synth.synthesize(span) == "span.solo"

    def test_positional_qualifier_among_siblings(self):
        second = self.doc.find_all("li")[1]
        assert self.synth.synthesize(second) == "li:nth-of-type(2)"

    def test_no_positional_qualifier_for_only_child(self):
        doc = parse_document(
            "<html><body><div><em>a</em></div><div><em>b</em></div></body></html>"
        )
        em = doc.find_all("em")[1]
        locator = self.synth.synthesize(em)
        assert locator.endswith(" > em")
        assert ":nth-of-type" not in locator.rsplit(" > ", 1)[1]
        assert resolves_to(doc, locator, em)

    def test_ancestor_qualified_path(self):
        bob = self.doc.find_all("td", class_="name")[1]
        locator = self.synth.synthesize(bob)
        assert locator == "tr:nth-of-type(2) > td.name:nth-of-type(1)"
        assert resolves_to(self.doc, locator, bob)

    def test_every_element_resolves_to_itself(self):
        for element in self.doc.find_all(True):
            locator = self.synth.synthesize(element)
            assert locator, element.name
            assert resolves_to(self.doc, locator, element), locator

    # ------------------------------------------------------------------ properties

    def test_idempotent(self):
        link = self.doc.find_all("a", class_="details")[0]
        assert self.synth.synthesize(link) == self.synth.synthesize(link)

    def test_element_equal_to_root_is_empty(self):
        table = self.doc.find("table")
        assert self.synth.synthesize(table, root=table) == ""

    def test_document_and_none_are_empty(self):
        assert self.synth.synthesize(self.doc) == ""
        assert self.synth.synthesize(None) == ""

    # ------------------------------------------------------------------ synthesize_within

    def test_within_container_anchors_on_container_locator(self):
        table = self.doc.find("table")
        bob = self.doc.find_all("td", class_="name")[1]
        locator = self.synth.synthesize_within(bob, table, "table.results")
        assert locator == "table.results tr:nth-of-type(2) > td.name:nth-of-type(1)"
        assert resolves_to(self.doc, locator, bob)

    def test_within_container_uses_child_joiner_for_direct_path(self):
        table = self.doc.find("table")
        alice = self.doc.find_all("td", class_="name")[0]
        locator = self.synth.synthesize_within(alice, table, "table.results")
        assert locator == "table.results > tbody > tr:nth-of-type(1) > td.name:nth-of-type(1)"
        assert resolves_to(self.doc, locator, alice)

    def test_within_container_ignores_row_ids(self):
        doc = parse_document(
            '<html><body><table class="t"><tr><td><a id="edit-1" class="edit">e</a></td></tr>'
            '<tr><td><a id="edit-2" class="edit">e</a></td></tr></table></body></html>'
        )
        table = doc.find("table")
        link = doc.find("a", id="edit-2")
        locator = self.synth.synthesize_within(link, table, "table.t")
        assert "#edit-2" not in locator
        assert locator.startswith("table.t")

    def test_within_container_for_container_itself(self):
        table = self.doc.find("table")
        assert self.synth.synthesize_within(table, table, "table.results") == "table.results"
