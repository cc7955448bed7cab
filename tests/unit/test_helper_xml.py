"""Tests for the XML-to-dict decoding of CCC payloads."""

import pytest

from shared.helper.HelperXml import as_list, declared_encoding, find_path, first_node, first_text, parse_xml
from shared.helper.errors import ParseError


class TestParseXml:
    def test_single_child_is_a_scalar(self):
        assert parse_xml(b"<Rq><Id>1</Id></Rq>") == {"Rq": {"Id": "1"}}

    def test_repeated_children_become_a_list(self):
        assert parse_xml("<Rq><Id>1</Id><Id>2</Id></Rq>") == {"Rq": {"Id": ["1", "2"]}}

    def test_attributes_and_text(self):
        assert parse_xml('<Rq a="x">text</Rq>') == {"Rq": {"$": {"a": "x"}, "_": "text"}}

    def test_empty_element(self):
        assert parse_xml("<A/>") == {"A": ""}

    def test_namespaces_are_stripped(self):
        parsed = parse_xml('<ns:Rq xmlns:ns="urn:ccc"><ns:Id>7</ns:Id></ns:Rq>')
        assert parsed == {"Rq": {"Id": "7"}}

    def test_malformed_document_raises_parse_error(self):
        with pytest.raises(ParseError):
            parse_xml(b"<Rq><Id>1</Rq>")

    def test_empty_body_raises_parse_error(self):
        with pytest.raises(ParseError):
            parse_xml(b"")


class TestNodeAccessors:
    def test_as_list(self):
        assert as_list(None) == []
        assert as_list("a") == ["a"]
        assert as_list(["a", "b"]) == ["a", "b"]

    def test_first_node(self):
        assert first_node(["a", "b"]) == "a"
        assert first_node({"k": "v"}) == {"k": "v"}
        assert first_node([]) is None

    def test_first_text_reads_attribute_elements(self):
        assert first_text({"$": {"type": "x"}, "_": "EST-9"}) == "EST-9"

    def test_first_text_empty_is_none(self):
        assert first_text("") is None
        assert first_text(None) is None
        assert first_text({"Child": "x"}) is None

    def test_find_path_walks_scalars_and_sequences(self):
        root = parse_xml(
            b"<Rq><DocumentInfo><DocumentID>EST-1</DocumentID></DocumentInfo>"
            b"<DocumentInfo><DocumentID>EST-2</DocumentID></DocumentInfo></Rq>"
        )["Rq"]
        assert first_text(find_path(root, "DocumentInfo", "DocumentID")) == "EST-1"

    def test_find_path_missing_key(self):
        root = parse_xml(b"<Rq><Other>1</Other></Rq>")["Rq"]
        assert find_path(root, "DocumentInfo", "DocumentID") is None
        assert find_path("leaf", "DocumentInfo") is None


class TestDeclaredEncoding:
    def test_reads_the_declaration(self):
        assert declared_encoding(b'<?xml version="1.0" encoding="ISO-8859-1"?><Rq/>') == "ISO-8859-1"
        assert declared_encoding(b"<?xml version='1.0' encoding='utf-8'?>\n<Rq/>") == "utf-8"

    def test_no_declaration(self):
        assert declared_encoding(b"<Rq/>") is None
        assert declared_encoding(b'<?xml version="1.0"?><Rq/>') is None
