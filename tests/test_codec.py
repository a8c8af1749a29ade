"""Unit tests for the gap-encoded index format and the vsm file format."""

from pathlib import Path

import pytest

from tiersearch.codec import (
    TIER_SEPARATOR,
    decode_token,
    dumps_index,
    dumps_vsm,
    encode_token,
    load_index,
    load_vsm,
    loads_index,
    loads_vsm,
    save_index,
    save_vsm,
)
from tiersearch.errors import IndexFormatError, VsmFormatError
from tiersearch.index_builder import TieredIndex
from tiersearch.posting import Token
from tiersearch.vsm import VectorSpaceModel, build_vsm


@pytest.fixture
def cat_token() -> Token:
    return Token(stem="cat", variants={"cats", "cat"}, postings={3: [2], 0: [1, 4]})


class TestTokenRecord:
    def test_encoded_form_uses_gaps(self, cat_token: Token):
        assert encode_token(cat_token) == "cat [ cat cats ] 2 { [ 0 2 1 3 ] [ 3 1 2 ] }"

    def test_decode_restores_absolute_ids_and_positions(self, cat_token: Token):
        decoded = decode_token("cat [ cat cats ] 2 { [ 0 2 1 3 ] [ 3 1 2 ] }")
        assert decoded == cat_token
        assert decoded.postings == {0: [1, 4], 3: [2]}

    def test_round_trip(self, cat_token: Token):
        assert decode_token(encode_token(cat_token)) == cat_token

    def test_title_position_zero_survives(self):
        token = Token(stem="the", variants={"the"}, postings={0: [0], 5: [0, 2]})
        assert decode_token(encode_token(token)) == token

    @pytest.mark.parametrize(
        "line",
        [
            "cat cat ] 1 { [ 0 1 1 ] }",          # missing opening bracket
            "cat [ cat 1 { [ 0 1 1 ] }",          # variants never closed
            "cat [ cat ] 1 [ 0 1 1 ] }",          # missing postings brace
            "cat [ cat ] 1 { [ 0 2 1 ] }",        # fewer positions than declared
            "cat [ cat ] 2 { [ 0 1 1 ] }",        # fewer documents than declared
            "cat [ cat ] 1 { [ 0 1 1 ] } extra",  # trailing data
            "cat [ cat ] x { }",                  # non-numeric count
            "cat [ cat ] 2 { [ 1 1 1 ] [ 0 1 1 ] }",  # repeated document id
            "",
        ],
    )
    def test_malformed_records_are_rejected(self, line: str):
        with pytest.raises(IndexFormatError):
            decode_token(line)


class TestIndexFile:
    def test_layout(self):
        index = TieredIndex(
            titles=["First", "Second"],
            title_terms={"first": Token("first", {"first"}, {0: [0]})},
            body_terms={"word": Token("word", {"word", "words"}, {1: [1, 3]})},
        )
        assert dumps_index(index).splitlines() == [
            "2",
            "First",
            "Second",
            "first [ first ] 1 { [ 0 1 0 ] }",
            TIER_SEPARATOR,
            "word [ word words ] 1 { [ 1 2 1 2 ] }",
        ]

    def test_save_and_load_round_trip(self, tiered_index: TieredIndex, tmp_path: Path):
        path = tmp_path / "index.txt"
        save_index(path, tiered_index)
        loaded = load_index(path)
        assert loaded.titles == tiered_index.titles
        assert loaded.title_terms == tiered_index.title_terms
        assert loaded.body_terms == tiered_index.body_terms

    def test_title_that_looks_like_separator(self):
        index = TieredIndex(titles=["-"])
        assert loads_index(dumps_index(index)) == index

    def test_missing_separator(self):
        with pytest.raises(IndexFormatError):
            loads_index("1\nTitle\nfirst [ first ] 1 { [ 0 1 0 ] }\n")

    def test_missing_titles(self):
        with pytest.raises(IndexFormatError):
            loads_index("3\nonly one\n")

    def test_bad_document_count(self):
        with pytest.raises(IndexFormatError):
            loads_index("many\n-\n")

    def test_posting_for_unknown_document(self):
        with pytest.raises(IndexFormatError):
            loads_index("1\nTitle\n-\nword [ word ] 1 { [ 4 1 1 ] }\n")

    def test_duplicate_term_in_tier(self):
        record = "word [ word ] 1 { [ 0 1 1 ] }"
        with pytest.raises(IndexFormatError):
            loads_index(f"1\nTitle\n-\n{record}\n{record}\n")


class TestVsmFile:
    def test_layout(self):
        model = VectorSpaceModel()
        model.add_doc(0)
        model.set_component(0, "b", 0.5)
        model.set_component(0, "a", 0.25)
        model.add_doc(1)
        model.get_doc(1).normalized = True
        assert dumps_vsm(model, ["Zero", "One"]) == "2\n0 false 2 a 0.25 b 0.5\n1 true 0\nZero\nOne\n"

    def test_save_and_load_round_trip(self, tiered_index: TieredIndex, tmp_path: Path):
        title_vsm, body_vsm = build_vsm(tiered_index)
        save_vsm(tmp_path / "title.vsm", title_vsm, tiered_index.titles)
        save_vsm(tmp_path / "body.vsm", body_vsm)

        loaded_title, titles = load_vsm(tmp_path / "title.vsm")
        loaded_body, no_titles = load_vsm(tmp_path / "body.vsm")

        assert titles == tiered_index.titles
        assert no_titles == []
        for original, loaded in ((title_vsm, loaded_title), (body_vsm, loaded_body)):
            assert loaded.doc_ids() == original.doc_ids()
            for doc_id, doc in original:
                other = loaded.get_doc(doc_id)
                assert other.normalized == doc.normalized
                assert other.components == pytest.approx(doc.components)

    def test_accepts_java_style_exponent(self):
        model, _ = loads_vsm("1\n0 true 1 word 1.0E-4\n")
        assert model.vector(0) == {"word": pytest.approx(1e-4)}

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "x\n",
            "2\n0 true 0\n",                 # fewer vectors than declared
            "1\n0 maybe 0\n",                # bad flag
            "1\n0 true 2 a 0.5\n",           # fewer components than declared
            "1\n0 true 1 a heavy\n",         # bad weight
            "2\n0 true 0\n0 true 0\n",       # duplicate id
        ],
    )
    def test_malformed_files_are_rejected(self, text: str):
        with pytest.raises(VsmFormatError):
            loads_vsm(text)
