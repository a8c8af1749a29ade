"""Unit tests for TF-IDF weighting, normalization and cosine similarity."""

import math

import pytest

from tiersearch.errors import DuplicateDocumentError, MissingDocumentError
from tiersearch.index_builder import TieredIndex
from tiersearch.posting import Token
from tiersearch.vsm import (
    VectorSpaceModel,
    build_tier_vsm,
    build_vsm,
    cosine_similarity,
    format_vector,
    normalize_vector,
)


def sum_of_squares(vector: dict[str, float]) -> float:
    return sum(w * w for w in vector.values())


class TestVectorSpaceModel:
    def test_zero_weight_is_removed_not_stored(self):
        model = VectorSpaceModel()
        model.add_doc(0)
        model.set_component(0, "a", 1.5)
        model.set_component(0, "a", 0.0)
        assert model.vector(0) == {}

    def test_add_doc_twice_fails(self):
        model = VectorSpaceModel()
        model.add_doc(0)
        with pytest.raises(DuplicateDocumentError):
            model.add_doc(0)

    def test_unknown_doc_fails(self):
        model = VectorSpaceModel()
        with pytest.raises(MissingDocumentError):
            model.vector(3)
        with pytest.raises(MissingDocumentError):
            model.set_component(3, "a", 1.0)

    def test_normalize_marks_and_scales_once(self):
        model = VectorSpaceModel()
        model.add_doc(0)
        model.set_component(0, "a", 3.0)
        model.set_component(0, "b", 4.0)

        model.normalize()
        first = dict(model.vector(0))
        model.normalize()

        assert model.get_doc(0).normalized
        assert first == {"a": pytest.approx(0.6), "b": pytest.approx(0.8)}
        assert model.vector(0) == first


class TestNormalizeVector:
    def test_unit_length(self):
        vector = normalize_vector({"a": 2.0, "b": 1.0, "c": 7.5})
        assert sum_of_squares(vector) == pytest.approx(1.0)

    def test_empty_vector_stays_empty(self):
        assert normalize_vector({}) == {}

    def test_normalizing_a_unit_vector_changes_nothing(self):
        vector = {"a": 0.6, "b": 0.8}
        assert normalize_vector(dict(vector)) == pytest.approx(vector)


class TestCosineSimilarity:
    def test_only_query_components_contribute(self):
        doc = {"a": 0.6, "b": 0.8}
        assert cosine_similarity(doc, {"a": 1.0}) == pytest.approx(0.6)
        assert cosine_similarity(doc, {"z": 1.0}) == 0.0

    def test_identical_unit_vectors(self):
        v = normalize_vector({"a": 1.0, "b": 2.0})
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_bounded_for_non_negative_unit_vectors(self, tiered_index: TieredIndex):
        _, body = build_vsm(tiered_index)
        for _, doc in body:
            for _, other in body:
                sim = cosine_similarity(doc.components, other.components)
                assert -1e-12 <= sim <= 1.0 + 1e-12


class TestBuildVsm:
    def test_weights_are_idf_times_tf_before_normalization(self):
        dictionary = {
            "rare": Token("rare", {"rare"}, {0: [1, 2]}),
            "common": Token("common", {"common"}, {0: [3], 1: [1]}),
        }
        model = build_tier_vsm(dictionary, doc_count=2)

        # "common" is in every document: IDF 0, so it is dropped
        assert model.vector(0) == {"rare": pytest.approx(1.0)}
        assert model.vector(1) == {}
        assert model.get_doc(1).normalized

    def test_unnormalized_weight(self):
        dictionary = {
            "a": Token("a", {"a"}, {0: [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]}),
            "b": Token("b", {"b"}, {0: [11], 1: [1]}),
            "c": Token("c", {"c"}, {2: [1]}),
        }
        model = build_tier_vsm(dictionary, doc_count=3)
        idf_a = math.log10(3)
        idf_b = math.log10(3 / 2)
        raw_a, raw_b = idf_a * 2.0, idf_b * 1.0
        norm = math.sqrt(raw_a**2 + raw_b**2)
        assert model.vector(0) == {"a": pytest.approx(raw_a / norm), "b": pytest.approx(raw_b / norm)}

    def test_every_document_gets_a_normalized_vector(self, tiered_index: TieredIndex):
        title_vsm, body_vsm = build_vsm(tiered_index)
        for model in (title_vsm, body_vsm):
            assert model.doc_ids() == [0, 1]
            for _, doc in model:
                assert doc.normalized
                assert sum_of_squares(doc.components) == pytest.approx(1.0)
                assert 0.0 not in doc.components.values()

    def test_index_is_not_mutated(self, tiered_index: TieredIndex):
        before = {s: (set(t.variants), {d: list(p) for d, p in t.postings.items()})
                  for s, t in tiered_index.body_terms.items()}
        build_vsm(tiered_index)
        after = {s: (set(t.variants), {d: list(p) for d, p in t.postings.items()})
                 for s, t in tiered_index.body_terms.items()}
        assert before == after


class TestFormatVector:
    def test_cells_per_line(self):
        text = format_vector({"b": 0.5, "a": 0.25, "c": 1.0}, per_line=2)
        lines = text.splitlines()
        assert len(lines) == 2
        assert lines[0].split() == ["a", ":", "0.250000", "b", ":", "0.500000"]
        assert lines[1].split() == ["c", ":", "1.000000"]
