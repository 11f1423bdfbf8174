"""
Tests for the schema normalizer and its version-gated migrations.
"""

from __future__ import annotations

import pytest

from lottiegraph.exceptions import InvalidDocumentError
from lottiegraph.normalize import UNKNOWN_VERSION, normalize, parse_version
from lottiegraph.types import NormalizedDocument, clone_tree


def _shape_layer(shapes, **extra):
    layer = {"ty": 4, "ind": 1, "ks": {}, "shapes": shapes}
    layer.update(extra)
    return layer


def _text_layer(text, **extra):
    layer = {"ty": 5, "ind": 1, "ks": {}, "t": text}
    layer.update(extra)
    return layer


class TestParseVersion:
    @pytest.mark.parametrize("raw,parsed", [
        ("5.7.1", (5, 7, 1)),
        ("4.4", (4, 4, 0)),
        ("5.7.1.2", (5, 7, 1)),
        (" 4.1.9 ", (4, 1, 9)),
    ])
    def test_valid(self, raw, parsed):
        assert parse_version(raw) == parsed

    @pytest.mark.parametrize("raw", [None, "", "abc", "5.x.1", 5, "-1.0.0"])
    def test_unusable(self, raw):
        assert parse_version(raw) == UNKNOWN_VERSION


class TestNormalizeContract:
    def test_input_not_mutated(self, red_ellipse_document):
        before = clone_tree(red_ellipse_document)
        normalize(dict(red_ellipse_document, v="4.0.0"))
        assert red_ellipse_document == before

    def test_returns_wrapper(self, make_document):
        doc = normalize(make_document([], v="5.5.2"))
        assert isinstance(doc, NormalizedDocument)
        assert doc.normalized is True
        assert doc.version == (5, 5, 2)

    def test_idempotent(self, make_document):
        raw = make_document(
            [_shape_layer([{"ty": "fl", "c": {"k": [255, 0, 0, 255]}}])],
            v="4.0.0",
        )
        once = normalize(raw)
        assert normalize(once) is once
        assert normalize(raw).data == once.data
        assert once.data["layers"][0]["shapes"][0]["c"]["k"] == [1.0, 0.0, 0.0, 1.0]

    @pytest.mark.parametrize("raw", [None, [], "doc", {"fr": 30}, {"layers": {}}])
    def test_invalid_documents(self, raw):
        with pytest.raises(InvalidDocumentError):
            normalize(raw)


class TestColorMigration:
    def test_static_colors_rescaled(self, make_document):
        raw = make_document([_shape_layer([
            {"ty": "st", "c": {"k": [0, 255, 51, 255]}},
        ])], v="4.1.8")
        data = normalize(raw).data
        assert data["layers"][0]["shapes"][0]["c"]["k"] == [0.0, 1.0, 0.2, 1.0]

    def test_keyframed_colors_and_groups(self, make_document):
        raw = make_document([_shape_layer([{"ty": "gr", "it": [{
            "ty": "fl",
            "c": {"k": [{"t": 0, "s": [255, 0, 0, 255], "e": [0, 0, 255, 255]}]},
        }]}])], v="4.0.0")
        kf = normalize(raw).data["layers"][0]["shapes"][0]["it"][0]["c"]["k"][0]
        assert kf["s"] == [1.0, 0.0, 0.0, 1.0]
        assert kf["e"] == [0.0, 0.0, 1.0, 1.0]

    def test_asset_layers_rescaled(self, make_document):
        raw = make_document([], v="4.0.0", assets=[
            {"id": "a", "layers": [_shape_layer([{"ty": "fl", "c": {"k": [255, 255, 255, 255]}}])]},
        ])
        data = normalize(raw).data
        assert data["assets"][0]["layers"][0]["shapes"][0]["c"]["k"] == [1.0, 1.0, 1.0, 1.0]

    def test_unversioned_byte_colors_rescaled(self, make_document):
        raw = make_document([_shape_layer([
            {"ty": "fl", "c": {"k": [255, 128, 0, 255]}},
            {"ty": "st", "c": {"k": [1, 0, 0, 255]}},
        ])])
        shapes = normalize(raw).data["layers"][0]["shapes"]
        assert shapes[0]["c"]["k"] == pytest.approx([1.0, 128 / 255, 0.0, 1.0])
        assert shapes[1]["c"]["k"] == pytest.approx([1 / 255, 0.0, 0.0, 1.0])

    def test_unversioned_keyframed_byte_colors_rescaled(self, make_document):
        raw = make_document([_shape_layer([{
            "ty": "fl",
            "c": {"k": [{"t": 0, "s": [0, 0, 0, 255]}, {"t": 10, "s": [0, 0, 200, 255]}]},
        }])], v="not-a-version")
        k = normalize(raw).data["layers"][0]["shapes"][0]["c"]["k"]
        assert k[1]["s"] == pytest.approx([0.0, 0.0, 200 / 255, 1.0])

    def test_versioned_colors_not_guessed(self, make_document):
        raw = make_document([_shape_layer([{"ty": "fl", "c": {"k": [255, 128, 0, 1]}}])], v="5.0.0")
        assert normalize(raw).data["layers"][0]["shapes"][0]["c"]["k"] == [255, 128, 0, 1]

    @pytest.mark.parametrize("version", ["4.1.9", "5.0.0", None])
    def test_current_versions_untouched(self, make_document, version):
        extra = {"v": version} if version else {}
        raw = make_document([_shape_layer([{"ty": "fl", "c": {"k": [1, 0, 0, 1]}}])], **extra)
        assert normalize(raw).data["layers"][0]["shapes"][0]["c"]["k"] == [1, 0, 0, 1]


class TestTextMigrations:
    def test_text_document_wrapped(self, make_document):
        raw = make_document([_text_layer({"d": {"t": "hi"}, "a": [], "p": {}})], v="4.4.0")
        text = normalize(raw).data["layers"][0]["t"]
        assert text["d"] == {"k": [{"s": {"t": "hi"}, "t": 0}]}

    def test_text_document_current(self, make_document):
        raw = make_document([_text_layer({"d": {"k": []}, "a": [], "p": {}})], v="5.0.0")
        assert normalize(raw).data["layers"][0]["t"]["d"] == {"k": []}

    def test_text_path_properties_promoted(self, make_document):
        raw = make_document([_text_layer({"d": {"k": []}, "a": [], "p": {"a": 1, "p": 0, "r": 2, "f": 3}})],
                            v="5.7.0")
        path = normalize(raw).data["layers"][0]["t"]["p"]
        assert path["a"] == {"a": 0, "k": 1}
        assert path["p"] == {"a": 0, "k": 0}
        assert path["r"] == {"a": 0, "k": 2}
        assert path["f"] == 3

    def test_single_shape_flag(self, make_document):
        raw = make_document([
            _text_layer({"d": {"k": []}, "a": [], "p": {}}),
            _text_layer({"d": {"k": []}, "a": [], "p": {"m": 1}}, ind=2),
            _text_layer({"d": {"k": []}, "a": [{"s": {}}], "p": {}}, ind=3),
        ])
        layers = normalize(raw).data["layers"]
        assert layers[0].get("singleShape") is True
        assert "singleShape" not in layers[1]
        assert "singleShape" not in layers[2]


class TestGlyphMigration:
    def _chars(self):
        return [{"data": {"shapes": [{"ty": "gr", "it": [
            {"ty": "sh", "ks": {"k": {"v": [[1, 1]], "i": [[1, 0]], "o": [[0, 1]], "c": True}}},
        ]}]}}]

    def test_new_files_converted(self, make_document):
        raw = make_document([], v="5.0.0", chars=self._chars())
        path = normalize(raw).data["chars"][0]["data"]["shapes"][0]["it"][0]["ks"]["k"]
        assert path["i"] == [[2, 1]]
        assert path["o"] == [[1, 2]]

    def test_old_files_untouched(self, make_document):
        raw = make_document([], v="4.5.0", chars=self._chars())
        path = normalize(raw).data["chars"][0]["data"]["shapes"][0]["it"][0]["ks"]["k"]
        assert path["i"] == [[1, 0]]


class TestClosedFlagMigration:
    def test_shape_closed_flag(self, make_document):
        raw = make_document([_shape_layer([{
            "ty": "sh",
            "closed": True,
            "ks": {"k": [{"t": 0, "s": [{"v": [], "i": [], "o": []}], "e": [{"v": [], "i": [], "o": []}]}]},
        }])], v="4.4.0")
        kf = normalize(raw).data["layers"][0]["shapes"][0]["ks"]["k"][0]
        assert kf["s"][0]["c"] is True
        assert kf["e"][0]["c"] is True

    def test_mask_closed_flag(self, make_document):
        raw = make_document([{
            "ty": 3, "ind": 1, "ks": {}, "hasMask": True,
            "masksProperties": [{"cl": False, "pt": {"k": {"v": [], "i": [], "o": []}}}],
        }], v="4.4.0")
        mask = normalize(raw).data["layers"][0]["masksProperties"][0]
        assert mask["pt"]["k"]["c"] is False

    def test_new_files_untouched(self, make_document):
        raw = make_document([_shape_layer([{
            "ty": "sh", "closed": True, "ks": {"k": {"v": [], "i": [], "o": [], "c": False}},
        }])], v="5.0.0")
        assert normalize(raw).data["layers"][0]["shapes"][0]["ks"]["k"]["c"] is False


class TestLayerCompletion:
    def test_path_tangents_made_absolute(self, make_document):
        raw = make_document([_shape_layer([{"ty": "gr", "it": [{
            "ty": "sh",
            "ks": {"k": {"v": [[10, 10]], "i": [[-1, 0]], "o": [[1, 0]], "c": True}},
        }]}])])
        path = normalize(raw).data["layers"][0]["shapes"][0]["it"][0]["ks"]["k"]
        assert path["i"] == [[9, 10]]
        assert path["o"] == [[11, 10]]

    def test_keyframed_tangents_made_absolute(self, make_document):
        bez = {"v": [[5, 5]], "i": [[1, 1]], "o": [[-1, -1]]}
        raw = make_document([_shape_layer([{
            "ty": "sh", "ks": {"k": [{"t": 0, "s": [dict(bez)], "e": [clone_tree(bez)]}]},
        }])])
        kf = normalize(raw).data["layers"][0]["shapes"][0]["ks"]["k"][0]
        assert kf["s"][0]["i"] == [[6, 6]]
        assert kf["e"][0]["o"] == [[4, 4]]

    def test_mask_tangents_made_absolute(self, make_document):
        raw = make_document([{
            "ty": 3, "ind": 1, "ks": {}, "hasMask": True,
            "masksProperties": [{"pt": {"k": {"v": [[2, 2]], "i": [[1, 1]], "o": [[0, 0]]}}}],
        }])
        path = normalize(raw).data["layers"][0]["masksProperties"][0]["pt"]["k"]
        assert path["i"] == [[3, 3]]
        assert path["o"] == [[2, 2]]

    def test_track_matte_copied_to_previous_layer(self, make_document):
        raw = make_document([
            {"ty": 3, "ind": 1, "ks": {}},
            {"ty": 3, "ind": 2, "ks": {}, "tt": 1},
        ])
        assert normalize(raw).data["layers"][0]["td"] == 1

    def test_layers_without_transform_skipped(self, make_document):
        raw = make_document([_shape_layer([{
            "ty": "sh", "ks": {"k": {"v": [[1, 1]], "i": [[1, 1]], "o": [[1, 1]]}},
        }])])
        del raw["layers"][0]["ks"]
        path = normalize(raw).data["layers"][0]["shapes"][0]["ks"]["k"]
        assert path["i"] == [[1, 1]]


class TestPrecompExpansion:
    def test_uses_are_independent(self, precomp_document):
        data = normalize(precomp_document).data
        first, second = data["layers"][0]["layers"], data["layers"][1]["layers"]
        assert first == second
        assert first is not second
        second[0]["nm"] = "changed"
        second[0]["shapes"][0]["ks"]["k"]["v"][0][0] = -1
        assert first[0]["nm"] == "inner"
        assert first[0]["shapes"][0]["ks"]["k"]["v"][0][0] == 10

    def test_shared_asset_converted_once(self, precomp_document):
        data = normalize(precomp_document).data
        for layer in data["layers"]:
            path = layer["layers"][0]["shapes"][0]["ks"]["k"]
            assert path["i"] == [[9, 10], [19, 10]]
            assert path["o"] == [[11, 10], [21, 10]]

    def test_first_use_reuses_asset_list(self, precomp_document):
        data = normalize(precomp_document).data
        assert data["layers"][0]["layers"] is data["assets"][0]["layers"]

    def test_missing_asset(self, make_document):
        raw = make_document([{"ty": 0, "ind": 1, "ks": {}, "refId": "nope"}], assets=[])
        assert normalize(raw).data["layers"][0]["layers"] == []

    def test_self_reference_is_cut(self, make_document):
        raw = make_document(
            [{"ty": 0, "ind": 1, "ks": {}, "refId": "loop"}],
            assets=[{"id": "loop", "layers": [{"ty": 0, "ind": 1, "ks": {}, "refId": "loop"}]}],
        )
        data = normalize(raw).data
        nested = data["layers"][0]["layers"]
        assert len(nested) == 1
        assert nested[0]["layers"] == []
