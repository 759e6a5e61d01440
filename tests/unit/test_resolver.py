"""
Unit tests for PrerequisiteResolver.
"""

import pytest

from src.errors import PrerequisiteCycleError
from src.sequencer.resolver import PrerequisiteResolver


class TestSourceLookup:
    def test_first_catalog_match_wins(self, video_factory):
        first = video_factory("first", skills=["fractions"])
        second = video_factory("second", skills=["fractions"])
        resolver = PrerequisiteResolver([first, second], "6e")

        assert resolver.source_for("fractions") is first
        assert resolver.source_for("unknown") is None

    def test_is_native(self, video_factory):
        resolver = PrerequisiteResolver([], "2nde")
        assert resolver.is_native(video_factory("a", level="2nde C"))
        assert not resolver.is_native(video_factory("b", level="3e"))


class TestExpand:
    """Tests for prerequisite expansion."""

    def test_lower_level_chain_in_order(self, video_factory):
        add = video_factory("add", level="CM2", skills=["addition"])
        mult = video_factory("mult", level="CM2", skills=["multiplication"], prereqs=["addition"])
        div = video_factory("div", level="CM2", skills=["division"], prereqs=["multiplication"])
        target = video_factory("frac", skills=["fractions"], prereqs=["division"])
        resolver = PrerequisiteResolver([target, div, mult, add], "6e")

        deps = resolver.expand(target, set())

        assert [v.id for v in deps] == ["add", "mult", "div"]

    def test_missing_skill_is_skipped(self, video_factory):
        add = video_factory("add", level="CM2", skills=["addition"])
        target = video_factory("frac", prereqs=["nobody-teaches-this", "addition"])
        resolver = PrerequisiteResolver([target, add], "6e")

        assert [v.id for v in resolver.expand(target, set())] == ["add"]

    def test_shared_lower_dependency_emitted_once(self, video_factory):
        base = video_factory("base", level="5e", skills=["base"])
        left = video_factory("left", level="5e", skills=["left"], prereqs=["base"])
        right = video_factory("right", level="5e", skills=["right"], prereqs=["base"])
        target = video_factory("t", level="4e", prereqs=["left", "right"])
        resolver = PrerequisiteResolver([base, left, right, target], "4e")

        assert [v.id for v in resolver.expand(target, set())] == ["base", "left", "right"]

    def test_learner_level_dependency_recorded_as_seen(self, video_factory):
        intro = video_factory("intro", skills=["intro"])
        target = video_factory("t", prereqs=["intro"])
        resolver = PrerequisiteResolver([intro, target], "6e")
        seen = set()

        assert [v.id for v in resolver.expand(target, seen)] == ["intro"]
        assert seen == {"intro"}

    def test_seen_learner_level_dependency_skipped(self, video_factory):
        intro = video_factory("intro", skills=["intro"])
        target = video_factory("t", prereqs=["intro"])
        resolver = PrerequisiteResolver([intro, target], "6e")

        assert resolver.expand(target, {"intro"}) == []

    def test_learner_level_dependency_brings_its_own_chain(self, video_factory):
        add = video_factory("add", level="CM2", skills=["addition"])
        intro = video_factory("intro", skills=["intro"], prereqs=["addition"])
        target = video_factory("t", prereqs=["intro"])
        resolver = PrerequisiteResolver([add, intro, target], "6e")

        assert [v.id for v in resolver.expand(target, set())] == ["add", "intro"]


class TestCycles:
    """Loops across levels are reported; loops through the learner level are cut."""

    def test_two_video_cycle(self, video_factory):
        a = video_factory("a", level="5e", skills=["a"], prereqs=["b"])
        b = video_factory("b", level="5e", skills=["b"], prereqs=["a"])
        target = video_factory("t", prereqs=["a"])
        resolver = PrerequisiteResolver([a, b, target], "6e")

        with pytest.raises(PrerequisiteCycleError) as exc_info:
            resolver.expand(target, set())

        assert exc_info.value.path == ["t", "a", "b", "a"]
        assert "a -> b -> a" in str(exc_info.value)

    def test_self_reference_ignored(self, video_factory):
        loop = video_factory("loop", skills=["x"], prereqs=["x"])
        resolver = PrerequisiteResolver([loop], "6e")

        assert resolver.expand(loop, set()) == []

    def test_lower_level_self_reference_ignored(self, video_factory):
        loop = video_factory("loop", level="5e", skills=["x"], prereqs=["x"])
        target = video_factory("t", prereqs=["x"])
        resolver = PrerequisiteResolver([loop, target], "6e")

        assert [v.id for v in resolver.expand(target, set())] == ["loop"]

    def test_learner_level_loop_edge_dropped(self, video_factory):
        a = video_factory("a", skills=["a"], prereqs=["b"])
        b = video_factory("b", skills=["b"], prereqs=["a"])
        resolver = PrerequisiteResolver([a, b], "6e")
        seen = set()

        assert [v.id for v in resolver.expand(a, seen)] == ["b"]
        assert seen == {"b"}

    def test_lower_level_loop_back_to_learner_video(self, video_factory):
        target = video_factory("t", skills=["t"], prereqs=["old"])
        old = video_factory("o", level="5e", skills=["old"], prereqs=["t"])
        resolver = PrerequisiteResolver([target, old], "6e")

        assert [v.id for v in resolver.expand(target, set())] == ["o"]
