"""
Unit tests for LearningQueueBuilder and LearningQueue.
"""

import random

import pytest

from src.errors import PrerequisiteCycleError
from src.sequencer.queue_builder import LearningQueue, LearningQueueBuilder, build_learning_queue


def ids(queue):
    return [v.id for v in queue]


class TestBuildOrdering:
    """Tests for queue order."""

    def test_siblings_then_dependent(self, video_factory):
        v1 = video_factory("V1", skills=["A"])
        v2 = video_factory("V2", skills=["A"])
        v3 = video_factory("V3", skills=["B"], prereqs=["A"])

        queue = build_learning_queue([v1, v2, v3], "6e")

        assert ids(queue) == ["V1", "V2", "V3"]

    def test_dependent_listed_first_still_follows_prerequisite(self, video_factory):
        v3 = video_factory("V3", skills=["B"], prereqs=["A"])
        v1 = video_factory("V1", skills=["A"])

        assert ids(build_learning_queue([v3, v1], "6e")) == ["V1", "V3"]

    def test_lower_levels_first(self, video_factory):
        catalog = [
            video_factory("c4", level="4e", skills=["x"]),
            video_factory("c6", level="6e", skills=["y"]),
            video_factory("c5", level="5e", skills=["z"]),
        ]
        assert ids(build_learning_queue(catalog, "4e")) == ["c6", "c5", "c4"]

    def test_rank_not_string_order(self, video_factory):
        catalog = [
            video_factory("term", level="Terminale", skills=["t"]),
            video_factory("prem", level="1ère", skills=["p"]),
            video_factory("sec", level="2nde", skills=["s"]),
        ]
        assert ids(build_learning_queue(catalog, "Terminale")) == ["sec", "prem", "term"]

    def test_lower_level_chain_precedes_target(self, video_factory):
        catalog = [
            video_factory("frac", skills=["fractions"], prereqs=["division"]),
            video_factory("div", level="CM2", skills=["division"], prereqs=["multiplication"]),
            video_factory("mult", level="CM2", skills=["multiplication"]),
        ]
        queue = build_learning_queue(catalog, "6e")

        assert ids(queue).index("mult") < ids(queue).index("div") < ids(queue).index("frac")

    def test_siblings_grouped(self, video_factory):
        catalog = [
            video_factory("a1", skills=["a"]),
            video_factory("b", skills=["b"]),
            video_factory("a2", skills=["a"]),
        ]
        assert ids(build_learning_queue(catalog, "6e")) == ["a1", "a2", "b"]

    def test_ids_unique(self, video_factory):
        shared = video_factory("shared", level="5e", skills=["s"])
        catalog = [
            shared,
            video_factory("x", skills=["x"], prereqs=["s"]),
            video_factory("y", skills=["y"], prereqs=["s", "x"]),
        ]
        queue = build_learning_queue(catalog, "6e")

        assert sorted(ids(queue)) == ["shared", "x", "y"]
        assert len(set(ids(queue))) == len(queue)

    def test_empty_catalog(self):
        assert len(build_learning_queue([], "6e")) == 0

    def test_lower_level_cycle_raises(self, video_factory):
        catalog = [
            video_factory("a", level="5e", skills=["a"], prereqs=["b"]),
            video_factory("b", level="5e", skills=["b"], prereqs=["a"]),
            video_factory("t", skills=["t"], prereqs=["a"]),
        ]
        with pytest.raises(PrerequisiteCycleError):
            LearningQueueBuilder().build(catalog, "6e")

    def test_self_prerequisite_still_builds(self, video_factory):
        catalog = [
            video_factory("V1", skills=["A"], prereqs=["A"]),
            video_factory("V2", skills=["B"]),
        ]
        assert ids(build_learning_queue(catalog, "6e")) == ["V1", "V2"]

    def test_learner_level_mutual_prerequisites_still_build(self, video_factory):
        catalog = [
            video_factory("V1", skills=["A"], prereqs=["B"]),
            video_factory("V2", skills=["B"], prereqs=["A"]),
        ]
        assert ids(build_learning_queue(catalog, "6e")) == ["V2", "V1"]

    @pytest.mark.parametrize("seed", range(8))
    def test_random_dag_prerequisites_first(self, video_factory, seed):
        rng = random.Random(seed)
        levels = ["CM2", "6e", "5e"]
        catalog = []
        for n in range(15):
            prereqs = [f"s{k}" for k in range(n) if rng.random() < 0.2]
            catalog.append(video_factory(f"v{n}", level=rng.choice(levels), skills=[f"s{n}"], prereqs=prereqs))
        rng.shuffle(catalog)

        queue = build_learning_queue(catalog, "5e")
        order = ids(queue)

        assert sorted(order) == sorted(v.id for v in catalog)
        for video in queue:
            for skill in video.prerequisite_skills:
                source = f"v{skill[1:]}"
                assert order.index(source) < order.index(video.id)


class TestLearningQueue:
    """Tests for LearningQueue accessors."""

    def test_duplicate_ids_rejected(self, video_factory):
        with pytest.raises(ValueError):
            LearningQueue([video_factory("a"), video_factory("a")], "6e")

    def test_lookup(self, video_factory):
        queue = LearningQueue([video_factory("a"), video_factory("b")], "6e")

        assert "b" in queue
        assert queue.index_of("b") == 1
        assert queue.index_of("zzz") is None
        assert queue.get("a").id == "a"
        assert queue.get("zzz") is None
        assert queue[1].id == "b"
        assert queue.ids == ["a", "b"]

    def test_videos_for_skill_native_only(self, video_factory):
        queue = LearningQueue(
            [
                video_factory("old", level="5e", skills=["fractions"]),
                video_factory("a", skills=["fractions"]),
                video_factory("b", skills=["fractions", "decimaux"]),
            ],
            "6e",
        )
        assert ids(queue.videos_for_skill("fractions")) == ["a", "b"]

    def test_parcours_groups_by_skill(self, video_factory):
        queue = LearningQueue(
            [
                video_factory("old", level="CM2", skills=["division"]),
                video_factory("a", skills=["fractions"]),
                video_factory("b", skills=["fractions", "decimaux"]),
            ],
            "6e",
        )
        groups = queue.parcours()

        assert list(groups) == ["fractions", "decimaux"]
        assert ids(groups["fractions"]) == ["a", "b"]
        assert ids(groups["decimaux"]) == ["b"]
