"""Tests for the lesson catalogue."""

import pytest

from emotutor.content.store import SIMPLE_REPHRASE, SUBJECTS, ContentStore, SubjectContent
from emotutor.errors import UnknownSubject


def test_builtin_subjects(store):
    assert store.subjects() == ["os", "adsa", "java"]
    assert "os" in store
    assert "math" not in store


@pytest.mark.parametrize("subject", ["os", "adsa", "java"])
def test_index_wraps_for_every_subject(store, subject):
    n = len(SUBJECTS[subject])
    for i in range(3 * n + 1):
        assert store.get_base(subject, i) == store.get_base(subject, i % n)
        assert store.get_simplified(subject, i) == store.get_simplified(subject, i % n)


def test_large_index_never_raises(store):
    assert store.get_base("java", 10**9 + 1) == SUBJECTS["java"][1]
    assert store.get_simplified("java", 10**9 + 1) == SIMPLE_REPHRASE["java"][1]


def test_sequences_wrap_independently():
    s = ContentStore({"x": SubjectContent(("b0", "b1", "b2"), ("s0", "s1"))})
    assert s.get_base("x", 4) == "b1"
    assert s.get_simplified("x", 4) == "s0"


def test_unknown_subject_is_a_key_error(store):
    with pytest.raises(UnknownSubject) as info:
        store.get_base("chemistry", 0)
    assert isinstance(info.value, KeyError)
    assert "chemistry" in str(info.value)


def test_empty_subject_is_rejected_at_build_time():
    with pytest.raises(ValueError):
        ContentStore({"empty": SubjectContent((), ("s",))})


def test_from_lists_requires_both_variants():
    with pytest.raises(ValueError):
        ContentStore.from_lists({"a": ["x"], "b": ["y"]}, {"a": ["x"]})


def test_from_yaml(tmp_path):
    path = tmp_path / "subjects.yaml"
    path.write_text(
        "math:\n"
        "  base: [Addition combines numbers., Subtraction takes away.]\n"
        "  simplified: [Add means put together., Subtract means take away.]\n",
        encoding="utf8",
    )
    s = ContentStore.from_yaml(str(path))
    assert s.subjects() == ["math"]
    assert s.get_base("math", 3) == "Subtraction takes away."
    assert s.get_simplified("math", 2) == "Add means put together."
