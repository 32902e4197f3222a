from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple
import yaml

from emotutor.errors import UnknownSubject

SUBJECTS: Dict[str, List[str]] = {
    "os": [
        "An Operating System manages hardware and software resources.",
        "CPU scheduling decides which process runs next.",
        "Memory management keeps programs isolated and efficient.",
        "File systems organize how data is stored and retrieved.",
    ],
    "adsa": [
        "A Stack follows LIFO: last item in, first out.",
        "Queues are FIFO: first item in, first out.",
        "Trees store hierarchical data; a binary tree has two children max.",
        "Graphs model relationships between entities.",
    ],
    "java": [
        "Java is an object-oriented language using classes and objects.",
        "Inheritance enables code reuse by deriving classes from others.",
        "Interfaces specify method contracts without implementation.",
        "Threads allow concurrent execution in Java applications.",
    ],
}

# shorter restatements used when the learner struggles
SIMPLE_REPHRASE: Dict[str, List[str]] = {
    "os": [
        "OS helps run apps and manage devices.",
        "Scheduler picks which app uses CPU next.",
        "Memory keeps programs separate and safe.",
        "Files let you store your data.",
    ],
    "adsa": [
        "Stack: last in, first out.",
        "Queue: first in, first out.",
        "Tree: items in parent/child form.",
        "Graph: items connected by edges.",
    ],
    "java": [
        "Java uses classes; classes make objects.",
        "Inheritance: child class gets parent's code.",
        "Interface: a list of methods a class must have.",
        "Threads: let multiple tasks run together.",
    ],
}


@dataclass(frozen=True)
class SubjectContent:
    """Parallel sequences of base statements and simplified restatements."""
    base: Tuple[str, ...]
    simplified: Tuple[str, ...]


class ContentStore:
    """
    Read-only lesson catalogue.

    Lookups wrap the lesson index modulo the length of the requested
    sequence, so any non-negative index is valid for any subject.
    """

    def __init__(self, subjects: Mapping[str, SubjectContent]):
        for name, content in subjects.items():
            if not content.base or not content.simplified:
                raise ValueError(f"Subject {name!r} has no lesson statements")
        self._subjects = dict(subjects)

    @classmethod
    def from_lists(
        cls,
        base: Mapping[str, Sequence[str]],
        simplified: Mapping[str, Sequence[str]],
    ) -> "ContentStore":
        missing = set(base) ^ set(simplified)
        if missing:
            raise ValueError(f"Subjects without both variants: {sorted(missing)}")
        return cls({
            name: SubjectContent(tuple(base[name]), tuple(simplified[name]))
            for name in base
        })

    @classmethod
    def default(cls) -> "ContentStore":
        return cls.from_lists(SUBJECTS, SIMPLE_REPHRASE)

    @classmethod
    def from_yaml(cls, path: str) -> "ContentStore":
        """
        Load a catalogue of the form::

            os:
              base: [...]
              simplified: [...]
        """
        with open(path, "r", encoding="utf8") as f:
            y = yaml.safe_load(f) or {}
        return cls({
            str(name): SubjectContent(tuple(entry["base"]), tuple(entry["simplified"]))
            for name, entry in y.items()
        })

    def subjects(self) -> List[str]:
        return list(self._subjects)

    def __contains__(self, subject: object) -> bool:
        return subject in self._subjects

    def _content(self, subject: str) -> SubjectContent:
        try:
            return self._subjects[subject]
        except KeyError:
            raise UnknownSubject(subject) from None

    def get_base(self, subject: str, index: int) -> str:
        seq = self._content(subject).base
        return seq[index % len(seq)]

    def get_simplified(self, subject: str, index: int) -> str:
        seq = self._content(subject).simplified
        return seq[index % len(seq)]
