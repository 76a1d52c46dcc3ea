from dataclasses import dataclass, field
from typing import List, Union


@dataclass(frozen=True)
class Artifact:
    """One file destined for the kit archive."""

    filename: str
    payload: bytes
    description: str
    media_type: str = "image/png"


@dataclass(frozen=True)
class Produced:
    artifact: Artifact

    ok = True

    @property
    def filename(self) -> str:
        return self.artifact.filename


@dataclass(frozen=True)
class Failed:
    name: str
    filename: str
    reason: str

    ok = False


Outcome = Union[Produced, Failed]


@dataclass
class VariantReport:
    """Outcomes of the best-effort producers, split by success."""

    produced: List[Artifact] = field(default_factory=list)
    failed: List[Failed] = field(default_factory=list)

    def add(self, outcome: Outcome) -> None:
        if isinstance(outcome, Produced):
            self.produced.append(outcome.artifact)
        else:
            self.failed.append(outcome)

    @property
    def failed_names(self) -> List[str]:
        return [f.name for f in self.failed]
