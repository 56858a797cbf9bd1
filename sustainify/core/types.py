from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Union


@dataclass
class Confidence:
    name: str
    prob: float


@dataclass
class IdentifyResult:
    name: str = "unknown"
    description: str = ""
    confidences: Union[list[Confidence], None] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IdentifyResult":
        confidences = None
        raw = data.get("confidences")
        if isinstance(raw, list):
            confidences = []
            for entry in raw:
                if not isinstance(entry, dict) or "name" not in entry:
                    continue
                try:
                    prob = float(entry.get("prob", 0))
                except (TypeError, ValueError):
                    continue
                confidences.append(Confidence(name=str(entry["name"]), prob=prob))
        return cls(
            name=str(data.get("name") or "unknown"),
            description=str(data.get("description") or ""),
            confidences=confidences,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "description": self.description}
        if self.confidences is not None:
            out["confidences"] = [asdict(c) for c in self.confidences]
        return out


@dataclass
class QuizInputs:
    name: str = ""
    shower_min: float = 10
    uses_bucket: bool = False
    hours_devices: float = 6
    num_led: float = 5
    ac_hours: float = 1
    disposable_count: float = 2
    uses_reusable: bool = False
    recycles: bool = False

    @classmethod
    def defaults(cls) -> "QuizInputs":
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizInputs":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class EcoScores:
    water: float
    energy: float
    waste: float
    eco: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Badge:
    title: str
    subtitle: str
    icon: str


@dataclass(frozen=True)
class QuizRecord:
    ts: str
    name: str
    inputs: QuizInputs = field(default_factory=QuizInputs)
    scores: Union[EcoScores, None] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ts": self.ts,
            "name": self.name,
            "inputs": self.inputs.to_dict(),
            "scores": self.scores.to_dict() if self.scores else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizRecord":
        scores = data.get("scores")
        return cls(
            ts=data["ts"],
            name=data.get("name") or "-",
            inputs=QuizInputs.from_dict(data.get("inputs") or {}),
            scores=EcoScores(**scores) if scores else None,
        )
