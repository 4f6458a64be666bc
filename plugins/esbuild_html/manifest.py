import json
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterator, Mapping, Optional, Tuple


@dataclass(frozen=True)
class OutputRecord:
    """A single output file described by the esbuild metafile."""

    path: str
    bytes: int = 0
    inputs: Mapping[str, Mapping[str, int]] = field(default_factory=dict)
    imports: Tuple[Mapping[str, str], ...] = ()
    exports: FrozenSet[str] = frozenset()
    entry_point: Optional[str] = None
    css_bundle: Optional[str] = None

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.path)[1]

    @classmethod
    def from_metafile(cls, path: str, data: Mapping[str, Any]) -> "OutputRecord":
        return cls(
            path=path,
            bytes=int(data.get("bytes", 0)),
            inputs=dict(data.get("inputs") or {}),
            imports=tuple(data.get("imports") or ()),
            exports=frozenset(data.get("exports") or ()),
            entry_point=data.get("entryPoint"),
            css_bundle=data.get("cssBundle"),
        )


class BuildManifest:
    """Read-only view over the `outputs` section of an esbuild metafile.

    Iteration yields records in the order the metafile lists them. That order
    is stable for one build but has no relation to the page configuration.
    """

    def __init__(self, outputs: Mapping[str, OutputRecord]):
        self._outputs: Dict[str, OutputRecord] = dict(outputs)

    @classmethod
    def from_metafile(cls, metafile: Mapping[str, Any]) -> "BuildManifest":
        outputs = metafile.get("outputs") or {}
        return cls({path: OutputRecord.from_metafile(path, data) for path, data in outputs.items()})

    @classmethod
    def load(cls, path: Path) -> "BuildManifest":
        """Parse a metafile written by `esbuild --metafile=<path>`."""
        text = Path(path).read_text(encoding="utf8")
        return cls.from_metafile(json.loads(text))

    def __iter__(self) -> Iterator[OutputRecord]:
        return iter(self._outputs.values())

    def __len__(self) -> int:
        return len(self._outputs)

    def __contains__(self, path: object) -> bool:
        return path in self._outputs

    def get(self, path: str) -> Optional[OutputRecord]:
        return self._outputs.get(path)

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(self._outputs)
