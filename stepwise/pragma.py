import re
from dataclasses import dataclass
from typing import Iterator, List, Pattern, Union

@dataclass(frozen=True)
class Pragma:
    text: str

    @classmethod
    def from_text(cls, text: str) -> "Pragma":
        return cls(text)

class PragmaList:
    """Append-only list of pragmas, queryable by regex."""
    def __init__(self):
        self._pragmas: List[Pragma] = []

    def add(self, pragma: Pragma):
        self._pragmas.append(pragma)

    def find(self, pattern: Union[str, Pattern]) -> "PragmaList":
        rx = re.compile(pattern) if isinstance(pattern, str) else pattern
        out = PragmaList()
        for p in self._pragmas:
            if rx.search(p.text):
                out.add(p)
        return out

    def first(self):
        return self._pragmas[0] if self._pragmas else None

    def __getitem__(self, i) -> Pragma:
        return self._pragmas[i]

    def __len__(self):
        return len(self._pragmas)

    def __iter__(self) -> Iterator[Pragma]:
        return iter(self._pragmas)
