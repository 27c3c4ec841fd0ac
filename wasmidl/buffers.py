from dataclasses import dataclass, field
from typing import List


@dataclass
class OutputBuffers:
    """Line buffers for the three generated artifacts of one run."""

    js: List[str] = field(default_factory=list)
    header: List[str] = field(default_factory=list)
    source: List[str] = field(default_factory=list)
