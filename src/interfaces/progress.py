"""Progress sink: ordered, human-readable status lines."""
from typing import Callable

ProgressCallback = Callable[[str], None]
