"""Pool configuration."""

from dataclasses import dataclass
from typing import Any


@dataclass
class PoolConfig:
    strict: bool = True            # raise PoolError subclasses; False logs a warning and returns empty
    async_populate: bool = False   # clone on a background worker, land on collect()
    default_parent: Any = None     # placement context passed to the cloner
