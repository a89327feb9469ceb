"""Core components for tinypool."""

from .pool import Pool, InUseRecord, PoolStats
from .config import PoolConfig
from .populate import Populator, PopulateJob
from .cloners import deepcopy_clone, tensor_clone
from .errors import PoolError, CategoryNotFound, CategoryAlreadyExists, InvalidArgument, ItemNotInUse
