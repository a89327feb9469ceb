"""Categorised object pool for reusing pre-instantiated entities.

The pool keeps two pieces of state:
- available: category name -> items ready to hand out (FIFO deque)
- in_use: items currently checked out -> where they came from and who holds them

Lifecycle of one item:
    [not owned] --populate--> [available]
    [available] --checkout--> [in-use]
    [in-use]    --return_to_pool--> [available]
    [available] --remove--> [discarded]

An in-use item can't be discarded; it has to come back first.

Example:
    pool = Pool()
    pool.create_category("Sound")
    pool.populate(template, "Sound", count=3)

    item = pool.checkout("Sound", "player-1")
    # ... use item ...
    pool.return_to_pool(item)

    # Keyed access: pick a specific available item first
    boom = pool.find("Sound", "boom")
    pool.checkout("Sound", "player-2", item=boom)
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional

from .cloners import deepcopy_clone
from .config import PoolConfig
from .errors import CategoryAlreadyExists, CategoryNotFound, InvalidArgument, ItemNotInUse, PoolError
from .populate import PopulateJob, Populator

logger = logging.getLogger(__name__)


@dataclass
class InUseRecord:
    """Bookkeeping for one checked-out item."""
    item: Any
    category: str  # origin category, where return_to_pool puts it back
    holder: str    # lookup key given to checkout


@dataclass
class PoolStats:
    """Point-in-time counts per category."""
    available: Dict[str, int] = field(default_factory=dict)
    in_use: Dict[str, int] = field(default_factory=dict)
    pending_jobs: int = 0
    pending_errors: int = 0

    @property
    def total_available(self) -> int:
        return sum(self.available.values())

    @property
    def total_in_use(self) -> int:
        return sum(self.in_use.values())


class Pool:
    """
    Object pool with named categories and checkout tracking.

    Attributes:
        config: PoolConfig (strict errors, async population, default parent)
        cloner: Callable (template, parent) -> item, used by populate()
        on_discard: Optional hook called with each item remove() throws away
        available: Dict of category -> deque of available items
        in_use: Dict of id(item) -> InUseRecord for checked-out items

    Precondition failures (unknown category, bad argument, item not checked out)
    raise a PoolError subclass in strict mode. With strict=False they are logged
    as warnings and the call returns an empty result instead. Either way the
    pool state is left unchanged.

    Clone failures from background population never abort an unrelated call.
    They are queued and raised one at a time by collect() or drain().
    """

    def __init__(
        self,
        config: Optional[PoolConfig] = None,
        cloner: Callable[[Any, Any], Any] = deepcopy_clone,
        on_discard: Optional[Callable[[Any], None]] = None,
    ):
        self.config = config if config is not None else PoolConfig()
        self.cloner = cloner
        self.on_discard = on_discard
        self.available: Dict[str, Deque[Any]] = {}
        self.in_use: Dict[int, InUseRecord] = {}
        self.populator = Populator(cloner, async_mode=self.config.async_populate)
        self._errors: List[Exception] = []  # clone failures not yet raised

    def create_category(self, name: str) -> bool:
        """
        Register an empty category.

        Returns:
            True if created, False if it failed in lenient mode
        """
        if not self._valid_name(name):
            return self._fail(InvalidArgument(f"Category name must be a non-empty string, got {name!r}"), False)
        if name in self.available:
            return self._fail(CategoryAlreadyExists(name), False)

        self.available[name] = deque()
        logger.debug("Created category %r", name)
        return True

    def populate(self, template: Any, category: str, count: int = 1, parent: Any = None) -> PopulateJob:
        """
        Clone a template into a category's available list.

        In async mode the clones only show up after the worker finishes and
        the next pool call lands them, so a checkout right after populate()
        can come back empty.

        Args:
            template: Entity to clone (must not be None)
            category: Existing category to fill
            count: Number of clones (0 is a no-op)
            parent: Placement context for the cloner (defaults to config.default_parent)

        Returns:
            PopulateJob tracking the clones

        Raises:
            Sync mode: whatever the cloner raises; earlier clones stay in the pool.
            RuntimeError if the pool has been shut down (async mode).
        """
        self._land_finished()
        empty = PopulateJob(category=category, count=0)
        empty.mark_done()

        if template is None:
            return self._fail(InvalidArgument("Template must not be None"), empty)
        if not self._valid_count(count):
            return self._fail(InvalidArgument(f"Count must be a non-negative int, got {count!r}"), empty)
        if category not in self.available:
            return self._fail(CategoryNotFound(category), empty)
        if count == 0:
            return empty

        job = PopulateJob(
            category=category,
            count=count,
            template=template,
            parent=parent if parent is not None else self.config.default_parent,
        )
        logger.debug("Populating %r with %d clone(s)", category, count)
        self.populator.submit(job)
        if not self.populator.async_mode:
            self._land_finished()
            if job.error is not None:
                self._errors.remove(job.error)
                raise job.error
        return job

    def checkout(self, category: str, name: str, count: Optional[int] = None, item: Any = None):
        """
        Take items from the front of a category and mark them in use.

        Args:
            category: Category to take from
            name: Holder key recorded for the checkout
            count: If given, take up to this many items as a list
            item: If given, check out this exact available item (e.g. from find())

        Returns:
            The item (or None if empty) when count is None,
            otherwise a list of up to `count` items
        """
        self._land_finished()
        empty = None if count is None else []

        if category not in self.available:
            return self._fail(CategoryNotFound(category), empty)
        if not self._valid_name(name):
            return self._fail(InvalidArgument(f"Checkout name must be a non-empty string, got {name!r}"), empty)
        if count is not None and not self._valid_count(count):
            return self._fail(InvalidArgument(f"Count must be a non-negative int, got {count!r}"), empty)

        items = self.available[category]
        if item is not None:
            if count is not None:
                return self._fail(InvalidArgument("Pass either item or count, not both"), empty)
            if not self._take(items, item):
                return self._fail(InvalidArgument(f"Item {item!r} is not available in {category!r}"), None)
            self._track(item, category, name)
            return item

        if count is None:
            if not items:
                return None
            taken = items.popleft()
            self._track(taken, category, name)
            return taken

        batch = [items.popleft() for _ in range(min(count, len(items)))]
        for taken in batch:
            self._track(taken, category, name)
        return batch

    def remove(self, category: str, name: str, count: int = 1, item: Any = None) -> List[Any]:
        """
        Discard up to `count` items from the front of a category.

        Only available items are touched; checked-out items stay in use.
        Each discarded item goes through on_discard if set. Passing `item`
        discards that exact available item instead.

        Returns:
            The discarded items
        """
        self._land_finished()

        if category not in self.available:
            return self._fail(CategoryNotFound(category), [])
        if not self._valid_name(name):
            return self._fail(InvalidArgument(f"Remove name must be a non-empty string, got {name!r}"), [])
        if not self._valid_count(count):
            return self._fail(InvalidArgument(f"Count must be a non-negative int, got {count!r}"), [])

        items = self.available[category]
        if item is not None:
            if not self._take(items, item):
                return self._fail(InvalidArgument(f"Item {item!r} is not available in {category!r}"), [])
            self._discard(item)
            return [item]

        discarded = []
        for _ in range(count):
            if not items:
                logger.warning("Category %r is empty, removed %d of %d requested (%s)",
                               category, len(discarded), count, name)
                break
            taken = items.popleft()
            discarded.append(taken)
            self._discard(taken)
        return discarded

    def return_to_pool(self, item: Any) -> bool:
        """
        Release a checked-out item back to the end of its origin category.

        Returns:
            True if returned, False if it failed in lenient mode
        """
        self._land_finished()

        record = self._record(item)
        if record is None:
            return self._fail(ItemNotInUse(item), False)
        if record.category not in self.available:
            return self._fail(CategoryNotFound(record.category), False)

        del self.in_use[id(item)]
        self.available[record.category].append(item)
        logger.debug("Returned item to %r (held by %s)", record.category, record.holder)
        return True

    def find(self, category: str, item_name: str) -> Optional[Any]:
        """Peek at the first available item whose `name` matches. Doesn't check it out."""
        self._land_finished()

        if category not in self.available:
            return self._fail(CategoryNotFound(category), None)
        if not self._valid_name(item_name):
            return self._fail(InvalidArgument(f"Item name must be a non-empty string, got {item_name!r}"), None)

        for item in self.available[category]:
            if getattr(item, "name", None) == item_name:
                return item
        return None

    def drop_category(self, name: str) -> List[Any]:
        """
        Delete a category, discarding its available items.

        Items checked out from it stay in use; returning them fails with
        CategoryNotFound until the category is created again.
        """
        self._land_finished()

        if name not in self.available:
            return self._fail(CategoryNotFound(name), [])

        items = list(self.available.pop(name))
        for item in items:
            self._discard(item)
        logger.debug("Dropped category %r (%d available item(s) discarded)", name, len(items))
        return items

    def collect(self) -> int:
        """
        Land clones from finished populate jobs and surface clone failures.

        Every pool call lands finished clones on its own; collect() is where
        a failed job's exception is raised. Failures are raised one per call,
        oldest first, so none of them get lost.

        Returns:
            Number of items added to the pool
        """
        landed = self._land_finished()
        if self._errors:
            raise self._errors.pop(0)
        return landed

    def drain(self, timeout: float = 1.0) -> int:
        """Wait for pending populate jobs, land them, and raise the oldest clone failure."""
        landed = self._land(self.populator.drain(timeout))
        return landed + self.collect()

    def shutdown(self) -> None:
        """Stop the population worker (async mode only). Queued jobs fail."""
        self.populator.shutdown()
        self._land_finished()

    def categories(self) -> List[str]:
        """Get category names in creation order."""
        return list(self.available)

    def has_category(self, name: str) -> bool:
        return name in self.available

    def num_available(self, category: str) -> int:
        """Get number of available items in a category."""
        self._land_finished()
        if category not in self.available:
            return self._fail(CategoryNotFound(category), 0)
        return len(self.available[category])

    def num_in_use(self, category: Optional[str] = None) -> int:
        """Get number of checked-out items, optionally for one origin category."""
        if category is None:
            return len(self.in_use)
        return sum(1 for r in self.in_use.values() if r.category == category)

    def is_in_use(self, item: Any) -> bool:
        return self._record(item) is not None

    def holder_of(self, item: Any) -> Optional[str]:
        record = self._record(item)
        return record.holder if record else None

    def origin_of(self, item: Any) -> Optional[str]:
        record = self._record(item)
        return record.category if record else None

    def stats(self) -> PoolStats:
        """Snapshot of available/in-use counts per category."""
        self._land_finished()
        stats = PoolStats(pending_jobs=self.populator.num_pending, pending_errors=len(self._errors))
        for name, items in self.available.items():
            stats.available[name] = len(items)
            stats.in_use[name] = 0
        for record in self.in_use.values():
            stats.in_use[record.category] = stats.in_use.get(record.category, 0) + 1
        return stats

    def _land_finished(self) -> int:
        return self._land(self.populator.poll_all())

    def _land(self, jobs: List[PopulateJob]) -> int:
        """Move clones from finished jobs into their categories, queueing any failures."""
        landed = 0
        for job in jobs:
            if job.category in self.available:
                self.available[job.category].extend(job.items)
                landed += len(job.items)
            else:
                logger.warning("Category %r dropped before %d clone(s) landed", job.category, len(job.items))
                for item in job.items:
                    self._discard(item)
            if job.error is not None:
                self._errors.append(job.error)
        return landed

    @staticmethod
    def _take(items: Deque[Any], item: Any) -> bool:
        # identity, not equality: pooled clones usually compare equal
        for i, candidate in enumerate(items):
            if candidate is item:
                del items[i]
                return True
        return False

    def _track(self, item: Any, category: str, holder: str) -> None:
        self.in_use[id(item)] = InUseRecord(item=item, category=category, holder=holder)
        logger.debug("Checked out item from %r to %s", category, holder)

    def _record(self, item: Any) -> Optional[InUseRecord]:
        record = self.in_use.get(id(item))
        return record if record is not None and record.item is item else None

    def _discard(self, item: Any) -> None:
        logger.debug("Discarding %r", item)
        if self.on_discard is not None:
            self.on_discard(item)

    def _fail(self, error: PoolError, result):
        if self.config.strict:
            raise error
        logger.warning("%s", error)
        return result

    @staticmethod
    def _valid_name(name: Any) -> bool:
        return isinstance(name, str) and name != ""

    @staticmethod
    def _valid_count(count: Any) -> bool:
        return isinstance(count, int) and not isinstance(count, bool) and count >= 0
