"""Error taxonomy for pool operations.

Every error leaves the pool untouched and usable. Clone failures raised by
the cloner are never wrapped in these types.
"""


class PoolError(Exception):
    """Base class for pool precondition failures."""


class CategoryNotFound(PoolError, KeyError):
    def __init__(self, category):
        self.category = category
        super().__init__(f"Category {category!r} does not exist")

    def __str__(self) -> str:
        # KeyError repr()s its argument otherwise
        return self.args[0]


class CategoryAlreadyExists(PoolError):
    def __init__(self, category):
        self.category = category
        super().__init__(f"Category {category!r} already exists")


class InvalidArgument(PoolError, ValueError):
    """Bad template, name or count."""


class ItemNotInUse(PoolError):
    def __init__(self, item):
        self.item = item
        super().__init__(f"Item {item!r} is not checked out")
