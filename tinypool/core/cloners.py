"""Clone collaborators used by Pool.populate.

A cloner takes (template, parent) and returns a new, independent item.
`parent` is the placement context for the clone (for tensors, the device).
"""

import copy
from typing import Any, Optional

from tinygrad import Device, Tensor


def deepcopy_clone(template: Any, parent: Any = None) -> Any:
    """Deep-copy the template, re-parenting the clone if it has a `parent` slot."""
    clone = copy.deepcopy(template)
    if parent is not None and hasattr(clone, "parent"):
        clone.parent = parent
    return clone


def tensor_clone(template: Tensor, parent: Optional[str] = None) -> Tensor:
    """
    Realize an independent copy of a tensor template.

    Used to pre-allocate scratch buffers so hot loops don't pay for allocation.
    The copy lands on `parent` (a device name) or on the template's device,
    and is done by tinygrad on-device, so every dtype round-trips exactly.

    Args:
        template: Tensor to copy (shape, dtype and values are preserved)
        parent: Target device, e.g. "CPU"

    Returns:
        New realized Tensor with its own buffer
    """
    device = Device.canonicalize(parent) if parent is not None else template.device
    if device != template.device:
        return template.to(device).realize()
    return template.clone().realize()
