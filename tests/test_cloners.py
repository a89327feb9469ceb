"""Tests for built-in cloners."""

from tinygrad import Tensor, dtypes

from tinypool.core.cloners import deepcopy_clone, tensor_clone
from tinypool.core.pool import Pool


class Node:
    def __init__(self, children=None, parent=None):
        self.children = children if children is not None else []
        self.parent = parent


class TestDeepcopyClone:
    def test_clone_is_independent(self):
        template = Node(children=[Node()])
        clone = deepcopy_clone(template)

        assert clone is not template
        assert clone.children[0] is not template.children[0]

    def test_clone_reparented(self):
        clone = deepcopy_clone(Node(parent="old"), parent="new")
        assert clone.parent == "new"

    def test_clone_keeps_parent_when_none_given(self):
        clone = deepcopy_clone(Node(parent="old"))
        assert clone.parent == "old"

    def test_clone_without_parent_slot(self):
        clone = deepcopy_clone({"hp": 10}, parent="Workspace")
        assert clone == {"hp": 10}


class TestTensorClone:
    def test_tensor_clone_copies_values(self):
        template = Tensor([[1.0, 2.0], [3.0, 4.0]]).realize()
        clone = tensor_clone(template)

        assert clone is not template
        assert clone.shape == template.shape
        assert clone.dtype == template.dtype
        assert clone.tolist() == [[1.0, 2.0], [3.0, 4.0]]

    def test_tensor_clone_keeps_dtype(self):
        template = Tensor([1, 2, 3], dtype=dtypes.int32).realize()
        clone = tensor_clone(template)
        assert clone.dtype == dtypes.int32
        assert clone.tolist() == [1, 2, 3]

    def test_tensor_clone_on_template_device(self):
        template = Tensor.zeros(4, 4).contiguous().realize()
        assert tensor_clone(template).device == template.device
        assert tensor_clone(template, parent=template.device).device == template.device

    def test_pool_of_tensor_buffers(self):
        pool = Pool(cloner=tensor_clone)
        pool.create_category("scratch")
        pool.populate(Tensor.zeros(8, 8).contiguous().realize(), "scratch", count=2)

        buf = pool.checkout("scratch", "decode")
        assert buf.shape == (8, 8)
        assert pool.num_available("scratch") == 1

        pool.return_to_pool(buf)
        assert pool.num_available("scratch") == 2

    def test_tensor_clone_half_precision(self):
        """Low-precision dtypes are copied on device, not through Python floats."""
        template = Tensor([0.5, 1.25, -3.0], dtype=dtypes.float16).realize()
        clone = tensor_clone(template)

        assert clone.dtype == dtypes.float16
        assert clone.tolist() == [0.5, 1.25, -3.0]

    def test_tensor_clone_is_independent(self):
        template = Tensor([1.0, 2.0]).realize()
        clone = tensor_clone(template)

        template.assign(Tensor([9.0, 9.0])).realize()

        assert clone.tolist() == [1.0, 2.0]
