import unittest

import numpy as np

from ndgrad import DType, ShapeMismatchError, Tensor, UnsupportedDTypeError, no_grad


class TestTensorConstruction(unittest.TestCase):
    def test_zeros_accepts_varargs_and_tuple(self) -> None:
        a = Tensor.zeros(2, 3)
        b = Tensor.zeros((2, 3))
        self.assertEqual(a.shape, (2, 3))
        self.assertEqual(b.shape, (2, 3))
        np.testing.assert_array_equal(a.to_numpy(), np.zeros((2, 3)))

    def test_default_dtype_is_float64(self) -> None:
        self.assertIs(Tensor.zeros(2).dtype, DType.FLOAT64)

    def test_leaf_defaults_to_grad_mode(self) -> None:
        self.assertTrue(Tensor.zeros(2).requires_grad)
        with no_grad():
            self.assertFalse(Tensor.zeros(2).requires_grad)
        self.assertFalse(Tensor.zeros(2, requires_grad=False).requires_grad)

    def test_ones_and_full_parse_through_dtype(self) -> None:
        ones = Tensor.ones(2, 2, dtype="int32")
        self.assertIs(ones.dtype, DType.INT32)
        np.testing.assert_array_equal(ones.to_numpy(), np.ones((2, 2), dtype=np.int32))

        full = Tensor.full((3,), 3.7, dtype=DType.INT64)
        self.assertEqual(full.tolist(), [3, 3, 3])

    def test_of_infers_dtype(self) -> None:
        self.assertIs(Tensor.of([True, False]).dtype, DType.BOOL)
        self.assertIs(Tensor.of([1, 2]).dtype, DType.INT64)
        self.assertIs(Tensor.of([1.5]).dtype, DType.FLOAT64)
        self.assertIs(Tensor.of([1, 2], dtype="float32").dtype, DType.FLOAT32)

    def test_of_scalar_is_zero_dimensional(self) -> None:
        t = Tensor.of(4.0)
        self.assertEqual(t.shape.rank(), 0)
        self.assertEqual(t.item(), 4.0)

    def test_of_rejects_non_numeric(self) -> None:
        with self.assertRaises(UnsupportedDTypeError):
            Tensor.of(["a", "b"])

    def test_of_rejects_ragged_input(self) -> None:
        with self.assertRaises(ValueError):
            Tensor.of([[1.0], [1.0, 2.0]])

    def test_range_and_arange(self) -> None:
        np.testing.assert_array_equal(
            Tensor.range(2, 3).to_numpy(), np.arange(6).reshape(2, 3)
        )
        self.assertEqual(Tensor.arange(0, 10, 3).tolist(), [0, 3, 6, 9])

    def test_arange_rejects_empty_ranges(self) -> None:
        with self.assertRaises(ValueError):
            Tensor.arange(5, 5)
        with self.assertRaises(ValueError):
            Tensor.arange(0, 5, 0)

    def test_random_is_seeded_and_bounded(self) -> None:
        a = Tensor.random((4, 5), -2.0, 3.0, seed=7)
        b = Tensor.random((4, 5), -2.0, 3.0, seed=7)
        self.assertTrue(a.equals(b))
        self.assertTrue(np.all(a.to_numpy() >= -2.0))
        self.assertTrue(np.all(a.to_numpy() < 3.0))

    def test_random_rejects_inverted_bounds(self) -> None:
        with self.assertRaises(ValueError):
            Tensor.random((2,), 1.0, 0.0)

    def test_randint_bounds(self) -> None:
        t = Tensor.randint(-3, 4, (100,), seed=0)
        self.assertIs(t.dtype, DType.INT64)
        arr = t.to_numpy()
        self.assertTrue(np.all(arr >= -3) and np.all(arr < 4))
        with self.assertRaises(ValueError):
            Tensor.randint(2, 2, (3,))

    def test_from_numpy_copies(self) -> None:
        arr = np.array([[1.0, 2.0]], dtype=np.float32)
        t = Tensor.from_numpy(arr)
        arr[0, 0] = 100.0
        self.assertIs(t.dtype, DType.FLOAT32)
        self.assertEqual(t.item(0, 0), 1.0)


class TestTensorStorage(unittest.TestCase):
    def test_data_is_flat(self) -> None:
        t = Tensor.range(2, 3)
        self.assertEqual(t.data.shape, (6,))
        self.assertEqual(t.numel(), 6)
        self.assertEqual(t.dim(), 2)
        self.assertEqual(t.size(), 6)
        self.assertEqual(t.size(-1), 3)
        self.assertEqual(len(t), 2)

    def test_len_of_scalar_raises(self) -> None:
        with self.assertRaises(TypeError):
            len(Tensor.of(1.0))

    def test_copy_from_numpy_checks_shape(self) -> None:
        t = Tensor.zeros(2, 2, requires_grad=False)
        t.copy_from_numpy(np.array([[1, 2], [3, 4]]))
        self.assertEqual(t.tolist(), [[1.0, 2.0], [3.0, 4.0]])
        with self.assertRaises(ShapeMismatchError):
            t.copy_from_numpy(np.zeros(4))

    def test_fill_(self) -> None:
        t = Tensor.zeros(3, dtype="int32").fill_(2.9)
        self.assertEqual(t.tolist(), [2, 2, 2])

    def test_as_dtype_conversions(self) -> None:
        t = Tensor.of([1.7, -1.7, 0.0])
        self.assertEqual(t.as_int().tolist(), [1, -1, 0])
        self.assertEqual(t.as_long().dtype, DType.INT64)
        self.assertEqual(t.as_bool().tolist(), [True, False, False])
        self.assertIs(t.as_float().dtype, DType.FLOAT32)
        self.assertIs(t.as_int().as_double().dtype, DType.FLOAT64)

    def test_equals_is_structural_and_eq_is_identity(self) -> None:
        a = Tensor.of([1.0, 2.0])
        b = Tensor.of([1.0, 2.0])
        self.assertTrue(a.equals(b))
        self.assertFalse(a.equals(b.as_float()))
        self.assertFalse(a == b)
        self.assertTrue(a == a)

    def test_update_commits_values_and_detaches(self) -> None:
        w = Tensor.of([1.0, 2.0], requires_grad=True)
        y = w * 3.0
        y.sum().backward()
        self.assertIsNotNone(w.grad)

        w.update(Tensor.of([5.0, 6.0], requires_grad=False))
        self.assertEqual(w.tolist(), [5.0, 6.0])
        self.assertIsNone(w.grad)
        self.assertTrue(w.is_leaf)
        self.assertTrue(w.requires_grad)

    def test_update_scalar_and_reshape(self) -> None:
        t = Tensor.zeros(2, 2, requires_grad=False)
        t.update(7)
        self.assertEqual(t.tolist(), [[7.0, 7.0], [7.0, 7.0]])
        with self.assertRaises(ShapeMismatchError):
            t.update(np.zeros(3))
        t.update(np.zeros(3), allow_reshape=True)
        self.assertEqual(t.shape, (3,))

    def test_update_without_detach_adopts_history(self) -> None:
        x = Tensor.of([1.0, 2.0], requires_grad=True)
        y = x * 2.0
        holder = Tensor.zeros(2, requires_grad=False)
        holder.update(y, detach=False)
        self.assertIs(holder.operation, y.operation)
        self.assertFalse(holder.is_leaf)

    def test_detach_and_clone(self) -> None:
        x = Tensor.of([1.0, 2.0], requires_grad=True)
        y = x * 2.0
        d = y.detach()
        self.assertFalse(d.requires_grad)
        self.assertTrue(d.is_leaf)
        self.assertIsNone(d.operation)

        c = y.clone()
        self.assertIs(c.operation, y.operation)
        self.assertEqual(c.parents, y.parents)
        c.data[0] = 42.0
        self.assertEqual(y.item(0), 2.0)

    def test_repr_mentions_shape_and_dtype(self) -> None:
        t = Tensor.zeros(2, 3, dtype="float32", requires_grad=False, label="w")
        text = repr(t)
        self.assertIn("[2, 3]", text)
        self.assertIn("float32", text)
        self.assertIn("'w'", text)


if __name__ == "__main__":
    unittest.main()
