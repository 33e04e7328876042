import unittest

import numpy as np

from ndgrad import DType, IndexOutOfRangeError, ShapeMismatchError, Tensor, no_grad


def numeric_grad(fn, x: np.ndarray, eps: float = 1e-6) -> np.ndarray:
    def scalar(arr: np.ndarray) -> float:
        with no_grad():
            return fn(Tensor.of(arr, dtype="float64")).sum().item()

    x = np.asarray(x, dtype=np.float64)
    grad = np.zeros_like(x)
    for idx in np.ndindex(*x.shape):
        xp = x.copy()
        xm = x.copy()
        xp[idx] += eps
        xm[idx] -= eps
        grad[idx] = (scalar(xp) - scalar(xm)) / (2 * eps)
    return grad


class TestSum(unittest.TestCase):
    def setUp(self) -> None:
        self.x_np = np.arange(6, dtype=np.float64).reshape(2, 3)

    def test_full_reduction_is_scalar(self) -> None:
        out = Tensor.of(self.x_np).sum()
        self.assertEqual(out.shape, ())
        self.assertEqual(out.item(), 15.0)

    def test_axis_reduction(self) -> None:
        t = Tensor.of(self.x_np)
        np.testing.assert_allclose(t.sum(0).to_numpy(), [3.0, 5.0, 7.0])
        self.assertEqual(t.sum(1, keepdim=True).shape, (2, 1))
        np.testing.assert_allclose(t.sum(-1).to_numpy(), [3.0, 12.0])
        self.assertEqual(t.sum(keepdim=True).shape, (1, 1))

    def test_invalid_axis(self) -> None:
        with self.assertRaises(IndexOutOfRangeError):
            Tensor.of(self.x_np).sum(2)

    def test_integer_sum_keeps_dtype(self) -> None:
        out = Tensor.of([[1, 2], [3, 4]], dtype="int32").sum(0)
        self.assertIs(out.dtype, DType.INT32)
        self.assertEqual(out.tolist(), [4, 6])

    def test_backward_without_keepdim(self) -> None:
        x = Tensor.of(self.x_np, requires_grad=True)
        x.sum(1).backward(Tensor.of([1.0, 2.0], requires_grad=False))
        np.testing.assert_allclose(x.grad.to_numpy(), [[1.0] * 3, [2.0] * 3])

    def test_backward_with_keepdim(self) -> None:
        x = Tensor.of(self.x_np, requires_grad=True)
        x.sum(0, keepdim=True).backward(Tensor.of([[1.0, 2.0, 3.0]], requires_grad=False))
        np.testing.assert_allclose(x.grad.to_numpy(), [[1.0, 2.0, 3.0]] * 2)


class TestMeanVar(unittest.TestCase):
    def test_mean(self) -> None:
        t = Tensor.of([[1.0, 2.0], [3.0, 4.0]])
        self.assertEqual(t.mean().item(), 2.5)
        np.testing.assert_allclose(t.mean(0).to_numpy(), [2.0, 3.0])
        self.assertEqual(t.mean(1, keepdim=True).shape, (2, 1))

    def test_mean_backward(self) -> None:
        x = Tensor.of([[1.0, 2.0], [3.0, 4.0]], requires_grad=True)
        x.mean().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), np.full((2, 2), 0.25))

        x = Tensor.of([[1.0, 2.0], [3.0, 4.0]], requires_grad=True)
        x.mean(1).sum().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), np.full((2, 2), 0.5))

    def test_mean_of_empty_raises(self) -> None:
        with self.assertRaises(ValueError):
            Tensor.zeros(0).mean()

    def test_var(self) -> None:
        t = Tensor.of([1.0, 2.0, 3.0, 4.0])
        self.assertAlmostEqual(t.var().item(), 1.25)
        x = np.array([[0.5, -1.0, 2.0], [1.0, 3.0, -2.0]])
        np.testing.assert_allclose(Tensor.of(x).var(1).to_numpy(), x.var(axis=1))

    def test_var_grad(self) -> None:
        x = np.array([[0.5, -1.0, 2.0], [1.0, 3.0, -2.0]])
        t = Tensor.of(x, requires_grad=True)
        t.var(1).sum().backward()
        np.testing.assert_allclose(
            t.grad.to_numpy(), numeric_grad(lambda u: u.var(1), x), rtol=1e-4, atol=1e-6
        )


class TestExtrema(unittest.TestCase):
    def test_max_min(self) -> None:
        t = Tensor.of([[1.0, 5.0], [7.0, 2.0]], requires_grad=True)
        self.assertEqual(t.max().item(), 7.0)
        self.assertEqual(t.min().item(), 1.0)
        self.assertEqual(t.max(1).tolist(), [5.0, 7.0])
        self.assertEqual(t.min(0, keepdim=True).shape, (1, 2))
        self.assertFalse(t.max().requires_grad)

    def test_extrema_of_empty_raise(self) -> None:
        with self.assertRaises(ValueError):
            Tensor.zeros(0).max()
        with self.assertRaises(ValueError):
            Tensor.zeros(0).min()


class TestLayoutBackward(unittest.TestCase):
    def test_reshape_backward(self) -> None:
        x = Tensor.of(np.arange(6.0), requires_grad=True)
        (x.reshape(2, 3) * Tensor.of([1.0, 2.0, 3.0], requires_grad=False)).sum().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [1.0, 2.0, 3.0, 1.0, 2.0, 3.0])

    def test_transpose_backward(self) -> None:
        x = Tensor.of(np.arange(6.0).reshape(2, 3), requires_grad=True)
        w = Tensor.of(np.arange(6.0).reshape(3, 2), requires_grad=False)
        (x.T * w).sum().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), w.to_numpy().T)

    def test_broadcast_backward(self) -> None:
        x = Tensor.of([[1.0], [2.0]], requires_grad=True)
        x.broadcast_to(3, 2, 4).sum().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [[12.0], [12.0]])

    def test_squeeze_unsqueeze_backward(self) -> None:
        x = Tensor.of([1.0, 2.0], requires_grad=True)
        x.unsqueeze(0).squeeze(0).sum().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [1.0, 1.0])

    def test_reshape_size_mismatch(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            Tensor.zeros(2, 3).reshape(5)


if __name__ == "__main__":
    unittest.main()
