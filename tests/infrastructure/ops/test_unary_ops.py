import math
import unittest
import warnings

import numpy as np

from ndgrad import DType, Tensor, config_override, no_grad


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


def analytic_grad(fn, x: np.ndarray) -> np.ndarray:
    t = Tensor.of(np.asarray(x, dtype=np.float64), dtype="float64", requires_grad=True)
    fn(t).sum().backward()
    return t.grad.to_numpy()


def gelu_reference(x: np.ndarray) -> np.ndarray:
    return 0.5 * x * (1 + np.tanh(math.sqrt(2 / math.pi) * (x + 0.044715 * x ** 3)))


class GradCheckMixin:
    def assertGradMatches(self, fn, x, rtol=1e-4, atol=1e-6) -> None:
        np.testing.assert_allclose(
            analytic_grad(fn, x), numeric_grad(fn, x), rtol=rtol, atol=atol
        )


class TestElementwiseMath(GradCheckMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.x = np.array([[0.5, 1.0, 2.0], [3.0, 0.25, 1.5]])

    def test_exp(self) -> None:
        t = Tensor.of(self.x, requires_grad=False)
        np.testing.assert_allclose(t.exp().to_numpy(), np.exp(self.x))
        self.assertGradMatches(lambda t: t.exp(), self.x)

    def test_log(self) -> None:
        t = Tensor.of(self.x, requires_grad=False)
        np.testing.assert_allclose(t.log().to_numpy(), np.log(self.x))
        self.assertGradMatches(lambda t: t.log(), self.x)

    def test_log_backward_is_clamped_at_zero(self) -> None:
        x = Tensor.of([0.0], requires_grad=True)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            y = x.log()
        self.assertEqual(y.item(), -np.inf)
        y.backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [1e7])

        x = Tensor.of([0.0], requires_grad=True)
        with config_override(log_epsilon=1e-3):
            y = x.log()
        y.backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [1e3])

    def test_sqrt_and_root(self) -> None:
        t = Tensor.of(self.x, requires_grad=False)
        np.testing.assert_allclose(t.sqrt().to_numpy(), np.sqrt(self.x))
        np.testing.assert_allclose(t.root(3).to_numpy(), np.cbrt(self.x))
        self.assertGradMatches(lambda t: t.sqrt(), self.x)
        self.assertGradMatches(lambda t: t.root(3), self.x)

    def test_root_degree_zero(self) -> None:
        with self.assertRaises(ValueError):
            Tensor.of([1.0]).root(0)

    def test_clip(self) -> None:
        x = Tensor.of([-1.0, 0.5, 2.0], requires_grad=True)
        y = x.clip(0.0, 1.0)
        self.assertEqual(y.tolist(), [0.0, 0.5, 1.0])
        y.sum().backward()
        self.assertEqual(x.grad.tolist(), [0.0, 1.0, 0.0])
        with self.assertRaises(ValueError):
            x.clip(1.0, 0.0)

    def test_integer_input_keeps_dtype(self) -> None:
        out = Tensor.of([1, 4, 9]).sqrt()
        self.assertIs(out.dtype, DType.INT64)
        self.assertEqual(out.tolist(), [1, 2, 3])


class TestActivations(GradCheckMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.x = np.array([[-2.0, -0.5, 0.3], [0.7, 1.5, -3.0]])

    def test_relu(self) -> None:
        x = Tensor.of([-1.0, 2.0], requires_grad=True)
        y = x.relu()
        self.assertEqual(y.tolist(), [0.0, 2.0])
        y.sum().backward()
        self.assertEqual(x.grad.tolist(), [0.0, 1.0])

    def test_leaky_relu(self) -> None:
        x = Tensor.of([-2.0, 3.0], requires_grad=True)
        y = x.leaky_relu(0.1)
        np.testing.assert_allclose(y.to_numpy(), [-0.2, 3.0])
        y.sum().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [0.1, 1.0])
        self.assertGradMatches(lambda t: t.leaky_relu(), self.x)

    def test_sigmoid(self) -> None:
        t = Tensor.of(self.x, requires_grad=False)
        np.testing.assert_allclose(t.sigmoid().to_numpy(), 1 / (1 + np.exp(-self.x)))
        self.assertGradMatches(lambda t: t.sigmoid(), self.x)

    def test_sigmoid_is_stable_for_large_inputs(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            out = Tensor.of([-1000.0, 1000.0], requires_grad=False).sigmoid()
        np.testing.assert_allclose(out.to_numpy(), [0.0, 1.0])

    def test_tanh(self) -> None:
        t = Tensor.of(self.x, requires_grad=False)
        np.testing.assert_allclose(t.tanh().to_numpy(), np.tanh(self.x))
        self.assertGradMatches(lambda t: t.tanh(), self.x)

    def test_gelu(self) -> None:
        t = Tensor.of(self.x, requires_grad=False)
        np.testing.assert_allclose(t.gelu().to_numpy(), gelu_reference(self.x))
        self.assertGradMatches(lambda t: t.gelu(), self.x)

    def test_softmax(self) -> None:
        t = Tensor.of(self.x, requires_grad=False)
        out = t.softmax().to_numpy()
        e = np.exp(self.x - self.x.max(axis=-1, keepdims=True))
        np.testing.assert_allclose(out, e / e.sum(axis=-1, keepdims=True))
        np.testing.assert_allclose(out.sum(axis=-1), [1.0, 1.0])

    def test_softmax_temperature_and_dim(self) -> None:
        t = Tensor.of(self.x, requires_grad=False)
        out = t.softmax(dim=0, temperature=2.0).to_numpy()
        z = self.x / 2.0
        e = np.exp(z - z.max(axis=0, keepdims=True))
        np.testing.assert_allclose(out, e / e.sum(axis=0, keepdims=True))
        with self.assertRaises(ValueError):
            t.softmax(temperature=0)

    def test_softmax_grad(self) -> None:
        w = Tensor.of([[1.0, -2.0, 0.5], [0.3, 0.0, 2.0]], requires_grad=False)
        self.assertGradMatches(lambda t: t.softmax() * w, self.x)
        self.assertGradMatches(lambda t: t.softmax(0, 0.5) * w, self.x)


if __name__ == "__main__":
    unittest.main()
