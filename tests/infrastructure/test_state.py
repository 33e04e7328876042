import json
import unittest

import numpy as np

from ndgrad import (
    DType,
    IStateful,
    ShapeMismatchError,
    Tensor,
    UnsupportedDTypeError,
    extract_state,
    load_state_,
    tensor_from_state,
    tensor_to_state,
)


class TinyLinear:
    def __init__(self) -> None:
        self.weight = Tensor.of([[1.0, 2.0], [3.0, 4.0]], requires_grad=True)
        self.bias = Tensor.of([0, 1], dtype="int32", requires_grad=False)

    def named_tensors(self):
        return [("fc.weight", self.weight), ("fc.bias", self.bias)]


class TestTensorState(unittest.TestCase):
    def test_export_triple(self) -> None:
        t = Tensor.of([[1.0, 2.0], [3.0, 4.0]], dtype="float32")
        self.assertEqual(
            tensor_to_state(t),
            {"dtype": "float32", "shape": [2, 2], "data": [1.0, 2.0, 3.0, 4.0]},
        )
        self.assertEqual(t.to_state(), tensor_to_state(t))

    def test_round_trip_through_json(self) -> None:
        t = Tensor.random((3, 2), seed=3, dtype="float64")
        back = Tensor.from_state(json.loads(json.dumps(t.to_state())))
        self.assertTrue(back.equals(t))
        self.assertTrue(back.is_leaf)
        self.assertIsNone(back.grad)

    def test_scalar_and_bool_states(self) -> None:
        s = Tensor.of(True).to_state()
        self.assertEqual(s, {"dtype": "bool", "shape": [], "data": [True]})
        self.assertTrue(tensor_from_state(s).equals(Tensor.of(True)))

    def test_invalid_states(self) -> None:
        with self.assertRaises(KeyError):
            tensor_from_state({"dtype": "float32", "shape": [1]})
        with self.assertRaises(ShapeMismatchError):
            tensor_from_state({"dtype": "float32", "shape": [3], "data": [1.0, 2.0]})
        with self.assertRaises(UnsupportedDTypeError):
            tensor_from_state({"dtype": "float8", "shape": [1], "data": [1.0]})


class TestObjectState(unittest.TestCase):
    def test_stateful_protocol(self) -> None:
        self.assertIsInstance(TinyLinear(), IStateful)
        self.assertNotIsInstance(object(), IStateful)

    def test_extract_preserves_order(self) -> None:
        state = extract_state(TinyLinear())
        self.assertEqual(list(state), ["fc.weight", "fc.bias"])
        self.assertEqual(state["fc.bias"]["dtype"], "int32")

    def test_load_into_fresh_object(self) -> None:
        source = TinyLinear()
        source.weight.update(np.array([[5.0, 6.0], [7.0, 8.0]]))
        state = extract_state(source)

        target = TinyLinear()
        (target.weight * 2.0).sum().backward()
        load_state_(target, state)
        self.assertEqual(target.weight.tolist(), [[5.0, 6.0], [7.0, 8.0]])
        self.assertIsNone(target.weight.grad)
        self.assertTrue(target.weight.is_leaf)

    def test_load_casts_into_existing_dtype(self) -> None:
        target = TinyLinear()
        states = extract_state(TinyLinear())
        states["fc.bias"] = {"dtype": "float64", "shape": [2], "data": [2.7, -1.2]}
        load_state_(target, states)
        self.assertIs(target.bias.dtype, DType.INT32)
        self.assertEqual(target.bias.tolist(), [2, -1])

    def test_load_errors(self) -> None:
        target = TinyLinear()
        states = extract_state(TinyLinear())
        del states["fc.bias"]
        with self.assertRaises(KeyError):
            load_state_(target, states)

        states = extract_state(TinyLinear())
        states["fc.bias"] = {"dtype": "int32", "shape": [3], "data": [1, 2, 3]}
        with self.assertRaises(ShapeMismatchError):
            load_state_(target, states)

    def test_non_stateful_objects_rejected(self) -> None:
        with self.assertRaises(TypeError):
            extract_state(object())
        with self.assertRaises(TypeError):
            load_state_(object(), {})


if __name__ == "__main__":
    unittest.main()
