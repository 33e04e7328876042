import unittest

from ndgrad import (
    IndexOutOfRangeError,
    InvalidAutogradStateError,
    NdGradError,
    ShapeMismatchError,
    UnsupportedDTypeError,
)


class TestErrorTaxonomy(unittest.TestCase):
    def test_errors_share_base_class(self) -> None:
        for cls in (
            ShapeMismatchError,
            IndexOutOfRangeError,
            InvalidAutogradStateError,
            UnsupportedDTypeError,
        ):
            self.assertTrue(issubclass(cls, NdGradError))

    def test_errors_derive_from_builtins(self) -> None:
        self.assertTrue(issubclass(ShapeMismatchError, ValueError))
        self.assertTrue(issubclass(IndexOutOfRangeError, IndexError))
        self.assertTrue(issubclass(InvalidAutogradStateError, RuntimeError))
        self.assertTrue(issubclass(UnsupportedDTypeError, TypeError))

    def test_shape_mismatch_records_operands(self) -> None:
        err = ShapeMismatchError("broadcast", (2, 3), (3, 2), detail="nope")
        self.assertEqual(err.op, "broadcast")
        self.assertEqual(err.shapes, ((2, 3), (3, 2)))
        self.assertIn("nope", str(err))

    def test_index_error_records_bounds(self) -> None:
        err = IndexOutOfRangeError(5, 3)
        self.assertEqual(err.index, 5)
        self.assertEqual(err.bound, 3)


if __name__ == "__main__":
    unittest.main()
