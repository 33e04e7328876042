import unittest

import numpy as np

from ndgrad import DType, UnsupportedDTypeError


class TestDTypeLookup(unittest.TestCase):
    def test_from_name_is_case_insensitive(self) -> None:
        self.assertIs(DType.from_name("float32"), DType.FLOAT32)
        self.assertIs(DType.from_name("INT64"), DType.INT64)

    def test_from_name_unknown_raises(self) -> None:
        with self.assertRaises(UnsupportedDTypeError):
            DType.from_name("complex128")

    def test_of_accepts_numpy_and_python_types(self) -> None:
        self.assertIs(DType.of(np.float32), DType.FLOAT32)
        self.assertIs(DType.of(np.dtype("int32")), DType.INT32)
        self.assertIs(DType.of(bool), DType.BOOL)
        self.assertIs(DType.of(int), DType.INT64)
        self.assertIs(DType.of(float), DType.FLOAT64)
        self.assertIs(DType.of(DType.BOOL), DType.BOOL)

    def test_of_rejects_unsupported_numpy_dtype(self) -> None:
        with self.assertRaises(UnsupportedDTypeError):
            DType.of(np.complex64)

    def test_kind_flags(self) -> None:
        self.assertTrue(DType.BOOL.is_bool)
        self.assertTrue(DType.INT32.is_integer)
        self.assertTrue(DType.FLOAT64.is_floating)
        self.assertFalse(DType.INT64.is_floating)

    def test_accumulator(self) -> None:
        self.assertEqual(DType.FLOAT32.accumulator, np.float64)
        self.assertEqual(DType.INT32.accumulator, np.int64)
        self.assertEqual(DType.BOOL.accumulator, np.int64)

    def test_str_is_stable_name(self) -> None:
        self.assertEqual(str(DType.FLOAT32), "float32")


class TestDTypeParse(unittest.TestCase):
    def test_bool_is_positive_test(self) -> None:
        self.assertIs(DType.BOOL.parse(0.5), True)
        self.assertIs(DType.BOOL.parse(0), False)
        self.assertIs(DType.BOOL.parse(-3), False)

    def test_integer_truncates_toward_zero(self) -> None:
        self.assertEqual(DType.INT32.parse(2.9), 2)
        self.assertEqual(DType.INT64.parse(-2.9), -2)
        self.assertEqual(DType.INT64.parse(True), 1)

    def test_float_accepts_numeric_strings(self) -> None:
        self.assertEqual(DType.FLOAT64.parse("1.5"), 1.5)

    def test_non_numeric_raises(self) -> None:
        with self.assertRaises(UnsupportedDTypeError):
            DType.FLOAT32.parse("abc")
        with self.assertRaises(UnsupportedDTypeError):
            DType.FLOAT32.parse(None)
        with self.assertRaises(UnsupportedDTypeError):
            DType.FLOAT32.parse(1 + 2j)

    def test_integer_rejects_non_finite(self) -> None:
        with self.assertRaises(UnsupportedDTypeError):
            DType.INT64.parse(float("nan"))


class TestDTypeCast(unittest.TestCase):
    def test_cast_follows_parse_rules(self) -> None:
        np.testing.assert_array_equal(
            DType.BOOL.cast([-1.0, 0.0, 0.2]), np.array([False, False, True])
        )
        np.testing.assert_array_equal(
            DType.INT32.cast([1.7, -1.7]), np.array([1, -1], dtype=np.int32)
        )
        self.assertEqual(DType.FLOAT32.cast([1, 2]).dtype, np.float32)

    def test_cast_rejects_strings_that_are_not_numbers(self) -> None:
        with self.assertRaises(UnsupportedDTypeError):
            DType.FLOAT64.cast(["x"])

    def test_cast_rejects_nan_into_integers(self) -> None:
        with self.assertRaises(UnsupportedDTypeError):
            DType.INT32.cast([1.0, np.nan])


if __name__ == "__main__":
    unittest.main()
