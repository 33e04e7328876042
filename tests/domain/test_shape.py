import unittest

from ndgrad import Shape, ShapeMismatchError


class TestShape(unittest.TestCase):
    def test_rank_and_size(self) -> None:
        s = Shape((2, 3, 4))
        self.assertEqual(s.rank(), 3)
        self.assertEqual(s.size(), 24)
        self.assertEqual(len(s), 3)
        self.assertEqual(list(s), [2, 3, 4])

    def test_scalar_shape_has_one_element(self) -> None:
        s = Shape(())
        self.assertEqual(s.rank(), 0)
        self.assertEqual(s.size(), 1)

    def test_zero_extent_gives_empty_size(self) -> None:
        self.assertEqual(Shape((2, 0, 5)).size(), 0)

    def test_negative_dimension_rejected(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            Shape((2, -1))

    def test_of_normalizes_inputs(self) -> None:
        s = Shape((2, 3))
        self.assertIs(Shape.of(s), s)
        self.assertEqual(Shape.of([2, 3]), s)
        self.assertEqual(Shape.of(5), Shape((5,)))

    def test_equality_with_tuples_and_hash(self) -> None:
        self.assertEqual(Shape((1, 2)), (1, 2))
        self.assertEqual(Shape((1, 2)), [1, 2])
        self.assertNotEqual(Shape((1, 2)), Shape((2, 1)))
        self.assertEqual(len({Shape((1, 2)), Shape((1, 2))}), 1)

    def test_indexing_and_slicing(self) -> None:
        s = Shape((2, 3, 4))
        self.assertEqual(s[0], 2)
        self.assertEqual(s[-1], 4)
        self.assertIsInstance(s[1:], Shape)
        self.assertEqual(s[1:], (3, 4))

    def test_str_and_repr(self) -> None:
        self.assertEqual(str(Shape((2, 3))), "[2, 3]")
        self.assertIn("2, 3", repr(Shape((2, 3))))


if __name__ == "__main__":
    unittest.main()
