import unittest

from blendkin.thermo.cubic import CubicEOSSolver, RootCase, solve_cubic


class TestSolveCubic(unittest.TestCase):
    def test_single_real_root(self):
        # Z^3 + Z - 2 = (Z - 1)(Z^2 + Z + 2)
        root = solve_cubic(-2.0, 1.0, 0.0)
        self.assertEqual(root.case, RootCase.SINGLE)
        self.assertAlmostEqual(root.value, 1.0, places=10)
        self.assertFalse(root.reduced_confidence)

    def test_three_roots_takes_smallest_non_negative(self):
        # (Z - 1)(Z - 2)(Z - 3)
        root = solve_cubic(-6.0, 11.0, -6.0)
        self.assertEqual(root.case, RootCase.THREE_REAL)
        self.assertAlmostEqual(root.value, 1.0, places=10)
        self.assertTrue(root.reduced_confidence)

    def test_three_roots_negative_minimum_takes_largest(self):
        # (Z + 1)(Z - 2)(Z - 3)
        root = solve_cubic(6.0, 1.0, -4.0)
        self.assertEqual(root.case, RootCase.THREE_REAL)
        self.assertAlmostEqual(root.value, 3.0, places=10)

    def test_repeated_root_returns_simple_root(self):
        # (Z - 1)^2 (Z - 2): the closed form lands on the simple root 2,
        # not the double root 1, and flags the result
        with self.assertLogs("blendkin.thermo.cubic", level="WARNING"):
            root = solve_cubic(-2.0, 5.0, -4.0)
        self.assertEqual(root.case, RootCase.REPEATED)
        self.assertAlmostEqual(root.value, 2.0, places=8)
        self.assertTrue(root.reduced_confidence)


class TestCubicEOSSolver(unittest.TestCase):
    def test_low_pressure_compressibility_is_ideal(self):
        solver = CubicEOSSolver()
        root = solver.peng_robinson_z(1.0e-4, 1.0e-4)
        self.assertAlmostEqual(root.value, 1.0, places=3)
        self.assertIs(solver.last_root, root)

    def test_attraction_lowers_compressibility(self):
        solver = CubicEOSSolver()
        z = solver.peng_robinson_z(0.05, 0.01).value
        self.assertLess(z, 1.0)
        self.assertGreater(z, 0.01)


if __name__ == "__main__":
    unittest.main()
