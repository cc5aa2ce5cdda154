import unittest
from unittest import mock

import numpy as np
from scipy.sparse.linalg import splu

from blendkin.constants import ONE_ATM
from blendkin.errors import ConfigurationError, SingularSystemError
from blendkin.kinetics import KineticsEngine, QSSAAlgorithm, RxnActiveMgr
from blendkin.models import Arrhenius, ElementaryReaction
from blendkin.thermo import IdealGasPhase

from species_data import make_species

GAS = ("H2", "O2", "H", "O", "OH", "H2O", "N2")


def make_engine(reactions, qss=("HO2", "H2O2")):
    phase = IdealGasPhase(make_species(*GAS))
    phase.set_state_tpx(
        1000.0, ONE_ATM, {"H2": 0.3, "O2": 0.2, "H": 0.01, "O": 0.01, "OH": 0.01, "H2O": 0.17, "N2": 0.3}
    )
    engine = KineticsEngine(phase, algorithm=QSSAAlgorithm(make_species(*qss)))
    for reaction in reactions:
        engine.add_reaction(reaction)
    return engine


def irreversible(reactants, products, a):
    return ElementaryReaction(reactants, products, reversible=False, rate=Arrhenius(a))


class TestQSSAChain(unittest.TestCase):
    """H + O2 -> HO2 -> H2O2 -> 2 OH, with HO2 and H2O2 in steady state."""

    def setUp(self):
        self.k0, self.k1, self.k2, self.k3 = 1.0e9, 1.0e3, 1.0e6, 1.0e4
        self.engine = make_engine(
            [
                irreversible({"H": 1, "O2": 1}, {"HO2": 1}, self.k0),
                irreversible({"HO2": 1}, {"H": 1, "O2": 1}, self.k1),
                irreversible({"HO2": 1, "H2": 1}, {"H2O2": 1, "H": 1}, self.k2),
                irreversible({"H2O2": 1}, {"OH": 2}, self.k3),
            ]
        )
        self.algorithm = self.engine.algorithm

    def gas_conc(self, name):
        phase = self.engine.phase
        return phase.get_concentrations()[phase.species_index(name)]

    def test_species_set(self):
        self.assertEqual(self.engine.n_species, len(GAS) + 2)
        self.assertEqual(self.engine.kinetics_species_index("HO2"), len(GAS))
        self.assertEqual(self.engine.kinetics_species_index("H2O2"), len(GAS) + 1)

    def test_classification(self):
        alg = self.algorithm
        self.assertEqual(alg.rodf, [[1, 2], [3]])
        self.assertEqual(alg.ropf_noqss, [[0], []])
        self.assertEqual(alg.ropf_qss[(1, 0)], [2])
        self.assertEqual(alg.rodr, [[], []])

    def test_steady_state_concentrations(self):
        self.engine.update_rop()
        c_ho2 = self.k0 * self.gas_conc("H") * self.gas_conc("O2") / (
            self.k1 + self.k2 * self.gas_conc("H2")
        )
        c_h2o2 = self.k2 * self.gas_conc("H2") * c_ho2 / self.k3
        self.assertAlmostEqual(self.algorithm.concentrations[0] / c_ho2, 1.0, places=10)
        self.assertAlmostEqual(self.algorithm.concentrations[1] / c_h2o2, 1.0, places=10)

        ropf = self.engine.get_fwd_rates_of_progress()
        self.assertAlmostEqual(ropf[1] / (self.k1 * c_ho2), 1.0, places=10)
        self.assertAlmostEqual(ropf[3] / (self.k3 * c_h2o2), 1.0, places=10)

    def test_qss_species_are_balanced(self):
        wdot = self.engine.get_net_production_rates()
        creation = self.engine.get_creation_rates()
        for name in ("HO2", "H2O2"):
            k = self.engine.kinetics_species_index(name)
            self.assertLess(abs(wdot[k]), 1.0e-10 * creation[k])

    def test_unsupported_managers(self):
        with self.assertRaises(ConfigurationError):
            RxnActiveMgr(self.engine)


class TestQSSAReversible(unittest.TestCase):
    def test_reverse_destruction(self):
        engine = make_engine(
            [
                ElementaryReaction({"H": 1, "O2": 1}, {"HO2": 1}, rate=Arrhenius(1.0e9)),
                irreversible({"HO2": 1, "H2": 1}, {"H2O": 1, "OH": 1}, 1.0e5),
            ],
            qss=("HO2",),
        )
        alg = engine.algorithm
        self.assertEqual(alg.rodr, [[0]])

        kr = engine.get_rev_rate_constants()[0]
        self.assertGreater(kr, 0.0)
        phase = engine.phase
        c = phase.get_concentrations()
        c_h, c_o2, c_h2 = (c[phase.species_index(n)] for n in ("H", "O2", "H2"))
        expected = 1.0e9 * c_h * c_o2 / (kr + 1.0e5 * c_h2)
        engine.update_rop()
        self.assertAlmostEqual(alg.concentrations[0] / expected, 1.0, places=10)

        k = engine.kinetics_species_index("HO2")
        self.assertLess(abs(engine.get_net_production_rates()[k]), 1.0e-10 * engine.get_creation_rates()[k])


class TestQSSAReversibleCoupling(unittest.TestCase):
    """HO2 and H2O2 exchanged through HO2 + H2 <=> H2O2 + H."""

    def setUp(self):
        self.k0, self.kf, self.k2, self.k3 = 1.0e9, 1.0e5, 1.0e4, 1.0e3
        self.engine = make_engine(
            [
                irreversible({"H": 1, "O2": 1}, {"HO2": 1}, self.k0),
                ElementaryReaction({"HO2": 1, "H2": 1}, {"H2O2": 1, "H": 1}, rate=Arrhenius(self.kf)),
                irreversible({"H2O2": 1}, {"OH": 2}, self.k2),
                irreversible({"HO2": 1}, {"H": 1, "O2": 1}, self.k3),
            ]
        )
        self.algorithm = self.engine.algorithm

    def test_classification(self):
        alg = self.algorithm
        self.assertEqual(alg.rodr, [[], [1]])
        self.assertEqual(alg.ropf_qss[(1, 0)], [1])
        self.assertEqual(alg.ropr_qss[(0, 1)], [1])

    def test_steady_state_concentrations(self):
        kr = self.engine.get_rev_rate_constants()[1]
        self.assertGreater(kr, 0.0)
        phase = self.engine.phase
        c = phase.get_concentrations()
        c_h, c_o2, c_h2 = (c[phase.species_index(n)] for n in ("H", "O2", "H2"))

        # Y = kf cH2 X / (kr cH + k2) substituted into the HO2 balance
        ratio = self.kf * c_h2 / (kr * c_h + self.k2)
        c_ho2 = self.k0 * c_h * c_o2 / (self.k2 * ratio + self.k3)
        c_h2o2 = ratio * c_ho2

        self.engine.update_rop()
        self.assertAlmostEqual(self.algorithm.concentrations[0] / c_ho2, 1.0, places=10)
        self.assertAlmostEqual(self.algorithm.concentrations[1] / c_h2o2, 1.0, places=10)
        ropr = self.engine.get_rev_rates_of_progress()
        self.assertAlmostEqual(ropr[1] / (kr * c_h * c_h2o2), 1.0, places=10)

    def test_factorization_setup_is_reused(self):
        alg = self.algorithm
        with mock.patch.object(alg, "init_qss", wraps=alg.init_qss) as init_spy, mock.patch(
            "blendkin.kinetics.qssa.splu", wraps=splu
        ) as splu_spy:
            self.engine.update_rop()
            permutation, indices = alg._permutation, alg._indices
            first = alg.concentrations.copy()
            self.engine.phase.set_temperature(1200.0)
            self.engine.update_rop()
        self.assertEqual(init_spy.call_count, 1)
        self.assertEqual(splu_spy.call_count, 2)
        for call in splu_spy.call_args_list:
            self.assertEqual(call.kwargs["permc_spec"], "NATURAL")
        self.assertIs(alg._permutation, permutation)
        self.assertIs(alg._indices, indices)
        self.assertFalse(np.allclose(alg.concentrations, first))


class TestQSSAErrors(unittest.TestCase):
    def test_singular_system(self):
        engine = make_engine([irreversible({"H": 1, "O2": 1}, {"HO2": 1}, 1.0e9)], qss=("HO2",))
        with self.assertRaises(SingularSystemError):
            engine.update_rop()

    def test_two_qss_species_on_one_side_warns(self):
        engine = make_engine([])
        with self.assertLogs("blendkin.kinetics.qssa", level="WARNING"):
            engine.add_reaction(irreversible({"HO2": 1, "H2O2": 1}, {"H2O": 1, "O2": 1, "OH": 1}, 1.0))

    def test_needs_qss_species(self):
        with self.assertRaises(ValueError):
            QSSAAlgorithm([])


if __name__ == "__main__":
    unittest.main()
