import unittest
from unittest import mock

import numpy as np
from numpy.testing import assert_allclose

from blendkin.constants import GAS_CONSTANT, ONE_ATM, NumericContext
from blendkin.errors import ConfigurationError, NonFiniteError
from blendkin.kinetics import KineticsConfiguration, KineticsEngine
from blendkin.models import (
    Arrhenius,
    ChebyshevRate,
    ChebyshevReaction,
    ChemicallyActivatedReaction,
    ElementaryReaction,
    FalloffReaction,
    PlogRate,
    PlogReaction,
    ReactionKind,
    ThirdBody,
    ThreeBodyReaction,
)
from blendkin.thermo import IdealGasPhase

from species_data import make_species

GAS = ("H2", "O2", "H", "O", "OH", "H2O", "N2")


def make_engine(*reactions, configuration=KineticsConfiguration()):
    phase = IdealGasPhase(make_species(*GAS))
    phase.set_state_tpx(
        1500.0, ONE_ATM, {"H2": 0.3, "O2": 0.2, "H": 0.05, "O": 0.05, "OH": 0.1, "H2O": 0.1, "N2": 0.2}
    )
    engine = KineticsEngine(phase, configuration)
    for reaction in reactions:
        engine.add_reaction(reaction)
    return engine


def conc(engine, name):
    return engine.phase.get_concentrations()[engine.phase.species_index(name)]


class TestElementary(unittest.TestCase):
    def setUp(self):
        self.rate = Arrhenius(3.87e7, 2.7, 2.619e7)
        self.engine = make_engine(
            ElementaryReaction({"O": 1, "H2": 1}, {"H": 1, "OH": 1}, rate=self.rate),
            ElementaryReaction({"H": 1, "O2": 1}, {"O": 1, "OH": 1}, reversible=False, rate=Arrhenius(2.65e13, -0.67, 7.13e7)),
        )

    def test_mass_action(self):
        ropf = self.engine.get_fwd_rates_of_progress()
        expected = self.rate.rate_constant(1500.0) * conc(self.engine, "O") * conc(self.engine, "H2")
        self.assertAlmostEqual(ropf[0] / expected, 1.0, places=10)

    def test_irreversible_has_no_reverse_rate(self):
        self.assertEqual(self.engine.get_rev_rates_of_progress()[1], 0.0)
        self.assertEqual(self.engine.get_rev_rate_constants()[1], 0.0)
        self.assertFalse(self.engine.is_reversible(1))

    def test_reverse_rate_constant_uses_equilibrium_constant(self):
        kf = self.engine.get_fwd_rate_constants()
        kr = self.engine.get_rev_rate_constants()
        kc = self.engine.get_equilibrium_constants()
        self.assertAlmostEqual(kf[0] / kr[0] / kc[0], 1.0, places=10)

    def test_detailed_balance_at_equilibrium(self):
        engine = make_engine(
            ElementaryReaction({"O": 1, "H2": 1}, {"H": 1, "OH": 1}, rate=self.rate)
        )
        kc = engine.get_equilibrium_constants()[0]
        engine.phase.set_state_tpx(
            1500.0, ONE_ATM, {"O": 1.0, "H2": 1.0, "H": 1.0, "OH": kc, "N2": 2.0}
        )
        ropf = engine.get_fwd_rates_of_progress()[0]
        self.assertLess(abs(engine.get_net_rates_of_progress()[0]), 1.0e-9 * ropf)

    def test_production_rates(self):
        engine = self.engine
        net = engine.get_net_rates_of_progress()
        wdot = engine.get_net_production_rates()
        k = engine.kinetics_species_index
        self.assertAlmostEqual(wdot[k("OH")], net[0] + net[1])
        self.assertAlmostEqual(wdot[k("H2")], -net[0])
        self.assertAlmostEqual(wdot[k("O")], -net[0] + net[1])
        creation = engine.get_creation_rates()
        scale = np.abs(creation).max()
        assert_allclose(wdot, creation - engine.get_destruction_rates(), atol=1e-12 * scale)

    def test_stoich_coefficients(self):
        k = self.engine.kinetics_species_index
        self.assertEqual(self.engine.reactant_stoich_coeff(k("H2"), 0), 1.0)
        self.assertEqual(self.engine.product_stoich_coeff(k("OH"), 1), 1.0)
        self.assertEqual(self.engine.product_stoich_coeff(k("H2"), 1), 0.0)

    def test_multiplier(self):
        base = self.engine.get_fwd_rates_of_progress()
        self.engine.set_multiplier(0, 2.0)
        self.assertEqual(self.engine.multiplier(0), 2.0)
        assert_allclose(self.engine.get_fwd_rates_of_progress(), base * [2.0, 1.0])

    def test_reaction_thermochemistry(self):
        engine = self.engine
        t = engine.phase.temperature
        dh = engine.get_delta_ss_enthalpy()
        ds = engine.get_delta_ss_entropy()
        dg = engine.get_delta_ss_gibbs()
        assert_allclose(dg, dh - t * ds, rtol=1e-10, atol=1e-3)
        assert_allclose(engine.get_delta_enthalpy(), dh, rtol=1e-10)


class TestRopCaching(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine(
            ElementaryReaction({"O": 1, "H2": 1}, {"H": 1, "OH": 1}, rate=Arrhenius(3.87e7, 2.7, 2.619e7))
        )

    def test_update_rop_is_idempotent(self):
        engine = self.engine
        first = engine.get_net_rates_of_progress()
        with mock.patch.object(engine, "update_rates_c", wraps=engine.update_rates_c) as spy:
            second = engine.get_net_rates_of_progress()
            self.assertEqual(spy.call_count, 0)
            engine.phase.set_temperature(1600.0)
            third = engine.get_net_rates_of_progress()
            self.assertEqual(spy.call_count, 1)
        assert_allclose(first, second)
        self.assertFalse(np.allclose(first, third))

    def test_density_change_keeps_rate_constants(self):
        engine = self.engine
        engine.get_net_rates_of_progress()
        with mock.patch.object(engine, "update_kc", wraps=engine.update_kc) as spy:
            engine.phase.set_density(2.0 * engine.phase.density)
            engine.get_net_rates_of_progress()
            self.assertEqual(spy.call_count, 0)

    def test_modify_reaction_invalidates(self):
        engine = self.engine
        before = engine.get_fwd_rates_of_progress()[0]
        faster = ElementaryReaction(
            {"O": 1, "H2": 1}, {"H": 1, "OH": 1}, rate=Arrhenius(2 * 3.87e7, 2.7, 2.619e7)
        )
        engine.modify_reaction(0, faster)
        self.assertAlmostEqual(engine.get_fwd_rates_of_progress()[0] / before, 2.0, places=10)

    def test_modify_reaction_rejects_other_kind(self):
        plog = PlogReaction({"O": 1, "H2": 1}, {"H": 1, "OH": 1}, rate=PlogRate([(ONE_ATM, Arrhenius(1.0))]))
        with self.assertRaises(ConfigurationError):
            self.engine.modify_reaction(0, plog)
        other = ElementaryReaction({"O": 1, "H2": 1}, {"H2O": 1}, rate=Arrhenius(1.0))
        with self.assertRaises(ConfigurationError):
            self.engine.modify_reaction(0, other)

    def test_modify_reaction_rejects_new_orders(self):
        reordered = ElementaryReaction(
            {"O": 1, "H2": 1}, {"H": 1, "OH": 1}, orders={"H2": 0.5}, rate=Arrhenius(1.0)
        )
        with self.assertRaises(ConfigurationError):
            self.engine.modify_reaction(0, reordered)

    def test_modify_reaction_rejects_new_efficiencies(self):
        engine = make_engine(
            ThreeBodyReaction({"O": 2}, {"O2": 1}, rate=Arrhenius(1.2e11, -1.0), third_body=ThirdBody({"H2O": 5.0}))
        )
        for third_body in (ThirdBody({"H2O": 6.0}), ThirdBody({"H2O": 5.0}, default_efficiency=0.5)):
            with self.assertRaises(ConfigurationError):
                engine.modify_reaction(
                    0, ThreeBodyReaction({"O": 2}, {"O2": 1}, rate=Arrhenius(1.0), third_body=third_body)
                )
        engine.modify_reaction(
            0, ThreeBodyReaction({"O": 2}, {"O2": 1}, rate=Arrhenius(1.0), third_body=ThirdBody({"H2O": 5.0}))
        )

    def test_gas_constant_comes_from_context(self):
        rate = Arrhenius(1.0e10, 0.5, 1.0e8)
        phase = IdealGasPhase(make_species(*GAS))
        phase.set_state_tpx(1200.0, ONE_ATM, {"H2": 0.5, "O2": 0.5})
        context = NumericContext(gas_constant=2.0 * GAS_CONSTANT)
        engine = KineticsEngine(phase, context=context)
        engine.add_reaction(ElementaryReaction({"H": 1, "O2": 1}, {"O": 1, "OH": 1}, rate=rate))
        expected = rate.rate_constant(1200.0, 2.0 * GAS_CONSTANT)
        self.assertAlmostEqual(engine.get_fwd_rate_constants()[0] / expected, 1.0, places=12)
        self.assertNotAlmostEqual(expected / rate.rate_constant(1200.0), 1.0, places=3)

    def test_non_finite_rate_raises(self):
        engine = make_engine(
            ElementaryReaction({"H": 1, "O2": 1}, {"O": 1, "OH": 1}, rate=Arrhenius(1.0e300, 0.0, -1.0e10))
        )
        with np.errstate(over="ignore"), self.assertRaises(NonFiniteError):
            engine.update_rop()


class TestReactionTypes(unittest.TestCase):
    def test_three_body_efficiencies(self):
        rate = Arrhenius(1.2e11, -1.0, 0.0)
        engine = make_engine(
            ThreeBodyReaction(
                {"O": 2}, {"O2": 1}, rate=rate, third_body=ThirdBody({"H2O": 5.0, "N2": 0.0})
            )
        )
        phase = engine.phase
        m = phase.molar_density + 4.0 * conc(engine, "H2O") - conc(engine, "N2")
        expected = rate.rate_constant(phase.temperature) * m * conc(engine, "O") ** 2
        self.assertAlmostEqual(engine.get_fwd_rates_of_progress()[0] / expected, 1.0, places=10)

    def test_falloff_limits(self):
        high = Arrhenius(1.0e3)

        def k_eff(low, cls):
            engine = make_engine(
                cls({"H": 1, "O2": 1}, {"OH": 1, "O": 1}, low_rate=low, high_rate=high)
            )
            return engine.get_fwd_rate_constants()[0], engine.phase.molar_density

        # falloff: k -> k_inf at high Pr, k0 [M] at low Pr
        k, _ = k_eff(Arrhenius(1.0e14), FalloffReaction)
        self.assertAlmostEqual(k / 1.0e3, 1.0, places=6)
        k, m = k_eff(Arrhenius(1.0e-3), FalloffReaction)
        self.assertAlmostEqual(k / (1.0e-3 * m), 1.0, places=6)

        # chemically activated: k -> k0 at low Pr, k_inf / [M] at high Pr
        k, _ = k_eff(Arrhenius(1.0e-3), ChemicallyActivatedReaction)
        self.assertAlmostEqual(k / 1.0e-3, 1.0, places=6)
        k, m = k_eff(Arrhenius(1.0e14), ChemicallyActivatedReaction)
        self.assertAlmostEqual(k / (1.0e3 / m), 1.0, places=6)

    def test_falloff_lindemann_value(self):
        low, high = Arrhenius(1.0e6), Arrhenius(1.0e3)
        engine = make_engine(
            FalloffReaction({"H": 1, "O2": 1}, {"OH": 1, "O": 1}, low_rate=low, high_rate=high)
        )
        pr = 1.0e6 * engine.phase.molar_density / 1.0e3
        kf = engine.get_fwd_rate_constants()[0]
        self.assertAlmostEqual(kf / (1.0e3 * pr / (1.0 + pr)), 1.0, places=10)
        self.assertEqual(engine.falloff_indices, [0])
        self.assertEqual(engine.reaction_type(0), ReactionKind.FALLOFF)

    def test_plog_and_chebyshev(self):
        engine = make_engine(
            PlogReaction(
                {"H": 1, "O2": 1},
                {"OH": 1, "O": 1},
                reversible=False,
                rate=PlogRate([(1.0e3, Arrhenius(10.0)), (1.0e7, Arrhenius(1.0e5))]),
            ),
            ChebyshevReaction(
                {"H": 1, "O2": 1},
                {"OH": 1, "O": 1},
                reversible=False,
                rate=ChebyshevRate(300.0, 3000.0, 1.0e3, 1.0e7, [[3.0]]),
            ),
        )
        kf = engine.get_fwd_rate_constants()
        # ln P = ln(1e3) + 0.5 * ln(1e4) is not 1 atm; interpolate exactly
        frac = (np.log(ONE_ATM) - np.log(1.0e3)) / (np.log(1.0e7) - np.log(1.0e3))
        self.assertAlmostEqual(kf[0] / np.exp(np.log(10.0) + frac * np.log(1.0e4)), 1.0, places=10)
        self.assertAlmostEqual(kf[1], 1.0e3, places=8)

        engine.phase.set_pressure(1.0e7)
        self.assertAlmostEqual(engine.get_fwd_rate_constants()[0], 1.0e5, places=6)


class TestAddReaction(unittest.TestCase):
    def test_undeclared_species(self):
        reaction = ElementaryReaction({"AR": 1, "H": 1}, {"OH": 1}, rate=Arrhenius(1.0))
        with self.assertRaises(ConfigurationError):
            make_engine(reaction)
        engine = make_engine(configuration=KineticsConfiguration(skip_undeclared_species=True))
        self.assertFalse(engine.add_reaction(reaction))
        self.assertEqual(engine.n_reactions, 0)

    def test_undeclared_third_body(self):
        reaction = ThreeBodyReaction(
            {"O": 2}, {"O2": 1}, rate=Arrhenius(1.0), third_body=ThirdBody({"AR": 0.7})
        )
        with self.assertRaises(ConfigurationError):
            make_engine(reaction)
        engine = make_engine(
            reaction, configuration=KineticsConfiguration(skip_undeclared_third_bodies=True)
        )
        self.assertEqual(engine.n_reactions, 1)

    def test_unknown_reaction_type(self):
        engine = make_engine()
        with self.assertRaises(ConfigurationError):
            engine.add_reaction(object())


if __name__ == "__main__":
    unittest.main()
