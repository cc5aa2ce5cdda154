"""Command-line entrypoints for blendkin."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict, List

import typer

from blendkin.kinetics.engine import KineticsConfiguration
from blendkin.mixture import Mixture
from blendkin.models import (
    NASA7,
    SRI,
    Arrhenius,
    ChebyshevRate,
    ChebyshevReaction,
    ChemicallyActivatedReaction,
    CriticalProperties,
    ElementaryReaction,
    FalloffReaction,
    Lindemann,
    PlogRate,
    PlogReaction,
    Reaction,
    Species,
    ThirdBody,
    ThreeBodyReaction,
    Troe,
)
from blendkin.thermo.blend import BlendConfiguration

app = typer.Typer(add_completion=False)


def _parse_arrhenius(data: Dict[str, Any]) -> Arrhenius:
    return Arrhenius(
        pre_exponential=float(data["A"]),
        temperature_exponent=float(data.get("b", 0.0)),
        activation_energy=float(data.get("Ea", 0.0)),
    )


def _parse_species(data: Dict[str, Any]) -> Species:
    nasa = data["nasa7"]
    thermo = NASA7(
        low=[float(c) for c in nasa["low"]],
        high=[float(c) for c in nasa["high"]],
        t_mid=float(nasa.get("T_mid", 1000.0)),
    )
    critical = None
    if "critical" in data:
        c = data["critical"]
        critical = CriticalProperties(
            temperature=float(c["Tc"]),
            pressure=float(c["Pc"]),
            volume=float(c["Vc"]),
            acentric_factor=float(c.get("omega", 0.0)),
            dipole=float(c.get("dipole", 0.0)),
        )
    return Species(data["name"], float(data["mw"]), thermo, critical)


def _parse_falloff(data: Dict[str, Any] | None) -> Any:
    if data is None:
        return Lindemann()
    f_type = data.get("type", "lindemann").lower()
    if f_type == "lindemann":
        return Lindemann()
    elif f_type == "troe":
        t2 = data.get("T2")
        return Troe(
            a=float(data["A"]),
            t3=float(data["T3"]),
            t1=float(data["T1"]),
            t2=None if t2 is None else float(t2),
        )
    elif f_type == "sri":
        return SRI(
            a=float(data["A"]),
            b=float(data["B"]),
            c=float(data["C"]),
            d=float(data.get("D", 1.0)),
            e=float(data.get("E", 0.0)),
        )
    else:
        raise ValueError(f"Unknown falloff type: {f_type}")


def _parse_reaction(data: Dict[str, Any]) -> Reaction:
    r_type = data.get("type", "elementary").lower()
    common = dict(
        reactants={k: float(v) for k, v in data["reactants"].items()},
        products={k: float(v) for k, v in data["products"].items()},
        reversible=bool(data.get("reversible", True)),
        orders={k: float(v) for k, v in data.get("orders", {}).items()},
        label=data.get("equation", ""),
    )
    third_body = ThirdBody(
        efficiencies={k: float(v) for k, v in data.get("efficiencies", {}).items()},
        default_efficiency=float(data.get("default_efficiency", 1.0)),
    )

    if r_type == "elementary":
        return ElementaryReaction(rate=_parse_arrhenius(data["rate"]), **common)
    elif r_type == "three_body":
        return ThreeBodyReaction(
            rate=_parse_arrhenius(data["rate"]), third_body=third_body, **common
        )
    elif r_type in ("falloff", "chemically_activated"):
        cls = FalloffReaction if r_type == "falloff" else ChemicallyActivatedReaction
        return cls(
            low_rate=_parse_arrhenius(data["low"]),
            high_rate=_parse_arrhenius(data["high"]),
            third_body=third_body,
            falloff=_parse_falloff(data.get("falloff")),
            **common,
        )
    elif r_type == "plog":
        nodes = [(float(node["P"]), _parse_arrhenius(node)) for node in data["rates"]]
        return PlogReaction(rate=PlogRate(nodes), **common)
    elif r_type == "chebyshev":
        rate = ChebyshevRate(
            t_min=float(data["T_min"]),
            t_max=float(data["T_max"]),
            p_min=float(data["P_min"]),
            p_max=float(data["P_max"]),
            coefficients=[[float(c) for c in row] for row in data["coefficients"]],
        )
        return ChebyshevReaction(rate=rate, **common)
    else:
        raise ValueError(f"Unknown reaction type: {r_type}")


def load_mixture(config: Dict[str, Any]) -> Mixture:
    """Build a mixture from a parsed mechanism file and set its state."""
    species: List[Species] = [_parse_species(s) for s in config["species"]]
    qss_species = [_parse_species(s) for s in config.get("qss_species", [])]
    reactions = [_parse_reaction(r) for r in config.get("reactions", [])]
    blend = BlendConfiguration(
        blend_factor=float(config.get("blend_factor", 1.0)),
        allow_missing_critical=bool(config.get("allow_missing_critical", False)),
    )
    kinetics = KineticsConfiguration(
        skip_undeclared_species=bool(config.get("skip_undeclared_species", False)),
        skip_undeclared_third_bodies=bool(config.get("skip_undeclared_third_bodies", False)),
    )
    mixture = Mixture.from_mechanism(species, reactions, qss_species, blend, kinetics)

    state = config.get("state", {})
    phase = mixture.phase
    phase.set_temperature(float(state.get("T", 300.0)))
    if "Y" in state:
        phase.set_mass_fractions(state["Y"])
    elif "X" in state:
        phase.set_mole_fractions(state["X"])
    if "density" in state:
        phase.set_density(float(state["density"]))
    else:
        phase.set_pressure(float(state.get("P", phase.reference_pressure)))
    return mixture


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _emit(payload: Dict[str, Any], output: Path | None) -> None:
    json_output = json.dumps(payload, indent=2)
    typer.echo(json_output)
    if output:
        with open(output, "w") as f:
            f.write(json_output)


@app.command()
def evaluate(
    mechanism_file: Annotated[
        Path, typer.Argument(help="Path to JSON mechanism and state file.")
    ],
    output: Annotated[
        Path | None, typer.Option(help="Path to save output JSON.")
    ] = None,
    verbose: Annotated[bool, typer.Option(help="Log debug messages.")] = False,
) -> None:
    """Evaluate properties and rates of a mixture at the given state."""
    _configure_logging(verbose)
    with open(mechanism_file, "r") as f:
        config = json.load(f)
    mixture = load_mixture(config)
    _emit(mixture.summary(), output)


@app.command("reduce")
def reduce_mechanism(
    mechanism_file: Annotated[
        Path, typer.Argument(help="Path to JSON mechanism and state file.")
    ],
    rtol: Annotated[float, typer.Option(help="Relative tolerance.")] = 1.0e-3,
    atol: Annotated[float, typer.Option(help="Absolute tolerance.")] = 1.0e-8,
    output: Annotated[
        Path | None, typer.Option(help="Path to save output JSON.")
    ] = None,
    verbose: Annotated[bool, typer.Option(help="Log debug messages.")] = False,
) -> None:
    """Report which reactions can be dropped at the given state."""
    _configure_logging(verbose)
    with open(mechanism_file, "r") as f:
        config = json.load(f)
    mixture = load_mixture(config)
    active = mixture.activity_manager().update_active_reactions(rtol, atol)
    reduced = mixture.reduced(active)

    payload = {
        "active": [int(i) for i, flag in enumerate(active) if flag],
        "inactive": [int(i) for i, flag in enumerate(active) if not flag],
        "equations": [r.equation for r in mixture.kinetics.reactions],
        "reduced_net_rop": reduced.kinetics.get_net_rates_of_progress().tolist(),
    }
    _emit(payload, output)
