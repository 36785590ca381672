# -----------------------------------------------------------------------------
# Built-in formula catalog
# Purpose:
#   The fixed set of atmospheric, force and drag/efficiency relations shipped
#   with the calculator. Each relation is a plain function over the mapping of
#   input id -> value, paired with its descriptor below.
# Notes:
#   - Functions are pure: no state, no I/O, and they read only declared inputs.
#   - Range checking is deliberately absent; Formula.evaluate keeps results finite.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from typing import Mapping, Tuple

from .types import Formula, InputField

# US Standard Atmosphere 1976 constants used by the pressure-altitude relation
R_AIR = 287.05287   # J/(kg*K)
G0 = 9.80665        # m/s^2


def _spow(x: float, k: float) -> float:
    # Real-valued power for negative bases (keeps the sign instead of going complex)
    return math.copysign(abs(x) ** k, x)


# ---- Atmospheric state -------------------------------------------------------

def air_density(x: Mapping[str, float]) -> float:
    return x["p"] / (x["R"] * x["T"])


def pressure_altitude(x: Mapping[str, float]) -> float:
    # Troposphere: h = T0/L * (1 - (p/p0)^(R*L/g0))
    exponent = R_AIR * x["L"] / G0
    return x["T0"] / x["L"] * (1.0 - _spow(x["p"] / x["p0"], exponent))


# ---- Flight forces -----------------------------------------------------------

def lift_force(x: Mapping[str, float]) -> float:
    return 0.5 * x["rho"] * x["v"] ** 2 * x["S"] * x["Cl"]


def drag_force(x: Mapping[str, float]) -> float:
    return 0.5 * x["rho"] * x["v"] ** 2 * x["S"] * x["Cd"]


# ---- Drag analysis & efficiency ----------------------------------------------

def induced_drag(x: Mapping[str, float]) -> float:
    return x["q"] * x["S"] * x["Cl"] ** 2 / (math.pi * x["e"] * x["AR"])


def parasite_drag(x: Mapping[str, float]) -> float:
    return x["q"] * x["S"] * x["Cd0"]


def lift_to_drag(x: Mapping[str, float]) -> float:
    cd = x["Cd0"] + x["Cl"] ** 2 / (math.pi * x["e"] * x["AR"])
    return x["Cl"] / cd


def max_lift_to_drag(x: Mapping[str, float]) -> float:
    return 0.5 * _spow(math.pi * x["e"] * x["AR"] / x["Cd0"], 0.5)


# Shared input definitions (same physical parameter, same defaults)
_RHO = InputField("rho", "Air Density", "ρ", "kg/m³", 1.225)
_V = InputField("v", "True Airspeed", "v", "m/s", 50.0)
_S = InputField("S", "Wing Area", "S", "m²", 20.0)
_Q = InputField("q", "Dynamic Pressure", "q", "Pa", 1531.25,
                "½ρv², 1531.25 Pa is sea-level air at 50 m/s")
_AR = InputField("AR", "Aspect Ratio", "AR", "", 8.0, "Span squared over wing area")
_E = InputField("e", "Oswald Efficiency", "e", "", 0.8, "Span efficiency factor, 1.0 is elliptical")
_CD0 = InputField("Cd0", "Zero-Lift Drag Coefficient", "Cd₀", "", 0.025)


FORMULAS: Tuple[Formula, ...] = (
    Formula(
        id="air-density",
        title="Air Density",
        formula_text="ρ = p / (R · T)",
        description="Density of dry air from static pressure and temperature (ideal gas law).",
        inputs=(
            InputField("p", "Static Pressure", "p", "Pa", 101325.0),
            InputField("R", "Specific Gas Constant", "R", "J/(kg·K)", 287.05),
            InputField("T", "Temperature", "T", "K", 288.15),
        ),
        fn=air_density,
        result_unit="kg/m³",
        tag="text-sky-400",
    ),
    Formula(
        id="pressure-altitude",
        title="Pressure Altitude",
        formula_text="h = (T₀ / L) · (1 − (p / p₀)^(R·L / g₀))",
        description="ISA troposphere altitude at which the standard atmosphere has the given static pressure.",
        inputs=(
            InputField("p", "Static Pressure", "p", "Pa", 89874.6),
            InputField("p0", "Sea-Level Pressure", "p₀", "Pa", 101325.0),
            InputField("T0", "Sea-Level Temperature", "T₀", "K", 288.15),
            InputField("L", "Temperature Lapse Rate", "L", "K/m", 0.0065),
        ),
        fn=pressure_altitude,
        result_unit="m",
        tag="text-cyan-400",
    ),
    Formula(
        id="lift-force",
        title="Lift Force",
        formula_text="L = ½ · ρ · v² · S · Cₗ",
        description="Aerodynamic force perpendicular to the relative airflow.",
        inputs=(_RHO, _V, _S, InputField("Cl", "Lift Coefficient", "Cₗ", "", 1.2)),
        fn=lift_force,
        result_unit="N",
        tag="text-emerald-400",
    ),
    Formula(
        id="drag-force",
        title="Drag Force",
        formula_text="D = ½ · ρ · v² · S · Cd",
        description="Aerodynamic force parallel to and opposing the relative airflow.",
        inputs=(_RHO, _V, _S, InputField("Cd", "Drag Coefficient", "Cd", "", 0.03)),
        fn=drag_force,
        result_unit="N",
        tag="text-rose-400",
    ),
    Formula(
        id="induced-drag",
        title="Induced Drag",
        formula_text="Dᵢ = q · S · Cₗ² / (π · e · AR)",
        description="Drag due to lift, produced by wingtip vortices.",
        inputs=(_Q, _S, InputField("Cl", "Lift Coefficient", "Cₗ", "", 0.5), _AR, _E),
        fn=induced_drag,
        result_unit="N",
        tag="text-violet-400",
    ),
    Formula(
        id="parasite-drag",
        title="Parasite Drag",
        formula_text="Dₚ = q · S · Cd₀",
        description="Form, skin-friction and interference drag, independent of lift.",
        inputs=(_Q, _S, _CD0),
        fn=parasite_drag,
        result_unit="N",
        tag="text-amber-400",
    ),
    Formula(
        id="lift-to-drag",
        title="Lift-to-Drag Ratio",
        formula_text="L/D = Cₗ / (Cd₀ + Cₗ² / (π · e · AR))",
        description="Aerodynamic efficiency at a given lift coefficient using the drag polar.",
        inputs=(InputField("Cl", "Lift Coefficient", "Cₗ", "", 0.5), _CD0, _AR, _E),
        fn=lift_to_drag,
        result_unit="",
        tag="text-indigo-400",
    ),
    Formula(
        id="max-lift-to-drag",
        title="Maximum Lift-to-Drag Ratio",
        formula_text="(L/D)ₘₐₓ = ½ · √(π · e · AR / Cd₀)",
        description="Best achievable glide ratio, reached where induced and parasite drag are equal.",
        inputs=(_AR, _E, _CD0),
        fn=max_lift_to_drag,
        result_unit="",
        tag="text-fuchsia-400",
    ),
)

# Presentation grouping by index range into FORMULAS
DEFAULT_SECTIONS: Tuple[Tuple[str, int, int], ...] = (
    ("Atmospheric State", 0, 2),
    ("Flight Forces", 2, 4),
    ("Drag Analysis & Efficiency", 4, 8),
)
