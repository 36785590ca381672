# -----------------------------------------------------------------------------
# Types module: descriptors shared by the registry, sessions and the API
# Purpose:
#   Define the static, immutable description of a formula (its inputs, its
#   pure evaluation function and presentation metadata).
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Tuple

from .errors import DuplicateIdError, UndeclaredInputError

logger = logging.getLogger(__name__)

EvaluateFn = Callable[[Mapping[str, float]], float]


class UnitSystem(str, Enum):
    # Only SI is used for evaluation; Imperial is reserved for later.
    SI = "SI"
    IMPERIAL = "Imperial"


@dataclass(frozen=True)
class InputField:
    """
    One scalar parameter of a formula.
    - id: key into the values mapping, unique within the formula
    - label / symbol / unit: display strings only
    - default: initial value of a fresh session
    """
    id: str
    label: str
    symbol: str
    unit: str
    default: float
    description: str = ""


@dataclass(frozen=True)
class Formula:
    """
    A single computable relation.
    Example:
        id: "lift-force"
        formula_text: "L = ½ ρ v² S Cl"
        inputs: (rho, v, S, Cl)
        fn: lambda x: 0.5 * x["rho"] * x["v"] ** 2 * x["S"] * x["Cl"]
    The title, texts, result unit and tag are presentation metadata and take
    no part in evaluation.
    """
    id: str
    title: str
    formula_text: str
    description: str
    inputs: Tuple[InputField, ...]
    fn: EvaluateFn = field(repr=False, compare=False)
    result_unit: str
    tag: str = ""

    def __post_init__(self):
        object.__setattr__(self, "inputs", tuple(self.inputs))
        seen = set()
        for inp in self.inputs:
            if inp.id in seen:
                raise DuplicateIdError(f"Formula {self.id!r} declares input {inp.id!r} twice")
            seen.add(inp.id)
        self._check_free_variables()

    def _check_free_variables(self):
        # Evaluate once with a read-only mapping of the declared inputs only.
        sample = MappingProxyType(self.defaults())
        try:
            self.fn(sample)
        except KeyError as e:
            raise UndeclaredInputError(
                f"Formula {self.id!r} reads undeclared input {e.args[0]!r}") from e
        except (ArithmeticError, ValueError):
            pass

    @property
    def input_ids(self) -> Tuple[str, ...]:
        return tuple(inp.id for inp in self.inputs)

    def defaults(self) -> Dict[str, float]:
        return {inp.id: float(inp.default) for inp in self.inputs}

    def evaluate(self, values: Mapping[str, float]) -> float:
        """
        Run the transfer function and return a finite float.
        Arithmetic faults, complex and non-finite results collapse to 0.0 so a
        caller always has something to display.
        """
        try:
            out = self.fn(values)
        except (ArithmeticError, ValueError) as e:
            logger.debug("formula %s: %s, result set to 0", self.id, e)
            return 0.0
        return _finite(self.id, out)

    def to_dict(self) -> Dict[str, object]:
        # Presentation fields only; the function itself never leaves the process.
        return {
            "id": self.id,
            "title": self.title,
            "formula_text": self.formula_text,
            "description": self.description,
            "result_unit": self.result_unit,
            "tag": self.tag,
            "inputs": [
                {"id": i.id, "label": i.label, "symbol": i.symbol, "unit": i.unit,
                 "default": i.default, "description": i.description}
                for i in self.inputs
            ],
        }


def _finite(formula_id: str, out) -> float:
    if isinstance(out, complex):
        if out.imag != 0:
            logger.debug("formula %s: complex result %r, result set to 0", formula_id, out)
            return 0.0
        out = out.real
    value = float(out)
    if not math.isfinite(value):
        logger.debug("formula %s: non-finite result %r, result set to 0", formula_id, value)
        return 0.0
    return value
