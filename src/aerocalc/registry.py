# -----------------------------------------------------------------------------
# Formula registry
# Purpose: The single, validated, immutable list of formulas the app can
# evaluate, with read-only lookup and a presentation grouping into sections.
# - Built once at start-up (built-in formulas and optionally a YAML catalog)
#   and passed to consumers explicitly.
# - Construction fails fast on any id collision.
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import yaml

from .errors import CatalogError, DuplicateIdError, RegistryError, UnknownFormulaId
from .formulas import DEFAULT_SECTIONS, FORMULAS
from .safe_eval import compile_expression, render_expression
from .types import Formula, InputField

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Section:
    # Display group; carries no computational meaning.
    title: str
    formula_ids: Tuple[str, ...]


class Registry:
    def __init__(self, formulas: Iterable[Formula], sections: Optional[Iterable[Section]] = None):
        self._formulas: Tuple[Formula, ...] = tuple(formulas)
        self._by_id: Dict[str, Formula] = {}
        for f in self._formulas:
            if f.id in self._by_id:
                raise DuplicateIdError(f"Duplicate formula id: {f.id!r}")
            self._by_id[f.id] = f

        if sections is None:
            sections = [Section("Formulas", tuple(self._by_id))]
        self._sections: Tuple[Section, ...] = tuple(sections)
        for s in self._sections:
            for fid in s.formula_ids:
                if fid not in self._by_id:
                    raise RegistryError(f"Section {s.title!r} lists unknown formula {fid!r}")

    # ---- read-only access ----------------------------------------------------

    def list(self) -> Tuple[Formula, ...]:
        return self._formulas

    def get(self, formula_id: str) -> Formula:
        try:
            return self._by_id[formula_id]
        except KeyError:
            raise UnknownFormulaId(formula_id) from None

    def sections(self) -> Tuple[Section, ...]:
        return self._sections

    def section_of(self, formula_id: str) -> Optional[str]:
        self.get(formula_id)
        for s in self._sections:
            if formula_id in s.formula_ids:
                return s.title
        return None

    def __iter__(self) -> Iterator[Formula]:
        return iter(self._formulas)

    def __len__(self) -> int:
        return len(self._formulas)

    def __contains__(self, formula_id: object) -> bool:
        return formula_id in self._by_id

    def list_formulas(self) -> List[Dict[str, Any]]:
        """Flattened, JSON-friendly listing for the API and UI."""
        out = []
        for f in self._formulas:
            item = f.to_dict()
            item["section"] = self.section_of(f.id)
            out.append(item)
        return out

    # ---- construction helpers ------------------------------------------------

    def extended(self, formulas: Sequence[Formula], sections: Sequence[Section] = ()) -> "Registry":
        """New registry with extra formulas appended (ids must stay unique)."""
        return Registry(list(self._formulas) + list(formulas),
                        list(self._sections) + list(sections))

    @staticmethod
    def from_yaml_dict(d: Dict[str, Any]) -> "Registry":
        """
        Build a Registry from a pre-parsed YAML dictionary.
        Expected shape:
          sections:
            - title: Performance
              formulas: [wing-loading]
          formulas:
            - id: wing-loading
              title: Wing Loading
              expr: "W / S"                 # right-hand side over input ids
              formula_text: "W/S = W / S"   # optional, rendered from expr if absent
              description: ...
              result_unit: "N/m²"
              tag: "text-sky-400"           # optional
              inputs:
                - {id: W, label: Weight, symbol: W, unit: N, default: 10000}
        """
        formulas, sections = _parse_catalog(d or {})
        return Registry(formulas, sections or None)

    @staticmethod
    def from_yaml_text(text: str) -> "Registry":
        return Registry.from_yaml_dict(yaml.safe_load(text))

    @staticmethod
    def from_file(path: str) -> "Registry":
        with open(path, "r", encoding="utf-8") as f:
            return Registry.from_yaml_text(f.read())


def _parse_catalog(d: Dict[str, Any]) -> Tuple[List[Formula], List[Section]]:
    if not isinstance(d, dict):
        raise CatalogError("Catalog root must be a mapping")
    formulas: List[Formula] = []
    for fd in d.get("formulas") or []:
        try:
            inputs = tuple(
                InputField(
                    id=str(i["id"]),
                    label=str(i.get("label", i["id"])),
                    symbol=str(i.get("symbol", i["id"])),
                    unit=str(i.get("unit", "")),
                    default=float(i.get("default", 0.0)),
                    description=str(i.get("description", "")),
                )
                for i in fd.get("inputs") or []
            )
            expr = str(fd["expr"])
            fid = str(fd["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Malformed catalog entry {fd!r}: {e}") from e
        ids = [i.id for i in inputs]
        fn = compile_expression(expr, ids)  # validates before sympy sees the text
        text = fd.get("formula_text") or f"{fd.get('symbol', fid)} = {render_expression(expr, ids)}"
        try:
            formula = Formula(
                id=fid,
                title=str(fd.get("title", fid)),
                formula_text=str(text),
                description=str(fd.get("description", "")),
                inputs=inputs,
                fn=fn,
                result_unit=str(fd.get("result_unit", "")),
                tag=str(fd.get("tag", "")),
            )
        except TypeError as e:  # e.g. wrong arity in a whitelisted call
            raise CatalogError(f"Expression {expr!r} in {fid!r} cannot be evaluated: {e}") from e
        formulas.append(formula)
    sections = []
    for sd in d.get("sections") or []:
        try:
            sections.append(Section(str(sd["title"]), tuple(str(x) for x in sd.get("formulas") or [])))
        except (KeyError, TypeError) as e:
            raise CatalogError(f"Malformed section {sd!r}: {e}") from e
    return formulas, sections


def default_registry() -> Registry:
    sections = [Section(title, tuple(f.id for f in FORMULAS[lo:hi]))
                for title, lo, hi in DEFAULT_SECTIONS]
    return Registry(FORMULAS, sections)


def load_registry(catalog_path: Optional[str] = None) -> Registry:
    """Built-in formulas, extended with a YAML catalog when a path is given."""
    reg = default_registry()
    if not catalog_path:
        return reg
    extra = Registry.from_file(catalog_path)
    logger.info("Loaded %d catalog formulas from %s", len(extra), catalog_path)
    return reg.extended(extra.list(), extra.sections())
