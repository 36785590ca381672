import os
import pytest

from aerocalc import (
    CatalogError,
    DuplicateIdError,
    Registry,
    RegistryError,
    Section,
    UndeclaredInputError,
    UnknownFormulaId,
    default_registry,
    load_registry,
)
from aerocalc.formulas import FORMULAS

EXAMPLE_CATALOG = os.path.join(os.path.dirname(__file__), "..", "examples", "catalog_extra.yaml")


def test_default_registry_order_and_sections():
    reg = default_registry()
    assert [f.id for f in reg.list()] == [
        "air-density", "pressure-altitude", "lift-force", "drag-force",
        "induced-drag", "parasite-drag", "lift-to-drag", "max-lift-to-drag",
    ]
    titles = [s.title for s in reg.sections()]
    assert titles == ["Atmospheric State", "Flight Forces", "Drag Analysis & Efficiency"]
    assert reg.sections()[1].formula_ids == ("lift-force", "drag-force")
    assert reg.section_of("parasite-drag") == "Drag Analysis & Efficiency"

def test_get_unknown_id_signals_not_found():
    reg = default_registry()
    with pytest.raises(UnknownFormulaId) as exc:
        reg.get("does-not-exist")
    assert exc.value.formula_id == "does-not-exist"
    assert "does-not-exist" not in reg

def test_duplicate_formula_ids_fail_construction():
    with pytest.raises(DuplicateIdError):
        Registry([FORMULAS[2], FORMULAS[3], FORMULAS[2]])

def test_section_with_unknown_formula_fails():
    with pytest.raises(RegistryError):
        Registry(FORMULAS[:2], [Section("Broken", ("air-density", "nope"))])

def test_registry_is_read_only_sequence():
    reg = default_registry()
    assert isinstance(reg.list(), tuple)
    assert len(reg) == 8
    assert list(reg) == list(reg.list())

def test_list_formulas_has_section():
    items = default_registry().list_formulas()
    assert items[0]["id"] == "air-density"
    assert items[0]["section"] == "Atmospheric State"


CATALOG = """
sections:
  - title: Performance
    formulas: [wing-loading]
formulas:
  - id: wing-loading
    title: Wing Loading
    expr: "W / S"
    result_unit: "N/m²"
    inputs:
      - {id: W, label: Weight, symbol: W, unit: N, default: 10000}
      - {id: S, label: Wing Area, symbol: S, unit: m², default: 16}
"""

def test_from_yaml_text_builds_formula():
    reg = Registry.from_yaml_text(CATALOG)
    f = reg.get("wing-loading")
    assert f.evaluate(f.defaults()) == pytest.approx(625.0)
    assert f.formula_text.startswith("wing-loading = ") and "W" in f.formula_text
    assert reg.sections()[0].title == "Performance"

def test_yaml_expression_with_undeclared_name_rejected():
    text = CATALOG.replace('"W / S"', '"W / S * g"')
    with pytest.raises(UndeclaredInputError):
        Registry.from_yaml_text(text)

def test_yaml_caret_power_rejected():
    with pytest.raises(CatalogError):
        Registry.from_yaml_text(CATALOG.replace('"W / S"', '"W ^ 2"'))

def test_yaml_disallowed_call_rejected():
    with pytest.raises(CatalogError):
        Registry.from_yaml_text(CATALOG.replace('"W / S"', '"__import__(W)"'))

def _with_text_and_expr(expr):
    # formula_text given, so the expression is never rendered
    return CATALOG.replace('"W / S"', f'"{expr}"').replace(
        "    title: Wing Loading\n", "    title: Wing Loading\n    formula_text: \"W/S\"\n")

def test_yaml_call_of_constant_rejected():
    with pytest.raises(CatalogError):
        Registry.from_yaml_text(_with_text_and_expr("pi(W)"))

def test_yaml_wrong_arity_rejected():
    with pytest.raises(CatalogError):
        Registry.from_yaml_text(_with_text_and_expr("sqrt(W, S)"))

def test_yaml_missing_expr_rejected():
    with pytest.raises(CatalogError):
        Registry.from_yaml_text(CATALOG.replace('expr: "W / S"', 'note: none'))

def test_yaml_duplicate_input_rejected():
    text = CATALOG.replace("{id: S,", "{id: W,")
    with pytest.raises(DuplicateIdError):
        Registry.from_yaml_text(text)

def test_load_registry_extends_builtins():
    reg = load_registry(EXAMPLE_CATALOG)
    assert len(reg) == 11
    assert reg.section_of("stall-speed") == "Performance"
    q = reg.get("dynamic-pressure")
    assert q.evaluate(q.defaults()) == pytest.approx(1531.25)

def test_load_registry_rejects_colliding_catalog(tmp_path):
    path = tmp_path / "clash.yaml"
    path.write_text(CATALOG.replace("wing-loading", "lift-force"), encoding="utf-8")
    with pytest.raises(DuplicateIdError):
        load_registry(str(path))

def test_load_registry_without_path_is_default():
    assert [f.id for f in load_registry(None)] == [f.id for f in default_registry()]
