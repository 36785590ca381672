# -----------------------------------------------------------------------------
# Error taxonomy
# Purpose:
#   Exceptions raised by the registry (start-up, fail fast) and by evaluation
#   sessions (call-site mistakes). Unparsable numbers and insight failures are
#   not errors and have no class here.
# -----------------------------------------------------------------------------

from __future__ import annotations


class RegistryError(Exception):
    """Inconsistent formula or registry definition; the app must not start."""


class DuplicateIdError(RegistryError):
    pass


class UndeclaredInputError(RegistryError):
    # Evaluation references a key that is not one of the formula's inputs.
    pass


class CatalogError(RegistryError):
    # Malformed YAML catalog entry (missing fields, bad expression, ...)
    pass


class UnknownFormulaId(KeyError):
    def __init__(self, formula_id: str):
        super().__init__(formula_id)
        self.formula_id = formula_id

    def __str__(self) -> str:
        return f"Unknown formula id: {self.formula_id!r}"


class InvalidInputKey(KeyError):
    def __init__(self, formula_id: str, input_id: str):
        super().__init__(input_id)
        self.formula_id = formula_id
        self.input_id = input_id

    def __str__(self) -> str:
        return f"Formula {self.formula_id!r} has no input {self.input_id!r}"


class SessionNotFound(KeyError):
    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Unknown session: {self.session_id!r}"
