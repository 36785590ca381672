"""
Aircraft performance calculator core: formula registry, evaluation sessions
and the natural-language insight collaborator.
"""

from .errors import (
    CatalogError,
    DuplicateIdError,
    InvalidInputKey,
    RegistryError,
    SessionNotFound,
    UndeclaredInputError,
    UnknownFormulaId,
)
from .types import Formula, InputField, UnitSystem
from .registry import Registry, Section, default_registry, load_registry
from .insight import InsightProvider, OpenAIInsightProvider, StaticInsightProvider
from .session import EvaluationSession, InsightState, parse_number

__version__ = "1.1.0"
