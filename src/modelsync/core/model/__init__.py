"""Model functionality: the synchronizable model base class and its state records."""

from modelsync.core.model.core import Model
from modelsync.core.model.models import CallState, ModelErrors, PendingSave
from modelsync.core.model.operations import read_field, response_data, with_field

__all__ = [
    "Model",
    "CallState",
    "ModelErrors",
    "PendingSave",
    "read_field",
    "response_data",
    "with_field",
]
