# Label definitions module

from .catalog import (
    LabelDefinition,
    LabelCatalog,
    PREDEFINED_LABELS,
    validate_label,
)

__all__ = [
    "LabelDefinition",
    "LabelCatalog",
    "PREDEFINED_LABELS",
    "validate_label",
]
