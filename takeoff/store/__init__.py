# Project state module

from .annotation_store import (
    AnnotationStore,
    validate_annotation,
)

from .project_store import (
    ProjectStore,
    validate_markup_percent,
)

__all__ = [
    # Annotation Store
    "AnnotationStore",
    "validate_annotation",
    # Project Store
    "ProjectStore",
    "validate_markup_percent",
]
