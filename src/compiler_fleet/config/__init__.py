"""
Property configuration for the compiler fleet.
"""

from .properties import (
    GLOBAL_GROUP,
    CompilerProperties,
    Properties,
    PropertyRepository,
    build_hierarchy,
)
from .fields import CompilerField, as_bool, compiler_property

__all__ = [
    "GLOBAL_GROUP",
    "CompilerProperties",
    "Properties",
    "PropertyRepository",
    "build_hierarchy",
    "CompilerField",
    "as_bool",
    "compiler_property",
]
