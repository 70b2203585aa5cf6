"""Core pattern compilation, matching and registry infrastructure.

It provides:
- compilation of pattern strings into immutable segment sequences;
- matching of resource names against compiled patterns and rendering
  of names from variable bindings;
- a per-run registry of resource types with parent/child resolution;
- a compatibility validator diffing two registry snapshots;
- loading of YAML schema documents into a registry.
"""

from .compat import CompatibilityValidator, Violation, ViolationRule
from .compiler import PatternCompiler, compile_pattern
from .loader import SchemaLoader
from .matcher import NameMatcher
from .registry import (
    RegistrySnapshot,
    ResolvedReference,
    ResourceRegistry,
    ResourceType,
    parent_pattern,
)
from .segments import (
    Binding,
    CompiledPattern,
    ComplexSegment,
    LiteralSegment,
    Segment,
    VariableSegment,
)

__all__ = (
    'Binding',
    'CompatibilityValidator',
    'CompiledPattern',
    'ComplexSegment',
    'LiteralSegment',
    'NameMatcher',
    'PatternCompiler',
    'RegistrySnapshot',
    'ResolvedReference',
    'ResourceRegistry',
    'ResourceType',
    'SchemaLoader',
    'Segment',
    'VariableSegment',
    'Violation',
    'ViolationRule',
    'compile_pattern',
    'parent_pattern',
)
