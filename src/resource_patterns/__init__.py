"""Resource name patterns for API client-library generators.

The `resource_patterns` package implements the compile-time logic a
client-library generator needs to support annotated resource names.

Key features:
- compilation of patterns such as `projects/{project}/topics/{topic}`,
  including complex segments like `{user}~{device}`;
- bidirectional mapping between resource names and variable bindings;
- a registry of multi-pattern resource types with parent resolution
  for `child_type` references;
- backward-compatibility checks between two schema versions.
"""
