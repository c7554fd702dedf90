"""GUI-agnostic core: tree primitives, selection, list engine and services."""
