"""Value types and settings models for orgtree."""
