"""External services used by the plan engine."""
