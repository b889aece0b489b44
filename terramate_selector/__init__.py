"""Stack selection for Terramate repositories.

Decides which stacks a command acts on: stacks matching tag predicates,
stacks reported unhealthy by Terramate Cloud, and the git baseline revision
that change detection diffs against.
"""

__version__ = "0.1.0"
