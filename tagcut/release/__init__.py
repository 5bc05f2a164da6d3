"""Release cutting: preflight, version guard, backends, saga and rollback.

Layout:
- config / semver: project release config and version arithmetic
- preflight / guard: read-only gates run before any side effect
- backend / backends / registry: pluggable release tools
- rollback / saga: orchestration and compensation
"""

from __future__ import annotations
