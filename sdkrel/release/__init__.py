"""Release orchestration.

- graph: module ordering
- assembler / toolchain: release units from build outputs
- descriptor: publication metadata (POM)
- signing: signing policy and detached signatures
- repository / publisher: staged, two-phase publication
- service: the end-to-end pipeline
"""

from __future__ import annotations
