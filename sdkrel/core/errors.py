"""Exit codes for the release CLI.

Each failing release stage has its own code so that CI pipelines can tell a
broken module graph from a rejected upload. Values are part of the public
interface and must stay stable.
"""

from enum import IntEnum

__all__ = ["ExitCode"]


class ExitCode(IntEnum):
    """Process exit codes.

    - 0: Release finalized (or dry run completed)
    - 1: User error (bad arguments, invalid release.toml)
    - 2: Module graph error (cycle, unknown dependency)
    - 3: Assembly error (compile/sources/docs missing)
    - 4: Signing error (missing key material, gpg failure)
    - 5: Publish error (staging/finalize failed, rolled back)
    - 6: Rollback failed (orphaned staged artifacts, manual cleanup)
    """

    OK = 0
    USER_ERROR = 1
    GRAPH_ERROR = 2
    ASSEMBLY_ERROR = 3
    SIGNING_ERROR = 4
    PUBLISH_ERROR = 5
    ROLLBACK_FAILED = 6
