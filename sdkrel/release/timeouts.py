from __future__ import annotations

# Compiler / doc generator invocations (per artifact kind, per module)
TOOLCHAIN_TIMEOUT_SECONDS = 20 * 60.0

# gpg key import and detached signing
GPG_TIMEOUT_SECONDS = 60.0

# Repository manager API calls and uploads
HTTP_TIMEOUT_SECONDS = 2 * 60.0

# Waiting for a closed staging repository to finish its rule evaluation
STAGING_TRANSITION_TIMEOUT_SECONDS = 15 * 60.0
STAGING_POLL_DELAY_SECONDS = 5.0
