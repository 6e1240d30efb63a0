from __future__ import annotations

# GH / API operations
GH_TIMEOUT_SECONDS = 60.0

# Idempotent GH read retry policy. Writes are never retried.
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# Page size for list endpoints
GH_PAGE_SIZE = 100
