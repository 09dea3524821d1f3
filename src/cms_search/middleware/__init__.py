"""HTTP middleware for authentication and request logging."""

PUBLIC_PATHS = frozenset(
    {
        "/api/v1/health/live",
        "/api/v1/health/ready",
    }
)
