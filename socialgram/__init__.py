"""socialgram: backend-for-frontend for an Instagram-style social client."""
