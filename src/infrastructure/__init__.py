"""
Infrastructure layer - external service integrations.

- storage: Object storage (R2/S3) buckets

These wrappers translate between provider formats and our domain models.
"""
