"""
Core business logic for object storage.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. The gateway depends on a Bucket protocol,
so it can be tested against an in-memory bucket.
"""
