"""
AWS backend: S3 buckets, ElastiCache clusters and RDS instances.
"""

from .client import AWSCloudClient
from .provider import AWSProvider

__all__ = ["AWSCloudClient", "AWSProvider"]
