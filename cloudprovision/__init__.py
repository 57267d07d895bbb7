"""
Multi-cloud resource provisioning.

A uniform, idempotent contract for creating, listing and removing object
storage buckets, managed cache clusters and managed relational databases
across cloud vendors.
"""

__version__ = "0.1.0"
