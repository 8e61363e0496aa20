"""
Shared Kernel

Building blocks reused by every rental context: value objects, the
domain error hierarchy, domain events and the infrastructure glue that
publishes them after a transaction commits.
"""
