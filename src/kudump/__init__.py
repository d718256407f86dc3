"""kudump - Kubernetes pod log dumper.

Collects the logs of every container of every pod in a namespace and
writes them to timestamped files on local disk.
"""

__version__ = "0.1.0"
