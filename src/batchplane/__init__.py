"""
batchplane - control plane for batch job engines.

- batchplane.core: logging, errors, settings
- batchplane.engine: JobEngine contract, models, launchers, in-memory engine
- batchplane.ops: readiness, launch, stop, status and paginated UI models
"""

__version__ = "0.1.0"
