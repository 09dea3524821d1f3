"""HTTP routes mounted under ``/api/v1``."""
