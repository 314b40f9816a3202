"""SCEPGATE: challenge-password authorization in front of SCEP CSR signing."""

__version__ = "1.0.0"
