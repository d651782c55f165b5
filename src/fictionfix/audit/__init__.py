from .guards import run_audits

__all__ = ["run_audits"]
