"""
tfpipe - Terraform pipeline runner.

Runs format, init, validate, plan, apply and destroy through make, gated on
the trigger event, and reports results as pull-request comments.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tfpipe")
except PackageNotFoundError:
    # Package not installed, running from a checkout
    __version__ = "0.1.0"

__author__ = "tfpipe Contributors"
