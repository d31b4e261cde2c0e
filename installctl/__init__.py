"""
installctl - post-bootstrap installation controller.

Runs inside a freshly bootstrapped cluster and keeps nudging it, together
with the assisted-installer inventory service, until the installation is
reported complete.
"""

__version__ = "0.1.0"
