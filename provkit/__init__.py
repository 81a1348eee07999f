"""Idempotent server-provisioning helpers.

Each helper converges one piece of host state (a configuration file line, a
data disk mount, a database role, a backup set) and either succeeds or raises a
:class:`provkit.exceptions.ProvisioningError`.
"""

from .__version__ import __version__


__all__ = ["__version__"]
