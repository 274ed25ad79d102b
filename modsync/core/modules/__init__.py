"""
Module lifecycle: discovery, descriptors, reconciliation, activation.

WHY THIS PACKAGE EXISTS:
Each module is recorded twice (its module.json and a state table row) and owns
a set of packages. This package keeps the two records converged and installs
or removes packages as modules are enabled or disabled, without removing a
package another enabled module still uses.
"""

from modsync.core.modules.manager import ModuleManager

__all__ = ["ModuleManager"]
