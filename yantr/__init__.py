"""Yantr -- add production-grade backend components to Node.js projects.

Components (auth, logger, database, security, ...) are described by a
registry, resolved into a scaffold plan, written into the project under
``<srcDir>/lib/yantr`` and recorded in ``yantr.json``.
"""

__version__ = "0.1.0"
