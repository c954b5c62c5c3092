"""Pipeline stages for turning Rego policies into Gatekeeper resources.

Stages run in order: ``matchers`` and ``kind`` read a policy,
``libraries`` resolves its imports, ``synthesizer`` builds the documents
and ``driver`` ties them together for a whole tree.
"""

from . import kind, matchers, libraries, synthesizer, driver

__all__ = ["driver", "kind", "libraries", "matchers", "synthesizer"]
