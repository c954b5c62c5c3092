"""Parse ``@kinds`` annotations from policy comments.

A policy restricts the resources its constraint applies to with a
comment such as::

    # @kinds apps/Deployment core/Pod Namespace

Each token is ``<apiGroup>/<kind>``. A bare kind, or one with an empty
group (``/Pod``), belongs to the core API group and is recorded with the
``core`` sentinel.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from gatekeeper_gen.utils.models import CORE_API_GROUP, KindMatcher, MatcherSet

LOGGER = logging.getLogger(__name__)

KINDS_MARKER = "@kinds"


def parse_kind_token(token: str) -> Optional[KindMatcher]:
    """Return the matcher described by ``token`` or ``None`` if it is empty."""

    if "/" in token:
        api_group, kind = token.split("/", 1)
    else:
        api_group, kind = "", token
    kind = kind.strip()
    if not kind:
        LOGGER.debug("Ignoring kind token without a kind: %r", token)
        return None
    return KindMatcher(api_group=api_group.strip() or CORE_API_GROUP, kind=kind)


def get_matchers_from_comments(comments: Iterable[str]) -> MatcherSet:
    """Collect every ``@kinds`` matcher in ``comments`` in encounter order.

    An empty result means the policy places no restriction on kinds.
    """

    matchers: List[KindMatcher] = []
    for block in comments:
        for line in block.splitlines():
            text = line.strip().lstrip("#").strip()
            tokens = text.split()
            if not tokens or tokens[0] != KINDS_MARKER:
                continue
            for token in tokens[1:]:
                matcher = parse_kind_token(token)
                if matcher is not None:
                    matchers.append(matcher)

    LOGGER.debug("Parsed %d kind matchers", len(matchers))
    return MatcherSet(kind_matchers=matchers)
