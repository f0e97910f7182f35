"""Level-number hierarchy builder.

Clauses are reduced with an explicit stack into an arena: ``Forest.nodes`` is a
flat list and every node refers to its children by index. A node is closed
once a clause at the same or a shallower depth arrives; closing appends its
index to the new stack top, or registers it as a root when the stack is empty.
Level-88 clauses never become nodes; they are folded onto the stack top.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from cblayout.copybook.errors import CopybookError
from cblayout.copybook.model import ConditionName
from cblayout.copybook.tokenizer import RENAMES_LEVEL, STANDALONE_LEVEL, Clause, ClauseKind

logger = logging.getLogger(__name__)


@dataclass
class Node:
    clause: Clause
    children: list[int] = field(default_factory=list)
    condition_names: list[ConditionName] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return nesting_depth(self.clause.level)


@dataclass
class Forest:
    nodes: list[Node] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)

    def node(self, index: int) -> Node:
        return self.nodes[index]

    def root_nodes(self) -> list[Node]:
        return [self.nodes[i] for i in self.roots]


def nesting_depth(level: int) -> int:
    """77-level items stand alone like 01 records."""
    return 1 if level == STANDALONE_LEVEL else level


def build_hierarchy(clauses: Sequence[Clause] | None) -> Forest:
    """Reduce a flat clause sequence into one or more rooted trees."""
    if clauses is None:
        raise CopybookError("clause sequence is required")
    if not clauses:
        raise CopybookError("copybook has no data items")

    forest = Forest()
    stack: list[int] = []

    def close(index: int) -> None:
        if stack:
            forest.nodes[stack[-1]].children.append(index)
        else:
            forest.roots.append(index)

    for clause in clauses:
        if clause.kind is ClauseKind.CONDITION:
            if stack:
                owner = forest.nodes[stack[-1]]
                owner.condition_names.append(ConditionName(clause.name, clause.value))
            else:
                logger.debug("line %d: condition %s has no owner", clause.line_number, clause.name)
            continue
        if clause.level == RENAMES_LEVEL:
            logger.debug("line %d: skipping RENAMES item %s", clause.line_number, clause.name)
            continue

        depth = nesting_depth(clause.level)
        while stack and forest.nodes[stack[-1]].depth >= depth:
            close(stack.pop())
        if stack and forest.nodes[stack[-1]].clause.picture is not None:
            top = forest.nodes[stack[-1]].clause
            logger.debug(
                "line %d: %s is elementary and cannot own %s",
                clause.line_number,
                top.name,
                clause.name,
            )
            close(stack.pop())

        forest.nodes.append(Node(clause))
        stack.append(len(forest.nodes) - 1)

    while stack:
        close(stack.pop())
    return forest
