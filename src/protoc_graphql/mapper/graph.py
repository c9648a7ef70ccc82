"""Dependency graph between protobuf messages.

An edge T -> M means that message M has a field of type T, so T has to be
defined before M.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

import networkx as nx
from google.protobuf import descriptor_pb2

from protoc_graphql.descriptor.model import Message
from protoc_graphql.errors import GraphCycleError

logger = logging.getLogger(__name__)


class Graph:
    """Topological ordering and closures over a set of messages."""

    def __init__(self, messages: Iterable[Message]):
        self._graph = nx.DiGraph()
        self._messages: Dict[str, Message] = {}
        self._index: Dict[str, int] = {}
        self._ordered: Optional[List[Message]] = None

        for message in messages:
            self._add_node(message.full_name)
            self._messages[message.full_name] = message

        for message in self._messages.values():
            for field_proto in message.proto.field:
                if field_proto.type != descriptor_pb2.FieldDescriptorProto.TYPE_MESSAGE:
                    continue
                # A field may have a type that is not among the messages of
                # this graph. A proxy node stands in for it.
                if field_proto.type_name not in self._index:
                    self._add_node(field_proto.type_name, proxy=True)
                self._graph.add_edge(field_proto.type_name, message.full_name)

    def _add_node(self, name: str, proxy: bool = False) -> None:
        self._index[name] = len(self._index)
        self._graph.add_node(name, proxy=proxy)

    def cycles(self) -> List[List[str]]:
        """Return every set of mutually dependent nodes, in graph order."""
        found = []
        for component in nx.strongly_connected_components(self._graph):
            names = sorted(component, key=self._index.__getitem__)
            if len(names) > 1 or self._graph.has_edge(names[0], names[0]):
                found.append(names)
        found.sort(key=lambda names: self._index[names[0]])
        return found

    def sort(self) -> List[Message]:
        """Return the messages such that no message has a field of a later one.

        Raises GraphCycleError naming each unorderable set of messages.
        """
        cycles = self.cycles()
        if cycles:
            raise GraphCycleError(cycles)
        return list(self._order())

    def sort_to(self, roots: Iterable[Message]) -> List[Message]:
        """Return the messages that `roots` depend on, including themselves.

        The result keeps the global order. Cycles are tolerated: messages of
        one cycle are kept together in declaration order.
        """
        seen: Set[str] = set()
        stack = [root.full_name for root in roots]
        while stack:
            name = stack.pop(0)
            if name in seen:
                continue
            seen.add(name)
            if name not in self._graph:
                continue
            for dependency in self._graph.predecessors(name):
                # Proxy nodes never map back to a message.
                if dependency in self._messages:
                    stack.append(dependency)

        return [m for m in self._order() if m.full_name in seen]

    def _order(self) -> List[Message]:
        if self._ordered is not None:
            return self._ordered

        # Collapse cycles so that an order always exists, then sort the
        # condensation breaking ties by declaration order.
        condensed = nx.condensation(self._graph)
        members = {
            node: sorted(data["members"], key=self._index.__getitem__)
            for node, data in condensed.nodes(data=True)
        }
        ordered_nodes = nx.lexicographical_topological_sort(
            condensed, key=lambda node: self._index[members[node][0]]
        )

        ordered = []
        for node in ordered_nodes:
            for name in members[node]:
                message = self._messages.get(name)
                if message is not None:
                    ordered.append(message)

        logger.debug("Ordered %d message(s)", len(ordered))
        self._ordered = ordered
        return ordered
