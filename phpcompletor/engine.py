"""
Completion engine: picks the completor that applies at the cursor.

Member access (`$foo->`, `Foo::`) goes to the member completor, a name being
typed goes to the class name completor. Anything else yields nothing.
"""

from __future__ import annotations

from itertools import islice

from phpcompletor.completor.class_completor import ClassCompletor
from phpcompletor.completor.class_member_completor import ClassMemberCompletor
from phpcompletor.core.suggestion import Response
from phpcompletor.parser.locator import TolerantNodeLocator
from phpcompletor.parser.nodes import NodeLocator


class CompletionEngine:
    """Runs one completion request against the configured completors."""

    def __init__(
        self,
        member_completor: ClassMemberCompletor | None = None,
        class_completor: ClassCompletor | None = None,
        locator: NodeLocator | None = None,
        max_suggestions: int | None = None,
    ):
        self.member_completor = member_completor
        self.class_completor = class_completor
        self.locator = locator or TolerantNodeLocator()
        self.max_suggestions = max_suggestions

    def complete(self, source: str, offset: int) -> Response:
        if self.member_completor and self.member_completor.could_complete(source, offset):
            response = self.member_completor.complete(source, offset)
            return self._limit(response)

        if self.class_completor and offset > 0:
            node = self.locator.node_at(source, offset - 1)
            qualified = self.class_completor.qualifier().could_complete(node)
            if qualified is not None:
                return self._limit(
                    Response(self.class_completor.complete(qualified, source, offset))
                )

        return Response()

    def _limit(self, response: Response) -> Response:
        if self.max_suggestions is None:
            return response
        return Response(islice(response.suggestions, self.max_suggestions), response.issues)
