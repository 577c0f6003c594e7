"""
Exception classes for the tool admission pipeline.

- RequestRejectedError: Request failed the length/injection gate
- CollaboratorProtocolError: Collaborator failed or returned malformed output
- CatalogError: Catalog source is unreadable or inconsistent

None of these cross the orchestrator boundary: the orchestrator converts
each into a session outcome. CatalogError is only raised at load time.

Per project patterns:
- Inherit from Exception for base exception type
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""


class RequestRejectedError(Exception):
    """
    Raised when an inbound request fails the gate.

    Attributes:
        reason: Human-readable reason shown to the requester
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class CollaboratorProtocolError(Exception):
    """
    Raised when the generative collaborator fails to answer usefully.

    Covers API failures, refusals, and structured output that does not
    match the expected reply shape. Treated as a retryable structural
    issue by the orchestrator.

    Attributes:
        detail: What went wrong
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Collaborator response was malformed: {detail}")


class CatalogError(Exception):
    """
    Raised when a catalog source cannot be loaded.

    Attributes:
        source: Where the catalog was read from
        problems: Every problem found, in discovery order
    """

    def __init__(self, source: str, problems: list[str]) -> None:
        self.source = source
        self.problems = problems
        super().__init__(f"Invalid catalog {source}: {'; '.join(problems)}")
