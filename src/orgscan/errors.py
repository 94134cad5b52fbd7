"""Exception classes for query compilation and outline scanning."""


class OrgScanError(Exception):
    """Base exception for orgscan errors."""

    pass


class GroupExpansionError(OrgScanError):
    """Raised when a tag group expansion is requested for an empty query."""

    pass


class QuerySyntaxError(OrgScanError):
    """Raised when a match query cannot be parsed.

    Attributes:
        position: Offset of the offending text in the (expanded) query.
        fragment: The substring that could not be parsed.
    """

    def __init__(self, message: str, position: int = 0, fragment: str = "") -> None:
        self.position = position
        self.fragment = fragment
        detail = f" in {fragment!r}" if fragment else ""
        super().__init__(f"{message}{detail} (at position {position})")


class UnknownOperatorError(QuerySyntaxError):
    """Raised when a comparison operator is not defined for its operand kind."""

    pass


class ScanCallbackError(OrgScanError):
    """Raised when a map callback fails at a heading.

    Attributes:
        document: Name of the document being scanned.
        position: Char offset of the heading the callback was invoked at.
    """

    def __init__(self, document: str, position: int, error: BaseException) -> None:
        self.document = document
        self.position = position
        super().__init__(
            f"Callback failed at {document}:{position}: "
            f"{type(error).__name__}: {error}"
        )


class InheritanceError(OrgScanError):
    """Raised when the inherited-state stack of a scan becomes inconsistent."""

    pass


class OutlineParseError(OrgScanError):
    """Raised when an outline document cannot be read."""

    pass


class StopScan(Exception):
    """Raised by a map callback to end a scan early.

    The scan returns the results collected so far. Not an error.
    """

    pass
