class LiveCollabError(Exception):
    """Base class for errors raised by the workspace backend."""


class BadRequestError(LiveCollabError):
    """A client omitted or mangled a required field; nothing was executed."""


class InfrastructureError(LiveCollabError):
    """The server itself failed: store unreachable, workspace unwritable,
    or a toolchain binary that cannot be spawned."""


class StoreUnavailableError(InfrastructureError):
    pass
