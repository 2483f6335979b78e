"""Exception types raised by the object store and codec"""


class KitError(Exception):
    """Base class for every failure kit surfaces to its caller."""


class MalformedDigest(KitError, ValueError):
    pass


class ObjectNotFound(KitError, LookupError):
    def __init__(self, digest):
        super().__init__(f'object {digest} not found')
        self.digest = digest


class CorruptObject(KitError):
    pass


class UnknownObjectKind(CorruptObject):
    pass


class MalformedHeader(CorruptObject):
    pass


class TruncatedObject(CorruptObject):
    pass


class FilesystemFailure(KitError, OSError):
    pass


class RepositoryNotFound(KitError):
    pass


class ConfigError(KitError):
    pass
