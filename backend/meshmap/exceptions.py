"""Error taxonomy for the mesh map core."""


class MeshMapError(Exception):
    """Base class for all mesh map errors."""


class InvalidLocation(MeshMapError):
    """Coordinates were missing, unparseable or out of range."""


class MalformedInput(MeshMapError):
    """A required field was missing or had the wrong shape."""


class StorageFailure(MeshMapError):
    """The underlying store could not complete a read or write."""


class ElevationLookupFailure(MeshMapError):
    """The elevation service did not return a usable value."""
