"Various generic helpers for shmercator"

import sys


class ShmercatorError(Exception):
    "Something prevented a reprojection from starting"


class ProjectionNotInvertibleError(ShmercatorError):
    pass


class InvalidBoundsError(ShmercatorError):
    pass


class SurfaceError(ShmercatorError):
    pass


class ContractViolation(AssertionError):
    "A caller broke the rules of the operation state machine"


def ensure(condition, message: str):
    "Like `assert`, but survives -O"
    if not condition:
        raise ContractViolation(message)


def exit(code, message):
    print(message, file=sys.stderr)
    sys.exit(code)
