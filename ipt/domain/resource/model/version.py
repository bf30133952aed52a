"""Resource version arithmetic.

A resource version is a decimal ``major.minor`` number where the minor part
is read as an integer at its own scale: 1.10 is the version after 1.9, not a
re-spelling of 1.1. Spellings that differ only in leading zeros of the minor
part stay distinct versions (1.01 < 1.1). All comparisons go through
:func:`version_key`, never through lexical or plain decimal comparison.
"""

from decimal import Decimal, InvalidOperation

VersionLike = Decimal | str | int | float


def to_version(value: VersionLike) -> Decimal:
    """Coerce a version-like value to a finite Decimal, keeping trailing zeros of strings."""
    if isinstance(value, Decimal):
        version = value
    else:
        try:
            # floats go through str so 1.1 stays 1.1 rather than its binary expansion
            version = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"invalid version: {value!r}") from e
    if not version.is_finite():
        raise ValueError(f"invalid version: {value!r}")
    return version


def _parts(version: Decimal) -> tuple[int, int, int]:
    """Split into (major, minor, scale) where scale is the number of fraction digits."""
    text = format(version, "f")
    major, _, fraction = text.partition(".")
    return int(major), int(fraction or "0"), len(fraction)


def version_key(version: VersionLike) -> tuple[int, int, Decimal]:
    """
    Ordering key (major, minor, value): 1.9 -> (1, 9, 1.9), 1.10 -> (1, 10, 1.10).

    The value only breaks ties between minors spelled with leading zeros, so
    1.01 and 1.1 differ while 1.0 and 1.00 are the same version.
    """
    v = to_version(version)
    major, minor, _ = _parts(v)
    return major, minor, v


def compare_versions(a: VersionLike, b: VersionLike) -> int:
    """Return -1, 0 or 1 as ``a`` is lower than, equal to or greater than ``b``."""
    ka, kb = version_key(a), version_key(b)
    return (ka > kb) - (ka < kb)


def versions_equal(a: VersionLike | None, b: VersionLike | None) -> bool:
    if a is None or b is None:
        return False
    return version_key(a) == version_key(b)


def next_minor_version(version: VersionLike) -> Decimal:
    """1.1 -> 1.2, 1.9 -> 1.10, 1.10 -> 1.11, 2 -> 2.1."""
    major, minor, scale = _parts(to_version(version))
    scale = max(scale, 1)
    return Decimal(f"{major}.{minor + 1:0{scale}d}")


def next_major_version(version: VersionLike) -> Decimal:
    """1.4 -> 2.0, 1.10 -> 2.0."""
    major, _, _ = _parts(to_version(version))
    return Decimal(f"{major + 1}.0")


def plain(version: VersionLike) -> str:
    """Plain decimal notation, never scientific."""
    return format(to_version(version), "f")
