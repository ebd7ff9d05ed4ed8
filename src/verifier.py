from pathlib import Path

from errors import VerificationError


def verify(destination: Path) -> None:
    """Existence and non-zero size only; the content is not inspected."""
    destination = Path(destination)
    if not destination.is_file():
        raise VerificationError(f"Destination file missing: {destination}")
    if destination.stat().st_size == 0:
        raise VerificationError(f"Repaired file is empty: {destination}")
