import hashlib
from pathlib import Path


def sha256_hash_file(path: Path) -> str:
    """
    Compute the SHA-256 hash of a file's contents.

    The file is read in fixed-size chunks (8 KB) so large model artifacts
    are never loaded into memory at once.

    Parameters
    ----------
    path : Path
        The file to hash.

    Returns
    -------
    str
        The lowercase hexadecimal SHA-256 digest of the file's contents.
    """

    hash = hashlib.sha256()

    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            hash.update(chunk)

    return hash.hexdigest()
